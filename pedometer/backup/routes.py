"""FastAPI routes for backup restore and export."""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from pedometer.accumulator import restore_days
from pedometer.backup.models import RestoreRequest, RestoreResponse
from pedometer.backup.processor import exportable, to_csv
from pedometer.database import get_session
from pedometer.ledger import DayLedger
from pedometer.security import check_secret

# Create router
router = APIRouter()


@router.post("/restore", response_model=RestoreResponse)
async def restore(
    payload: RestoreRequest,
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> RestoreResponse:
    """Restore backed-up days into empty slots; existing days are kept."""
    check_secret(request, payload.secret)

    report = await restore_days(
        DayLedger(session),
        ((entry.day, entry.steps) for entry in payload.entries),
    )
    return RestoreResponse(restored=report.restored, skipped=report.skipped)


@router.get("/export")
async def export(session: AsyncSession = Depends(get_session)) -> JSONResponse:
    """Export every restorable day, oldest first."""
    entries = exportable(await DayLedger(session).get_days())
    return JSONResponse(content=[entry.model_dump() for entry in entries])


@router.get("/export.csv")
async def export_csv(session: AsyncSession = Depends(get_session)) -> PlainTextResponse:
    """Export in the ``day;steps`` line format."""
    entries = exportable(await DayLedger(session).get_days())
    return PlainTextResponse(content=to_csv(entries))
