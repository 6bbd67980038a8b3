"""FastAPI backend for the pedometer day ledger."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Path, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from pedometer import days
from pedometer.accumulator import StartupMaintenance, credit_steps, roll_over
from pedometer.backup.routes import router as backup_router
from pedometer.config import Settings, configure_logging, get_settings
from pedometer.database import Database, get_session
from pedometer.ledger import NOT_FOUND, DayLedger
from pedometer.models import DAY_MAX, DAY_MIN, DayKey, StepValue
from pedometer.security import check_secret

logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store, run the post-boot purge, and close the store on shutdown."""
    settings: Settings = app.state.settings
    db = Database(settings.resolved_database_url)
    await db.open()
    app.state.db = db
    app.state.maintenance = StartupMaintenance()
    try:
        if settings.purge_on_startup:
            async with db.session() as session:
                await app.state.maintenance.run(DayLedger(session))
        logger.info("Server starting on port %s", settings.port)
        yield
    finally:
        logger.info("Server shutting down")
        await db.close()


# Pydantic models for API
class NewDayRequest(BaseModel):
    day: DayKey
    raw: StepValue
    secret: Optional[str] = None


class AddStepsRequest(BaseModel):
    day: DayKey
    amount: StepValue
    secret: Optional[str] = None


@router.post("/steps/new-day")
async def new_day(
    payload: NewDayRequest,
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Start a day from the current hardware counter value."""
    check_secret(request, payload.secret)
    request.app.state.maintenance.mark_rollover()
    created = await roll_over(DayLedger(session), payload.day, payload.raw)
    return JSONResponse(content={"created": created})


@router.post("/steps/add")
async def add_steps(
    payload: AddStepsRequest,
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Credit steps observed during an already started day."""
    check_secret(request, payload.secret)
    await credit_steps(DayLedger(session), payload.day, payload.amount)
    return JSONResponse(content="ok")


@router.get("/steps/{day}")
async def get_day(
    day: int = Path(ge=DAY_MIN, le=DAY_MAX),
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Get the stored delta for one day; ``steps`` is null when there is no record."""
    steps = await DayLedger(session).get_steps(day)
    return JSONResponse(
        content={"day": day, "steps": steps, "found": steps is not NOT_FOUND},
        headers={"Cache-Control": "no-cache"}
    )


@router.get("/stats")
async def get_stats(
    today: Optional[int] = Query(None, ge=DAY_MIN, le=DAY_MAX),
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Lifetime totals for the overview display."""
    ledger = DayLedger(session)
    if today is None:
        today = days.today()

    total = await ledger.get_total_excluding_today(today)
    valid_days = await ledger.get_valid_day_count()
    today_steps = await ledger.get_steps(today)

    # Cache for 1 minute
    return JSONResponse(
        content={
            "today": today,
            "today_steps": today_steps,
            "total_excluding_today": total,
            "record": await ledger.get_record_day(),
            "valid_days": valid_days,
            "average": total // valid_days,
        },
        headers={"Cache-Control": "public, max-age=60"}
    )


@router.get("/history")
async def get_history(
    start: Optional[int] = Query(None, ge=DAY_MIN, le=DAY_MAX),
    end: Optional[int] = Query(None, ge=DAY_MIN, le=DAY_MAX),
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Get stored days ordered by day."""
    records = await DayLedger(session).get_days(start, end)
    history = [{"day": record.day, "steps": record.delta} for record in records]

    # Cache for 5 minutes
    return JSONResponse(
        content=history,
        headers={"Cache-Control": "public, max-age=300"}
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application; the store is opened by the lifespan."""
    if settings is None:
        settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Pedometer API", lifespan=lifespan)
    app.state.settings = settings

    app.include_router(router, prefix="/api", tags=["steps"])
    # Include backup router
    app.include_router(backup_router, prefix="/api/backup", tags=["backup"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pedometer.main:app",
        host="0.0.0.0",
        port=get_settings().port,
        reload=True
    )
