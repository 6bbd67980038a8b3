"""Shared-secret check for mutating endpoints."""
from typing import Optional

from fastapi import HTTPException, Request, status


def check_secret(request: Request, secret: Optional[str]) -> None:
    """Reject the request unless it carries PEDOMETER_SECRET (when one is set)."""
    expected_secret = request.app.state.settings.pedometer_secret
    if expected_secret:
        if not secret or secret != expected_secret:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid secret"
            )
