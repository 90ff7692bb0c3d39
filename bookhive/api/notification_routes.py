"""Push notification routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from bookhive.api.schemas import NotificationResponse, UpdateNotificationRequest
from bookhive.core.dependencies import get_notification_service
from bookhive.domain.entities import DispatchOutcome
from bookhive.domain.errors import InvalidInput, NotFound, StorageError
from bookhive.domain.services import INotificationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/notifications", tags=["notifications"])

_DAILY_MESSAGES = {
    DispatchOutcome.SENT: "Notification sent",
    DispatchOutcome.SKIPPED: "Nothing to send: already sent today or no registered devices",
    DispatchOutcome.FAILED: "Failed to send push",
}


@router.post("/daily-book", response_model=NotificationResponse)
async def send_daily_book_notification(
    response: Response,
    notification_service: Annotated[INotificationService, Depends(get_notification_service)],
) -> NotificationResponse:
    """Announce the newest book to every device, at most once a day.

    Books by the configured featured author bypass the daily limit.
    A failed send answers 502 and may be retried the same day.
    """
    try:
        outcome = await notification_service.send_daily_book_notification()
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except StorageError as exc:
        logger.error("Daily book notification failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage unavailable")

    if outcome is DispatchOutcome.FAILED:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return NotificationResponse(outcome=outcome.value, message=_DAILY_MESSAGES[outcome])


@router.post("/update", response_model=NotificationResponse)
async def send_update_notification(
    body: UpdateNotificationRequest,
    response: Response,
    notification_service: Annotated[INotificationService, Depends(get_notification_service)],
) -> NotificationResponse:
    """Broadcast an app update announcement. Never throttled."""
    try:
        outcome = await notification_service.send_update_notification(body.version, body.features)
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except StorageError as exc:
        logger.error("Update notification failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage unavailable")

    if outcome is DispatchOutcome.FAILED:
        response.status_code = status.HTTP_502_BAD_GATEWAY
        message = "Failed to send update push"
    elif outcome is DispatchOutcome.SKIPPED:
        message = "No devices registered for push"
    else:
        message = "Update push sent"
    return NotificationResponse(outcome=outcome.value, message=message)
