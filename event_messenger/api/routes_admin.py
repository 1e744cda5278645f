"""
Admin API routes - requires authentication
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from event_messenger.core.db import get_db
from event_messenger.schemas.common import RunSummaryResponse
from event_messenger.schemas.event import EventStatus
from event_messenger.services.repositories import EventRepo, SubmissionRepo
from event_messenger.services.scheduler import Scheduler
from event_messenger.utils.security import verify_admin_token
from event_messenger.utils.responses import success_response

router = APIRouter()

def get_scheduler(request: Request) -> Scheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Scheduler not configured")
    return scheduler

@router.post("/notifications/run")
async def run_notifications(
    scheduler: Scheduler = Depends(get_scheduler),
    token: str = Depends(verify_admin_token)
):
    """Send notifications for events due today without waiting for the daily run"""
    summary = await run_in_threadpool(scheduler.run_notifications)
    return success_response(
        message="Notification run finished" if not summary.aborted else "Notification run aborted",
        data=RunSummaryResponse(**asdict(summary)).model_dump()
    )

@router.post("/cleanup/run")
async def run_cleanup(
    scheduler: Scheduler = Depends(get_scheduler),
    token: str = Depends(verify_admin_token)
):
    """Delete events whose grace period has elapsed without waiting for the weekly run"""
    summary = await run_in_threadpool(scheduler.run_cleanup)
    return success_response(
        message="Cleanup run finished" if not summary.aborted else "Cleanup run aborted",
        data=RunSummaryResponse(**asdict(summary)).model_dump()
    )

@router.get("/events/{event_id}")
def get_event_status(
    event_id: int,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Lifecycle status of any event, archived ones included"""
    event = EventRepo.get_by_id(db, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    event_status = EventStatus.model_validate(event, from_attributes=True).model_copy(
        update={"submission_count": SubmissionRepo.count_for_event(db, event_id)}
    )
    return success_response(
        message="Event status retrieved",
        data=event_status.model_dump()
    )
