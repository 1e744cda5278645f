"""
Contributor-facing API routes: leaving and viewing messages
"""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_messenger.api.dependencies import get_active_event
from event_messenger.core.config import settings
from event_messenger.core.db import get_db
from event_messenger.core.errors import ArtifactError
from event_messenger.models import Event
from event_messenger.schemas.submission import SubmissionResponse
from event_messenger.services.artifact_service import ArtifactStore
from event_messenger.services.repositories import SubmissionRepo
from event_messenger.utils.responses import success_response, error_response
from event_messenger.utils.security import rate_limit_check, get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter()

def get_artifact_store() -> ArtifactStore:
    return ArtifactStore()

@router.post("/events/{slug}/submissions")
async def submit_message(
    request: Request,
    name: str = Form(""),
    message: str = Form(""),
    image: UploadFile = File(None),
    db: Session = Depends(get_db),
    event: Event = Depends(get_active_event),
    artifacts: ArtifactStore = Depends(get_artifact_store)
):
    """Leave a message with a photo for an event"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip, bucket="submissions"):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Please try again later."
        )

    name = name.strip()
    message = message.strip()

    if len(name) > settings.MAX_NAME_LENGTH:
        return error_response(
            message=f"Name exceeds maximum length of {settings.MAX_NAME_LENGTH} characters",
            status_code=400
        )
    if len(message) > settings.MAX_MESSAGE_LENGTH:
        return error_response(
            message=f"Message exceeds maximum length of {settings.MAX_MESSAGE_LENGTH} characters",
            status_code=400
        )
    if not name or not message:
        return error_response(message="Name and message are required", status_code=400)

    if image is None or not image.filename:
        return error_response(message="Image upload is required", status_code=400)

    content = await image.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        return error_response(
            message=f"Image exceeds maximum size of {settings.MAX_UPLOAD_SIZE // (1024 * 1024)} MB",
            status_code=400
        )

    try:
        filename = artifacts.save_image(content, image.filename)
    except ArtifactError as e:
        logger.info(f"Rejected upload for event {event.slug}: {e}")
        return error_response(
            message="Only image files (JPEG, PNG, GIF, WebP) are allowed",
            status_code=400
        )

    try:
        submission = SubmissionRepo.create(db, event.id, name, message, filename)
    except SQLAlchemyError:
        db.rollback()
        artifacts.remove(filename)
        raise

    logger.info(f"Received submission for event {event.slug} from {name}")

    return success_response(
        message="Thank you! Your message has been saved.",
        data=SubmissionResponse.model_validate(submission).model_dump(),
        status_code=201
    )

@router.get("/events/{slug}/messages")
def view_messages(event: Event = Depends(get_active_event), db: Session = Depends(get_db)):
    """All messages left for an event, newest first"""
    submissions = SubmissionRepo.list_for_event(db, event.id)
    return success_response(
        message="Messages retrieved successfully",
        data={
            "event_name": event.name,
            "recipient_name": event.recipient_name,
            "submissions": [SubmissionResponse.model_validate(s).model_dump() for s in submissions]
        }
    )
