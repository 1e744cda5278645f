"""
Public API routes - no authentication required
"""

from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from event_messenger.api.dependencies import get_active_event
from event_messenger.core.db import get_db
from event_messenger.models import Event
from event_messenger.schemas.event import EventCreate, EventResponse
from event_messenger.services.event_service import EventOptions, create_event
from event_messenger.services.qr_service import QRService
from event_messenger.services.repositories import EventRepo, SubmissionRepo
from event_messenger.utils.responses import success_response, error_response

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/events")
def list_events(db: Session = Depends(get_db)):
    """List active events with their submission counts"""
    previews = EventRepo.list_active_previews(db)
    return success_response(
        message="Events retrieved successfully",
        data=[preview.model_dump() for preview in previews]
    )

@router.post("/events")
def create_new_event(event_data: EventCreate, db: Session = Depends(get_db)):
    """Create a new event collecting messages for a recipient"""
    if event_data.event_date < date.today():
        return error_response(
            message="Event date must not be in the past",
            status_code=400
        )

    event = create_event(
        db,
        name=event_data.name,
        event_date=event_data.event_date,
        options=EventOptions(
            description=event_data.description,
            coordinator_name=event_data.coordinator_name,
            coordinator_contact=event_data.coordinator_contact,
            recipient_name=event_data.recipient_name,
            recipient_email=str(event_data.recipient_email),
            website_link=event_data.website_link,
        ),
    )

    return success_response(
        message="Event created successfully",
        data={
            **EventResponse.model_validate(event).model_dump(),
            "share_url": QRService.get_share_url(event),
        },
        status_code=201
    )

@router.get("/events/{slug}")
def get_event(event: Event = Depends(get_active_event), db: Session = Depends(get_db)):
    """Event page data for contributors"""
    return success_response(
        message="Event retrieved successfully",
        data={
            **EventResponse.model_validate(event).model_dump(),
            "submission_count": SubmissionRepo.count_for_event(db, event.id),
        }
    )

@router.get("/events/{slug}/qr.png")
def get_qr_code(event: Event = Depends(get_active_event)):
    """QR code of the event's share link"""
    qr_bytes = QRService.generate_event_qr(event)

    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=qr_{event.slug}.png"}
    )
