"""
Shared route dependencies
"""

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from event_messenger.core.db import get_db
from event_messenger.models import Event
from event_messenger.services.repositories import EventRepo

def get_active_event(slug: str, db: Session = Depends(get_db)) -> Event:
    """Event addressed by the ``slug`` path parameter; archived events are not found"""
    event = EventRepo.get_active_by_slug(db, slug)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event
