"""
Event-related Pydantic schemas
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, field_validator

class EventCreate(BaseModel):
    """Schema for creating an event"""
    name: str
    event_date: date
    recipient_name: str
    recipient_email: EmailStr
    description: str = ""
    coordinator_name: str = ""
    coordinator_contact: str = ""
    website_link: str = ""

    @field_validator("name", "recipient_name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

class EventResponse(BaseModel):
    """Basic event response"""
    id: int
    name: str
    slug: str
    description: str
    event_date: datetime
    coordinator_name: str
    coordinator_contact: str
    recipient_name: str
    website_link: str
    created_at: datetime

    class Config:
        from_attributes = True

class EventStatus(EventResponse):
    """Event response including lifecycle fields (admin only)"""
    recipient_email: str
    active: bool
    email_sent: bool
    email_sent_at: Optional[datetime] = None
    submission_count: int = 0

class EventPreview(BaseModel):
    """Lightweight event data for list displays"""
    id: int
    name: str
    slug: str
    description: str
    event_date: datetime
    recipient_name: str
    submission_count: int
