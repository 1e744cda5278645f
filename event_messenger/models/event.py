"""
Event model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship

from event_messenger.core.db import Base

class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, default="")
    # Local midnight of the event day, stored as naive UTC
    event_date = Column(DateTime, nullable=False, index=True)
    coordinator_name = Column(String(255), default="")
    coordinator_contact = Column(String(255), default="")
    recipient_name = Column(String(255), default="")
    recipient_email = Column(String(255), default="")
    website_link = Column(String(512), default="")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Lifecycle: active -> notified (email_sent, inactive) -> deleted
    active = Column(Boolean, default=True, nullable=False, index=True)
    email_sent = Column(Boolean, default=False, nullable=False)
    email_sent_at = Column(DateTime, nullable=True)

    # Relationships
    submissions = relationship(
        "Submission",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="Submission.created_at.desc()",
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} slug={self.slug!r} active={self.active} email_sent={self.email_sent}>"
