"""
Submission model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from event_messenger.core.db import Base

class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    filename = Column(String(255), default="")  # stored image under UPLOAD_DIR
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Relationships
    event = relationship("Event", back_populates="submissions")
