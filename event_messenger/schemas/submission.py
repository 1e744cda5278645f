"""
Submission-related Pydantic schemas
"""

from datetime import datetime
from pydantic import BaseModel

class SubmissionResponse(BaseModel):
    """Submission response schema"""
    id: int
    name: str
    message: str
    filename: str
    created_at: datetime

    class Config:
        from_attributes = True
