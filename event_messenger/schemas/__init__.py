"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .submission import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "RunSummaryResponse",
    "EventCreate",
    "EventResponse",
    "EventStatus",
    "EventPreview",
    "SubmissionResponse",
]
