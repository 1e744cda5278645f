"""
Common Pydantic schemas
"""

from typing import Any, Optional
from pydantic import BaseModel

class StandardResponse(BaseModel):
    """Standard API response"""
    success: bool
    message: str
    data: Optional[Any] = None

class ErrorResponse(BaseModel):
    """Error response schema"""
    success: bool = False
    message: str
    error_code: Optional[str] = None
    details: Optional[Any] = None

class RunSummaryResponse(BaseModel):
    """Outcome of a manually triggered scheduler run"""
    task: str
    aborted: bool
    processed: int
    sent: int = 0
    empty: int = 0
    skipped: int = 0
    deleted: int = 0
    failed: int = 0
