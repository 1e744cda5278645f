"""
Database models package
"""

from .event import Event
from .submission import Submission

__all__ = ["Event", "Submission"]
