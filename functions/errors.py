"""Errors raised by the journal core.

Routers never see SQLAlchemy or HTTP details from the core; ``main.py`` maps
these onto status codes.
"""
from datetime import date
from typing import Optional


class SmileError(Exception):
    """Base class for journal errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SmileError):
    """Bad or missing input"""


class BackfillRequiredError(ValidationError):
    """Today's entry was attempted while an earlier day is still unresolved"""

    def __init__(self, oldest_missed_date: date, message: Optional[str] = None):
        super().__init__(
            message or f"Resolve {oldest_missed_date.isoformat()} before logging today"
        )
        self.oldest_missed_date = oldest_missed_date


class NotFoundError(SmileError):
    """Nothing stored for the requested key"""


class StorageError(SmileError):
    """Persistence failure; the message is safe to show, the cause is not"""
