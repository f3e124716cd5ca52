"""
Exceptions raised by the data-access layer.
Every database failure surfaces to the caller as a PersistenceError.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for all table-dao exceptions."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class PersistenceError(AppError):
    """Database or driver failure (connection, SQL syntax, constraint violation)."""
    def __init__(self, message: str = "Persistence failure", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class EntityNotFoundException(AppError):
    """Entity not found where the caller required one."""
    def __init__(self, message: str = "Entity not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
