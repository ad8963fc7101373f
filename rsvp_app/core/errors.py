"""
Domain exceptions raised by the service layer
"""

from typing import List, Optional


class ValidationError(ValueError):
    """Input rejected before anything was written"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or [message]


class CodeGenerationError(RuntimeError):
    """No free short code found within the allowed attempts"""
