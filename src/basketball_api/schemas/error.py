"""
Error response schema shared by all exception handlers.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model for all API errors."""

    error_code: str = Field(..., description="Unique error code for identification")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error context and metadata"
    )
    timestamp: datetime = Field(..., description="Error occurrence timestamp")
    path: Optional[str] = Field(None, description="API path where error occurred")
    method: Optional[str] = Field(None, description="HTTP method used")
