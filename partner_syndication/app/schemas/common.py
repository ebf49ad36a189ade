"""Common schemas (errors, messages) and the camelCase wire base."""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models: snake_case in Python, camelCase in JSON. Accepts either on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(..., description="Error message")
    code: Optional[str] = Field(None, description="Optional error code")
    extra: Optional[Dict[str, Any]] = Field(None, description="Extra context")


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str = Field(..., description="Message text")
