from pydantic import BaseModel, Field


class MessageResult(BaseModel):
    """Outcome of a successful send request."""

    status: str = Field(..., description="Human-readable confirmation")
