"""SSE event models for the exhibit loading stream."""

from enum import Enum

from pydantic import BaseModel, Field


class SSEEventType(str, Enum):
    """Types of SSE events."""

    STATUS = "status"
    COMPLETE = "complete"
    FAILED = "failed"
    DONE = "done"


class StatusEvent(BaseModel):
    """Loading status message changed."""

    event_type: str = Field(default=SSEEventType.STATUS.value, description="Event type")
    index: int = Field(ge=0, description="Index into the status message sequence")
    message: str = Field(description="Status message in Japanese")


class CompleteEvent(BaseModel):
    """Generation finished and a signboard is available."""

    event_type: str = Field(default=SSEEventType.COMPLETE.value, description="Event type")


class FailedEvent(BaseModel):
    """Generation failed."""

    event_type: str = Field(default=SSEEventType.FAILED.value, description="Event type")
    error: str = Field(description="Error message shown to the user")


OrchestratorEvent = StatusEvent | CompleteEvent | FailedEvent
