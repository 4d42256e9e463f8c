"""
Response wrappers shared by the API routers.

Read endpoints wrap their payload with the answering server's label and
time so clients can tell which node served them.
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from .booking import ProcessedRequest

T = TypeVar("T")


class ServerEnvelope(BaseModel, Generic[T]):
    """Standard read response wrapper."""

    data: T = Field(description="Response payload")
    server: str = Field(description="Label of the answering server")
    timestamp: int = Field(description="Server time in epoch milliseconds")


class ClockSyncResult(BaseModel):
    """Result of a manually triggered clock synchronization."""

    success: bool = True
    clock_offset_ms: int = Field(alias="clockOffset")
    reference: Optional[int] = Field(None, description="Id of the node used as reference")
    round_trip_time: float = Field(alias="rtt")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class ConcurrentWorkResponse(BaseModel):
    """Results of a simulated concurrent batch."""

    success: bool = True
    results: List[ProcessedRequest] = Field(default_factory=list)
    server: str
