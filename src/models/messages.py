"""
Inter-node message models.

Field names on the wire are camelCase; Python attributes are snake_case.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from core.clock import system_clock_ms


class WireModel(BaseModel):
    """Base model accepting both wire aliases and attribute names."""

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class Acknowledgement(WireModel):
    """Generic success/message reply."""

    success: bool = True
    message: Optional[str] = None


class ElectionReply(str, Enum):
    """How a node answers an election message."""

    ALIVE = "alive"  # receiver outranks the candidate and will contend
    ACKNOWLEDGE = "acknowledge"  # receiver defers


class ElectionMessage(WireModel):
    """Bully election message sent to higher-id peers."""

    candidate_id: int = Field(alias="candidateId", ge=1)
    sent_at: int = Field(default_factory=system_clock_ms, alias="timestamp")


class ElectionResponse(WireModel):
    """Reply to an election message; success is true when the receiver is alive."""

    success: bool
    reply: ElectionReply
    message: str

    @property
    def is_alive(self) -> bool:
        return self.reply == ElectionReply.ALIVE


class ElectionTriggerResponse(WireModel):
    """Reply to a manual election trigger."""

    success: bool = True
    outcome: str


class LeaderUpdate(WireModel):
    """Announcement of a newly elected leader."""

    new_leader_id: int = Field(alias="newLeaderId", ge=1)
    sent_at: int = Field(default_factory=system_clock_ms, alias="timestamp")


class ClockSyncRequest(WireModel):
    """Clock sync request body."""

    client_time: Optional[int] = Field(None, alias="clientTime")


class ClockSyncExchange(WireModel):
    """One Cristian's algorithm exchange, all values in epoch milliseconds."""

    client_send_time: int = Field(alias="clientSendTime")
    server_time: int = Field(alias="serverTime")
    round_trip_time: float = Field(alias="rtt")
    adjusted_time: float = Field(alias="adjustedTime")
    clock_offset_ms: int = Field(default=0, alias="clockOffset")


class ClockSyncResponse(ClockSyncExchange):
    """Clock sync endpoint reply."""

    success: bool = True
    server: Optional[str] = None


class HealthResponse(WireModel):
    """Health endpoint reply."""

    status: str
    server_id: int = Field(alias="serverId")
    port: int
    timestamp: int
