"""
Hospital Cluster API - Pydantic Models

This module contains the data models used throughout the cluster and booking API.
"""

from .booking import (
    Booking,
    BookingConfirmation,
    BookingCreate,
    ConcurrentWorkRequest,
    Doctor,
    ProcessedRequest,
    Slot,
)
from .messages import (
    Acknowledgement,
    ClockSyncExchange,
    ClockSyncResponse,
    ElectionMessage,
    ElectionReply,
    ElectionResponse,
    ElectionTriggerResponse,
    HealthResponse,
    LeaderUpdate,
)
from .node import ElectionState, Node, NodeRole, NodeRuntimeState, NodeStatus, ServerRecord
from .replication import BookingCreated, ReplicationEvent, SlotMarkedUnavailable
from .responses import ClockSyncResult, ConcurrentWorkResponse, ServerEnvelope

__all__ = [
    "Booking",
    "BookingConfirmation",
    "BookingCreate",
    "ConcurrentWorkRequest",
    "Doctor",
    "ProcessedRequest",
    "Slot",
    "Acknowledgement",
    "ClockSyncExchange",
    "ClockSyncResponse",
    "ElectionMessage",
    "ElectionReply",
    "ElectionResponse",
    "ElectionTriggerResponse",
    "HealthResponse",
    "LeaderUpdate",
    "ElectionState",
    "Node",
    "NodeRole",
    "NodeRuntimeState",
    "NodeStatus",
    "ServerRecord",
    "BookingCreated",
    "ReplicationEvent",
    "SlotMarkedUnavailable",
    "ClockSyncResult",
    "ConcurrentWorkResponse",
    "ServerEnvelope",
]
