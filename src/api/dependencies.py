"""
FastAPI dependencies for dependency injection.

Every application instance carries its own node and services on
``app.state``, so several nodes can live in one process (tests do this).
"""

from fastapi import Request

from cluster.node import ClusterNode
from services.booking_service import BookingService
from services.workload_service import WorkloadService


def get_cluster_node(request: Request) -> ClusterNode:
    """Get the cluster node served by this application."""
    return request.app.state.node


def get_booking_service(request: Request) -> BookingService:
    """Get booking service instance."""
    return request.app.state.booking_service


def get_workload_service(request: Request) -> WorkloadService:
    """Get workload service instance."""
    return request.app.state.workload_service
