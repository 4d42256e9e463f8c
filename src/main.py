"""
FastAPI Hospital Cluster Application.

Main application entry point: builds one cluster node from the environment,
wires its routers and runs its background tasks for the app's lifetime.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional, Tuple

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.booking_router import router as booking_router
from api.clock_router import router as clock_router
from api.cluster_router import router as cluster_router
from api.replication_router import router as replication_router
from cluster.node import ClusterNode
from cluster.transport import PeerTransport
from core.clock import Clock, system_clock_ms
from core.config import ClusterSettings
from core.constants import (
    API_DESCRIPTION,
    API_PREFIX,
    API_TITLE,
    API_VERSION,
    CONTACT_NAME,
    CORS_ALLOW_CREDENTIALS,
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGINS,
    SERVER_START_MESSAGE,
    SHUTDOWN_MESSAGE,
    STARTUP_MESSAGE,
    STORE_BACKEND_MEMORY,
)
from core.logging_config import configure_logging
from repository.booking_repository import (
    BookingRepository,
    InMemoryBookingRepository,
    SqliteBookingRepository,
)
from repository.seed import register_cluster_nodes, seed_bookings_if_empty
from repository.server_repository import (
    InMemoryServerRepository,
    ServerRepository,
    SqliteServerRepository,
)
from repository.sqlite_database import SqliteDatabase
from services.booking_service import BookingService
from services.workload_service import WorkloadService

logger = logging.getLogger(__name__)


def build_repositories(settings: ClusterSettings) -> Tuple[ServerRepository, BookingRepository]:
    """Create the store backends selected by the settings."""
    if settings.store_backend == STORE_BACKEND_MEMORY:
        return InMemoryServerRepository(), InMemoryBookingRepository()

    database = SqliteDatabase(settings.database_path)
    return SqliteServerRepository(database), SqliteBookingRepository(database)


def build_node(
    settings: ClusterSettings,
    transport: Optional[PeerTransport] = None,
    clock: Clock = system_clock_ms,
) -> ClusterNode:
    """Create a cluster node with the store backends selected by the settings."""
    server_repo, booking_repo = build_repositories(settings)
    return ClusterNode(settings, server_repo, booking_repo, transport=transport, clock=clock)


async def prepare_stores(node: ClusterNode) -> None:
    """Create tables, register every configured node and seed doctors once."""
    await node.server_repo.initialize()
    await node.booking_repo.initialize()
    await register_cluster_nodes(node.server_repo, node.directory.all_peers(), node.local_time())
    if await seed_bookings_if_empty(node.booking_repo):
        logger.info("Seeded empty booking store with default doctors")


@asynccontextmanager
async def application_lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Prepares the stores and starts the node's background tasks on startup;
    stops them (and hands off leadership) on shutdown.
    """
    node: ClusterNode = app.state.node
    logger.info(STARTUP_MESSAGE)
    await prepare_stores(node)
    await node.start()

    yield

    await node.stop()
    logger.info(SHUTDOWN_MESSAGE)


def configure_cors_middleware(application: FastAPI) -> None:
    """Configure CORS middleware with constants."""
    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=CORS_ALLOW_CREDENTIALS,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )


def register_api_routers(application: FastAPI) -> None:
    """Register all API routers under the API prefix."""
    application.include_router(cluster_router, prefix=API_PREFIX)
    application.include_router(clock_router, prefix=API_PREFIX)
    application.include_router(replication_router, prefix=API_PREFIX)
    application.include_router(booking_router, prefix=API_PREFIX)


def create_app(
    node: ClusterNode,
    booking_service: Optional[BookingService] = None,
    workload_service: Optional[WorkloadService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application for one node.

    Separates application creation from configuration for better testability.
    """
    application = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        contact={"name": CONTACT_NAME},
        lifespan=application_lifespan,
    )
    application.state.node = node
    application.state.booking_service = booking_service or BookingService(node.booking_repo, node)
    application.state.workload_service = workload_service or WorkloadService(
        node.node_id, node.local_state
    )

    configure_cors_middleware(application)
    register_api_routers(application)
    return application


def create_app_from_environment() -> FastAPI:
    """Build settings from the environment, configure logging and create the app."""
    settings = ClusterSettings.from_environment()
    configure_logging(settings.log_level, node_id=settings.server_id)
    return create_app(build_node(settings))


def start_development_server() -> None:
    """Start a single node with configuration from environment."""
    import uvicorn

    settings = ClusterSettings.from_environment()
    configure_logging(settings.log_level, node_id=settings.server_id)
    logger.info(f"{SERVER_START_MESSAGE} {settings.server_id} on {settings.host}:{settings.listen_port}")

    uvicorn.run(
        "main:create_app_from_environment",
        factory=True,
        host=settings.host,
        port=settings.listen_port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    start_development_server()
