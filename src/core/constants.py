"""
Application constants to avoid hardcoded values.

Following Clean Code principle: "Stop Hardcoding Values"
"""

# API Configuration
API_TITLE = "Hospital Cluster API"
API_VERSION = "1.0.0"
API_DESCRIPTION = """
Appointment booking backend running as a small cluster of cooperating nodes.

## Features

* **Leader Election**: Bully algorithm, highest reachable node id wins
* **Clock Synchronization**: Cristian's algorithm against a reference node
* **Heartbeats**: periodic self-heartbeat and leader-side peer probing
* **Replication**: best-effort fan-out of bookings with eventual consistency
* **Bookings**: doctors, available slots and appointment bookings
"""
API_PREFIX = "/api"

# Server Configuration
DEFAULT_HOST = "0.0.0.0"
DEFAULT_SERVER_ID = 1
DEFAULT_LOG_LEVEL = "info"

# Default cluster membership (id, display name, address)
DEFAULT_CLUSTER_NODES = (
    (1, "Server-Mumbai", "localhost:5001"),
    (2, "Server-Delhi", "localhost:5002"),
    (3, "Server-Bangalore", "localhost:5003"),
)

# Timers (seconds)
HEARTBEAT_INTERVAL_SECONDS = 5.0
LEADER_PROBE_INTERVAL_SECONDS = 10.0
CLOCK_SYNC_INTERVAL_SECONDS = 30.0
ELECTION_STARTUP_DELAY_SECONDS = 3.0
ELECTION_RESPONSE_DELAY_SECONDS = 1.0
LEADER_HANDOFF_DELAY_SECONDS = 1.0

# Outbound call timeouts (seconds)
ELECTION_TIMEOUT_SECONDS = 2.0
LEADER_UPDATE_TIMEOUT_SECONDS = 1.0
CLOCK_SYNC_TIMEOUT_SECONDS = 2.0
HEALTH_PROBE_TIMEOUT_SECONDS = 2.0
REPLICATION_TIMEOUT_SECONDS = 2.0

# Replication fan-out (1 = one peer at a time)
REPLICATION_MAX_CONCURRENCY = 1

# Simulated work for the concurrent request endpoint
MAX_SIMULATED_WORK_SECONDS = 0.1

# Store Configuration
STORE_BACKEND_SQLITE = "sqlite"
STORE_BACKEND_MEMORY = "memory"
DEFAULT_STORE_BACKEND = STORE_BACKEND_SQLITE
DEFAULT_DATABASE_PATH = "hospital.db"

# Booking Configuration
CONFIRMATION_ID_PREFIX = "CONF"
CONFIRMATION_ID_LENGTH = 9
CONSISTENCY_MODEL = "eventual"

# API Messages
API_STATUS_HEALTHY = "healthy"
MESSAGE_ELECTION_ALIVE = "Server is alive"
MESSAGE_ELECTION_ACKNOWLEDGED = "Server acknowledges election"
MESSAGE_LEADER_UPDATED = "Leader updated"
MESSAGE_BOOKING_REPLICATED = "Booking replicated"
MESSAGE_SLOT_REPLICATED = "Slot update replicated"

# Error Messages
ERROR_DOCTOR_NOT_FOUND = "Doctor not found"
ERROR_SLOT_UNAVAILABLE = "Slot no longer available"
ERROR_SYNC_UNAVAILABLE = "No reference node reachable for clock sync"

# Application Lifecycle Messages
STARTUP_MESSAGE = "🚀 Hospital cluster node starting up..."
SHUTDOWN_MESSAGE = "💤 Hospital cluster node shutting down..."
SERVER_START_MESSAGE = "🌟 Starting hospital cluster node"

# CORS Configuration (Development - restrict in production)
CORS_ALLOW_ORIGINS = ["*"]
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = ["*"]
CORS_ALLOW_HEADERS = ["*"]

# Environment Variable Names
ENV_SERVER_ID = "SERVER_ID"
ENV_HOST = "HOST"
ENV_PORT = "PORT"
ENV_CLUSTER_NODES = "CLUSTER_NODES"
ENV_STORE_BACKEND = "STORE_BACKEND"
ENV_DATABASE_PATH = "DATABASE_PATH"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_ELECTION_STARTUP_DELAY = "ELECTION_STARTUP_DELAY"
ENV_CLOCK_SYNC_INTERVAL = "CLOCK_SYNC_INTERVAL"

# Contact Information
CONTACT_NAME = "Hospital Cluster API"

# HTTP Endpoints (relative to API_PREFIX)
ENDPOINT_HEALTH = "/health"
ENDPOINT_SERVERS = "/servers"
ENDPOINT_ELECTION = "/servers/election"
ENDPOINT_ELECTION_START = "/servers/election/start"
ENDPOINT_LEADER_UPDATE = "/servers/leader-update"
ENDPOINT_CLOCK_SYNC = "/clock-sync"
ENDPOINT_CLOCK_SYNC_SYNCHRONIZE = "/clock-sync/synchronize"
ENDPOINT_REPLICATE_BOOKING = "/replicate/booking"
ENDPOINT_REPLICATE_SLOT = "/replicate/slot"
ENDPOINT_DOCTORS = "/doctors"
ENDPOINT_DOCTOR_SLOTS = "/doctors/{doctor_id}/slots"
ENDPOINT_BOOKINGS = "/bookings"
ENDPOINT_CONCURRENT = "/concurrent"

# Logging Configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Label used in the "server" field of API replies
SERVER_LABEL_FORMAT = "Server-{server_id}"
