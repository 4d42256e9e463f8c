"""
Python SDK Client for the Hospital Cluster API.

Requests are spread round-robin over the configured nodes; a node that
cannot be reached is skipped and the next one is tried.
"""

from typing import Any, Dict, List, Optional
import logging

import requests
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_BASE_URLS = (
    "http://localhost:5001",
    "http://localhost:5002",
    "http://localhost:5003",
)


class HospitalAPIError(Exception):
    """A node answered with an error status."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API error {status_code}: {detail}")


class ClusterUnavailableError(Exception):
    """No configured node could be reached."""
    pass


class Doctor(BaseModel):
    """Doctor model."""

    id: int
    name: str
    specialization: str
    experience: str
    hospital: str


class BookingConfirmation(BaseModel):
    """Booking confirmation model."""

    success: bool
    consistency: str
    confirmation_id: str = Field(alias="confirmationId")
    timestamp: int
    server: str


class ServerStatus(BaseModel):
    """One row of the cluster status view."""

    id: int
    name: str
    port: int
    role: str
    is_leader: bool = Field(alias="isLeader")
    last_heartbeat: int = Field(alias="lastHeartbeat")
    clock_offset: int = Field(alias="clockOffset")
    clock: int
    connections: int
    status: str


class HospitalClient:
    """
    Python client for the Hospital Cluster API.

    Example usage:
        ```python
        from hospital_client import HospitalClient

        client = HospitalClient()
        doctors = client.list_doctors()
        slots = client.list_slots(doctors[0].id)
        confirmation = client.book(doctors[0].id, "Asha Verma", slots[0])
        print(confirmation.confirmation_id, "served by", client.last_server)
        ```
    """

    def __init__(
        self,
        base_urls: Optional[List[str]] = None,
        timeout: float = 5.0,
    ):
        """
        Initialize the client.

        Args:
            base_urls: Base URLs of the cluster nodes
            timeout: Per-request timeout in seconds
        """
        self.base_urls = [url.rstrip("/") for url in (base_urls or DEFAULT_BASE_URLS)]
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        self._next_index = 0
        self.last_server: Optional[str] = None

    # Booking operations

    def list_doctors(self) -> List[Doctor]:
        response = self._request("GET", "/doctors")
        return [Doctor(**doctor) for doctor in response.get("data", [])]

    def list_slots(self, doctor_id: int) -> List[str]:
        """Available slot times of one doctor."""
        response = self._request("GET", f"/doctors/{doctor_id}/slots")
        return list(response.get("data", []))

    def book(self, doctor_id: int, patient_name: str, slot_time: str) -> BookingConfirmation:
        """
        Book a slot on whichever node answers.

        Raises:
            HospitalAPIError: With status 400 when the slot is already taken
        """
        payload = {"doctorId": doctor_id, "patientName": patient_name, "slotTime": slot_time}
        response = self._request("POST", "/bookings", json=payload)
        return BookingConfirmation(**response)

    def list_bookings(self) -> List[Dict[str, Any]]:
        response = self._request("GET", "/bookings")
        return list(response.get("data", []))

    # Cluster operations

    def list_servers(self) -> List[ServerStatus]:
        response = self._request("GET", "/servers")
        return [ServerStatus(**server) for server in response.get("data", [])]

    def health_check(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def start_election(self) -> Dict[str, Any]:
        """Ask the next node to run an election round."""
        return self._request("POST", "/servers/election/start")

    def clock_sync(self, client_time: int) -> Dict[str, Any]:
        return self._request("GET", "/clock-sync", params={"clientTime": client_time})

    def run_concurrent(self, count: int) -> Dict[str, Any]:
        """Send ``count`` simulated requests to be processed concurrently."""
        payload = {"requests": [{"id": index} for index in range(count)]}
        return self._request("POST", "/concurrent", json=payload)

    def _ordered_urls(self) -> List[str]:
        start = self._next_index
        self._next_index = (self._next_index + 1) % len(self.base_urls)
        return self.base_urls[start:] + self.base_urls[:start]

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Make an HTTP request, failing over to the next node on connection errors.

        Error statuses are not retried on other nodes. A GET that times out
        after connecting is retried on the next node; any other method
        re-raises, since the first node may already have applied it.
        """
        failures = []
        for base_url in self._ordered_urls():
            url = f"{base_url}/api{path}"
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.exceptions.ConnectionError as e:
                logger.warning(f"Node {base_url} unreachable: {e}")
                failures.append(base_url)
                continue
            except requests.exceptions.RequestException as e:
                if method.upper() != "GET":
                    logger.error(f"{method} {url} failed after sending: {e}")
                    raise
                logger.warning(f"Node {base_url} did not answer: {e}")
                failures.append(base_url)
                continue

            self.last_server = base_url
            if response.status_code >= 400:
                try:
                    detail = response.json().get("detail", response.text)
                except ValueError:
                    detail = response.text
                logger.error(f"API error from {base_url}: {detail}")
                raise HospitalAPIError(response.status_code, str(detail))
            return response.json()

        raise ClusterUnavailableError(f"No node reachable (tried {failures})")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.session.close()
