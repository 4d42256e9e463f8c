"""
Tests for the Python client's failover behaviour.
"""

from unittest.mock import MagicMock

import pytest
import requests

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'sdk'))

from hospital_client import ClusterUnavailableError, HospitalAPIError, HospitalClient

URLS = ["http://node-1:5001", "http://node-2:5002", "http://node-3:5003"]


def json_response(status_code, body):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    response.text = str(body)
    return response


@pytest.fixture
def client():
    client = HospitalClient(base_urls=URLS)
    client.session = MagicMock()
    return client


class TestHospitalClient:
    """Test round-robin, failover and error mapping."""

    def test_requests_rotate_between_nodes(self, client):
        client.session.request.return_value = json_response(200, {"status": "healthy"})

        client.health_check()
        client.health_check()

        urls = [call.args[1] for call in client.session.request.call_args_list]
        assert urls == ["http://node-1:5001/api/health", "http://node-2:5002/api/health"]

    def test_fails_over_on_connection_error(self, client):
        client.session.request.side_effect = [
            requests.exceptions.ConnectionError("refused"),
            json_response(200, {"data": [], "server": "Server-2", "timestamp": 0}),
        ]

        assert client.list_doctors() == []
        assert client.last_server == "http://node-2:5002"

    def test_every_node_down(self, client):
        client.session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(ClusterUnavailableError):
            client.list_bookings()

        assert client.session.request.call_count == 3

    def test_error_status_is_not_retried(self, client):
        client.session.request.return_value = json_response(
            400, {"detail": "Slot no longer available: doctor 1 at 09:00"}
        )

        with pytest.raises(HospitalAPIError) as exc_info:
            client.book(1, "Asha Verma", "09:00")

        assert exc_info.value.status_code == 400
        assert client.session.request.call_count == 1

    def test_book_parses_confirmation(self, client):
        client.session.request.return_value = json_response(200, {
            "success": True,
            "consistency": "eventual",
            "confirmationId": "CONF1A2B3C4D5",
            "timestamp": 1_700_000_000_000,
            "server": "Server-1",
        })

        confirmation = client.book(1, "Asha Verma", "09:00")

        assert confirmation.confirmation_id == "CONF1A2B3C4D5"
        payload = client.session.request.call_args.kwargs["json"]
        assert payload == {"doctorId": 1, "patientName": "Asha Verma", "slotTime": "09:00"}

    def test_booking_is_not_resent_after_read_timeout(self, client):
        client.session.request.side_effect = [
            requests.exceptions.ReadTimeout("read timed out"),
            json_response(200, {"success": True}),
        ]

        with pytest.raises(requests.exceptions.ReadTimeout):
            client.book(1, "Asha Verma", "09:00")

        posts = [call.args[1] for call in client.session.request.call_args_list]
        assert posts == ["http://node-1:5001/api/bookings"]

    def test_booking_fails_over_on_connect_timeout(self, client):
        client.session.request.side_effect = [
            requests.exceptions.ConnectTimeout("connect timed out"),
            json_response(200, {
                "success": True,
                "consistency": "eventual",
                "confirmationId": "CONF1A2B3C4D5",
                "timestamp": 1_700_000_000_000,
                "server": "Server-2",
            }),
        ]

        confirmation = client.book(1, "Asha Verma", "09:00")

        assert confirmation.server == "Server-2"
        assert client.session.request.call_count == 2

    def test_read_timeout_on_get_tries_next_node(self, client):
        client.session.request.side_effect = [
            requests.exceptions.ReadTimeout("read timed out"),
            json_response(200, {"status": "healthy"}),
        ]

        assert client.health_check() == {"status": "healthy"}
        assert client.last_server == "http://node-2:5002"
