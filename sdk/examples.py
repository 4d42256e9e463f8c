"""
Example usage of the Hospital Cluster Python SDK client.

Start the cluster first (``python src/start_cluster.py``).
"""

import time

from hospital_client import ClusterUnavailableError, HospitalAPIError, HospitalClient


def booking_example(client: HospitalClient):
    """Book the first free slot of the first doctor."""
    print("=== Booking Example ===\n")

    doctors = client.list_doctors()
    for doctor in doctors:
        print(f"{doctor.id}: {doctor.name} ({doctor.specialization}, {doctor.hospital})")

    slots = client.list_slots(doctors[0].id)
    print(f"\nFree slots of {doctors[0].name}: {', '.join(slots)}")

    confirmation = client.book(doctors[0].id, "Asha Verma", slots[0])
    print(f"Booked {slots[0]}: {confirmation.confirmation_id} on {confirmation.server}")

    # Booking the same slot again is rejected
    try:
        client.book(doctors[0].id, "Ravi Menon", slots[0])
    except HospitalAPIError as e:
        print(f"Second booking rejected ({e.status_code}): {e.detail}")


def cluster_status_example(client: HospitalClient):
    """Show every node's role and clock."""
    print("\n=== Cluster Status ===\n")

    for server in client.list_servers():
        marker = "*" if server.is_leader else " "
        print(
            f"{marker} {server.name:<18} {server.role:<9} {server.status:<9} "
            f"offset={server.clock_offset}ms connections={server.connections}"
        )


def clock_sync_example(client: HospitalClient):
    """One Cristian exchange against whichever node answers."""
    print("\n=== Clock Sync ===\n")

    sent_at = int(time.time() * 1000)
    reply = client.clock_sync(sent_at)
    received_at = int(time.time() * 1000)
    rtt = received_at - sent_at
    print(f"serverTime={reply['serverTime']} rtt={rtt}ms estimate={reply['serverTime'] + rtt / 2:.0f}")


def election_example(client: HospitalClient):
    """Trigger an election and show the new leader."""
    print("\n=== Election ===\n")

    result = client.start_election()
    print(f"Election outcome on {client.last_server}: {result['outcome']}")
    time.sleep(2)
    leaders = [server.name for server in client.list_servers() if server.is_leader]
    print(f"Leader: {', '.join(leaders) or 'none'}")


if __name__ == "__main__":
    try:
        with HospitalClient() as hospital_client:
            booking_example(hospital_client)
            cluster_status_example(hospital_client)
            clock_sync_example(hospital_client)
            election_example(hospital_client)
    except ClusterUnavailableError as e:
        print(f"Cluster not running: {e}")
