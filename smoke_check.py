#!/usr/bin/env python3
"""Smoke check of the review flow against a running server.

Needs a database seeded with at least one school, e.g.
``./smoke_check.py http://localhost:8000 1 9.0765 7.3986`` (url, school id,
school latitude, school longitude).
"""
import sys
import requests

FAR_FROM_SCHOOL = 0.02  # degrees, ~2 km


def smoke_check(base_url: str, school_id: int, school_position) -> bool:
    """Login, file a suspicious check-in, find it, override it, check stats."""
    print("🛰  Supervision geofence smoke check")
    print("=" * 50)

    print("\n1. Logging in as admin...")
    try:
        response = requests.post(
            f"{base_url}/auth/login", json={"username": "admin", "password": "admin123"}
        )
    except requests.exceptions.ConnectionError:
        print(f"❌ Cannot connect to {base_url}. Is the server running?")
        return False
    if response.status_code != 200:
        print(f"❌ Login failed: {response.status_code} - {response.text}")
        return False
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}
    print("✅ Token received")

    print("\n2. Recording a check-in far from the school...")
    stats = requests.get(f"{base_url}/location-logs/stats", headers=headers).json()
    lat, lon = school_position
    response = requests.post(
        f"{base_url}/location-logs",
        json={
            "supervisor_id": 1,
            "school_id": school_id,
            "session_id": 1,
            "visit_number": 1,
            "latitude": lat + FAR_FROM_SCHOOL,
            "longitude": lon,
            "accuracy_meters": 15,
        },
    )
    if response.status_code != 201:
        print(f"❌ Check-in failed: {response.status_code} - {response.text}")
        return False
    created = response.json()
    print(f"✅ Log {created['id']}: {created['validation_status']} / {created['validation_message']}")

    print("\n3. Listing suspicious logs...")
    response = requests.get(
        f"{base_url}/location-logs", params={"suspicious_only": "true"}, headers=headers
    )
    if created["is_suspicious"] and created["id"] not in [row["id"] for row in response.json()["logs"]]:
        print("❌ Suspicious log missing from the review list")
        return False
    print(f"✅ {response.json()['total']} suspicious log(s) awaiting review")

    if created["validation_status"] == "pending":
        print("\n4. Overriding the log...")
        response = requests.post(
            f"{base_url}/location-logs/{created['id']}/override",
            json={"approve": False, "reason": "Smoke check: rejected automatically."},
            headers=headers,
        )
        if response.status_code != 200:
            print(f"❌ Override failed: {response.status_code} - {response.text}")
            return False
        print("✅ Override recorded")

        response = requests.post(
            f"{base_url}/location-logs/{created['id']}/override",
            json={"approve": True, "reason": "Smoke check: second attempt must fail."},
            headers=headers,
        )
        if response.status_code != 409:
            print(f"❌ Expected 409 on second override, got {response.status_code}")
            return False
        print("✅ Second override refused")

    print("\n5. Checking stats moved...")
    after = requests.get(f"{base_url}/location-logs/stats", headers=headers).json()
    if after["total_logs"] != stats["total_logs"] + 1:
        print(f"❌ Expected {stats['total_logs'] + 1} logs, got {after['total_logs']}")
        return False
    print("✅ Stats updated")

    print("\n🎉 Smoke check passed!")
    return True


if __name__ == "__main__":
    url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
    school = int(sys.argv[2]) if len(sys.argv) > 2 else 1
    position = (
        (float(sys.argv[3]), float(sys.argv[4])) if len(sys.argv) > 4 else (9.0765, 7.3986)
    )
    sys.exit(0 if smoke_check(url, school, position) else 1)
