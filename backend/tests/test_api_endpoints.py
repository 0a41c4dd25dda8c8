"""
test_api_endpoints.py
=====================
API test cases for the OPD token allocation service.
Tests cover:
 - Health and index endpoints
 - Token request, cancellation and emergency flows
 - Delay propagation
 - Doctor registration and listing
 - Input validation
"""

import pytest
from fastapi.testclient import TestClient

from opd_queue.main import app


# --------------------------------------------------------------------------
# FIXTURE: fresh engine per test
# --------------------------------------------------------------------------

@pytest.fixture
def client():
    """
    Entering the client runs the lifespan, which builds a new engine seeded
    with the three demo doctors.
    """
    with TestClient(app) as c:
        yield c


def request_token(client, slot_time="09:00", doctor_id="DOC001", source="online", patient_id="PAT0001"):
    return client.post("/api/tokens/request", json={
        "patient_id": patient_id,
        "patient_name": "Amit Sharma",
        "doctor_id": doctor_id,
        "slot_time": slot_time,
        "source": source,
    })


def register_small_doctor(client, doctor_id="DOC100"):
    res = client.post("/api/doctors", json={
        "doctor_id": doctor_id,
        "name": "Dr. Rao",
        "start_time": "09:00",
        "end_time": "10:00",
        "slot_duration": 30,
        "slot_capacity": 1,
    })
    assert res.status_code == 201
    return res.json()


# --------------------------------------------------------------------------
# TESTS
# --------------------------------------------------------------------------

def test_root_and_health(client):
    res = client.get("/api")
    assert res.status_code == 200
    assert "request_token" in res.json()["endpoints"]

    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


def test_demo_doctors_seeded(client):
    res = client.get("/api/doctors")
    assert res.status_code == 200
    doctors = {d["doctor_id"]: d for d in res.json()}
    assert set(doctors) == {"DOC001", "DOC002", "DOC003"}
    assert doctors["DOC001"]["capacity"] == 24
    assert doctors["DOC003"]["capacity"] == 18
    assert doctors["DOC001"]["utilization"] == 0


def test_request_token(client):
    res = request_token(client, slot_time="10:00")
    assert res.status_code == 201

    data = res.json()
    assert data["success"] is True
    assert data["reassigned"] is False
    token = data["token"]
    assert token["slot_time"] == "10:00"
    assert token["sequence_number"] == 1
    assert token["priority"] == 100
    assert token["estimated_time"] == "10:00"

    res = client.get(f"/api/tokens/{token['id']}")
    assert res.status_code == 200
    assert res.json()["patient_name"] == "Amit Sharma"


def test_request_token_unknown_doctor_and_slot(client):
    res = request_token(client, doctor_id="DOC999")
    assert res.status_code == 404
    detail = res.json()["detail"]
    assert detail["error"] == "doctor_not_found"
    assert "DOC999" in detail["message"]

    res = request_token(client, slot_time="18:00")
    assert res.status_code == 404
    assert res.json()["detail"]["error"] == "slot_not_found"


def test_waitlist_and_reallocation_flow(client):
    register_small_doctor(client)
    first = request_token(client, doctor_id="DOC100", slot_time="09:00").json()["token"]
    request_token(client, doctor_id="DOC100", slot_time="09:30")

    res = request_token(client, doctor_id="DOC100", slot_time="09:00", patient_id="PAT0003")
    assert res.status_code == 202
    waiting = res.json()
    assert waiting["success"] is False
    assert waiting["error"] == "all_slots_full"
    assert waiting["waiting_position"] == 1

    res = client.get("/api/waiting-list")
    assert [t["id"] for t in res.json()] == [waiting["token"]["id"]]

    res = client.post("/api/tokens/cancel", json={"token_id": first["id"], "reason": "unwell"})
    assert res.status_code == 200
    data = res.json()
    assert data["success"] is True
    assert data["reallocated"]["id"] == waiting["token"]["id"]
    assert data["reallocated"]["slot_time"] == "09:00"

    status = client.get("/api/status").json()
    assert status["waiting_list"] == 0
    assert status["total_tokens"] == 3


def test_cancel_unknown_token(client):
    res = client.post("/api/tokens/cancel", json={"token_id": "nope"})
    assert res.status_code == 404
    assert res.json()["detail"] == {"error": "token_not_found", "message": "Token nope not found"}


def test_emergency_preemption_and_denial(client):
    register_small_doctor(client)
    walkin = request_token(client, doctor_id="DOC100", slot_time="09:00", source="walkin").json()["token"]
    request_token(client, doctor_id="DOC100", slot_time="09:30", source="followup")

    payload = {"patient_id": "EM1", "patient_name": "Rahul Singh", "doctor_id": "DOC100", "preferred_slot": "09:00"}
    res = client.post("/api/tokens/emergency", json=payload)
    assert res.status_code == 201
    data = res.json()
    assert data["displaced_patient_id"] == walkin["patient_id"]
    assert data["token"]["priority"] == 1005

    res = client.post("/api/tokens/emergency", json=dict(payload, patient_id="EM2", preferred_slot="09:30"))
    assert res.status_code == 201

    res = client.post("/api/tokens/emergency", json=dict(payload, patient_id="EM3"))
    assert res.status_code == 409
    assert res.json()["detail"]["error"] == "emergency_preemption_denied"

    res = client.post("/api/tokens/emergency", json=dict(payload, patient_id="EM4", preferred_slot="12:00"))
    assert res.status_code == 409


def test_delay_endpoint(client):
    request_token(client, slot_time="11:00")

    res = client.post("/api/slots/delay", json={"doctor_id": "DOC001", "slot_time": "10:00", "delay_minutes": 20})
    assert res.status_code == 200
    assert res.json()["affected_slots"] == 3

    doctor = client.get("/api/doctors/DOC001").json()
    assert [s["delay_minutes"] for s in doctor["slots"]] == [0, 20, 20, 20]
    assert doctor["slots"][2]["tokens"][0]["estimated_time"] == "11:20"

    res = client.post("/api/slots/delay", json={"doctor_id": "DOC999", "slot_time": "10:00", "delay_minutes": 5})
    assert res.status_code == 404
    assert res.json()["detail"]["error"] == "doctor_not_found"


def test_register_duplicate_doctor(client):
    res = client.post("/api/doctors", json={"doctor_id": "DOC001", "name": "Dr. Again"})
    assert res.status_code == 409
    assert res.json()["detail"]["error"] == "duplicate_doctor"

    res = client.get("/api/doctors/DOC404")
    assert res.status_code == 404


@pytest.mark.parametrize("path, payload", [
    ("/api/tokens/request", {"patient_id": "P1", "patient_name": "X", "doctor_id": "DOC001", "slot_time": "09:00", "source": "vip"}),
    ("/api/tokens/request", {"patient_name": "X", "doctor_id": "DOC001", "slot_time": "09:00", "source": "online"}),
    ("/api/slots/delay", {"doctor_id": "DOC001", "slot_time": "09:00", "delay_minutes": -5}),
    ("/api/doctors", {"doctor_id": "DOC200", "name": "Dr. Y", "start_time": "9"}),
])
def test_invalid_input(client, path, payload):
    res = client.post(path, json=payload)
    assert res.status_code == 422
