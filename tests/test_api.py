"""HTTP API tests through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from sos_guardian.main import app


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client


def _onboard(client, name="Ayanda"):
    return client.post("/onboarding/", json={"name": name})


def _add_contact(client, name="Mom", phone="+27821234567", **extra):
    return client.post("/emergency_contacts/", json={"name": name, "phone_number": phone, **extra})


class TestOnboardingApi:

    def test_onboarding_flow(self, client):
        assert client.get("/onboarding/").json()["onboarding_complete"] is False

        resp = _onboard(client)
        assert resp.status_code == 201
        assert resp.json() == {"onboarding_complete": True, "user_name": "Ayanda", "shake_enabled": True}

    def test_empty_name_rejected(self, client):
        assert _onboard(client, name="").status_code == 422


class TestContactsApi:

    def test_crud_and_primary_promotion(self, client):
        a = _add_contact(client, "A", "+1").json()
        b = _add_contact(client, "B", "+2", is_primary=True).json()
        assert a["is_primary"] is True
        assert b["is_primary"] is True
        listed = client.get("/emergency_contacts/").json()
        assert [(c["name"], c["is_primary"]) for c in listed] == [("A", False), ("B", True)]

        assert client.delete(f"/emergency_contacts/{b['id']}").json() == {"detail": "Emergency contact deleted"}
        listed = client.get("/emergency_contacts/").json()
        assert [(c["id"], c["is_primary"]) for c in listed] == [(a["id"], True)]

    def test_set_primary(self, client):
        _add_contact(client, "A", "+1")
        b = _add_contact(client, "B", "+2").json()
        resp = client.put(f"/emergency_contacts/{b['id']}/primary")
        assert resp.status_code == 200
        assert [c["is_primary"] for c in resp.json()] == [False, True]

    def test_stale_ids_are_tolerated(self, client):
        _add_contact(client)
        assert client.put("/emergency_contacts/123/primary").status_code == 200
        assert client.delete("/emergency_contacts/123").status_code == 200
        assert len(client.get("/emergency_contacts/").json()) == 1
        feed = client.get("/notifications/").json()
        assert [n["message"] for n in feed] == ["Contact added"]

    def test_get_missing_contact(self, client):
        assert client.get("/emergency_contacts/nope").status_code == 404


class TestSosApi:

    def test_trigger_without_contacts_conflicts(self, client):
        resp = client.post("/sos/")
        assert resp.status_code == 409
        assert client.get("/sos/status").json()["state"] == "idle"
        feed = client.get("/notifications/").json()
        assert [n["message"] for n in feed] == ["No emergency contacts configured"]

    def test_trigger_then_cancel(self, client):
        _add_contact(client)

        resp = client.post("/sos/")
        assert resp.status_code == 202
        first = resp.json()
        assert first["state"] == "counting"
        assert first["source"] == "manual"

        again = client.post("/sos/").json()
        assert again["countdown_id"] == first["countdown_id"]

        cancelled = client.post("/sos/cancel").json()
        assert cancelled["state"] == "idle"
        assert client.get("/notifications/", params={"limit": 1}).json()[0]["message"] == "Emergency SOS cancelled"

    def test_cancel_when_idle(self, client):
        assert client.post("/sos/cancel").json()["state"] == "idle"

    def test_alert_log_empty(self, client):
        assert client.get("/sos/alerts").json() == []
        assert client.get("/sos/alerts/unknown/notifications").status_code == 404


class TestMotionApi:

    def test_shake_samples_start_countdown(self, client):
        _onboard(client)
        _add_contact(client)

        samples = [{"x": 12.0, "y": 12.0, "z": 9.8, "timestamp": 1.0 + i * 0.05} for i in range(10)]
        resp = client.post("/motion/samples", json={"samples": samples})

        assert resp.json() == {"accepted": 10, "shakes": 1}
        assert client.get("/sos/status").json()["source"] == "shake"
        client.post("/sos/cancel")

    def test_device_timestamps_do_not_affect_debounce(self, client):
        _onboard(client)
        _add_contact(client)
        now = [500.0]
        client.app.state.sos.detector.clock = lambda: now[0]

        epoch = {"x": 12.0, "y": 12.0, "z": 9.8, "timestamp": 1_760_000_000.0}
        assert client.post("/motion/samples", json={"samples": [epoch]}).json()["shakes"] == 1
        client.post("/sos/cancel")

        untimed = {"x": 12.0, "y": 12.0, "z": 9.8}
        shakes = 0
        for _ in range(3):
            now[0] += 3600.0
            shakes += client.post("/motion/samples", json={"samples": [untimed]}).json()["shakes"]
            client.post("/sos/cancel")
        assert shakes == 3

    def test_samples_ignored_before_onboarding(self, client):
        _add_contact(client)
        resp = client.post("/motion/samples", json={"samples": [{"x": 20.0, "y": 0.0, "z": 0.0}]})
        assert resp.json()["shakes"] == 0

    def test_shake_toggle(self, client):
        _onboard(client)
        assert client.put("/motion/shake", json={"enabled": False}).json()["enabled"] is False
        assert client.get("/onboarding/").json()["shake_enabled"] is False
        assert client.put("/motion/shake", json={"enabled": True}).json()["enabled"] is True

    def test_denied_permission_disables(self, client):
        _onboard(client)
        status = client.post("/motion/permission", json={"granted": False}).json()
        assert status["permission"] == "denied"
        assert status["enabled"] is False


class TestLocationApi:

    def test_permission_and_fix(self, client):
        assert client.get("/location/").json()["permission"] == "unknown"

        client.post("/location/permission", json={"granted": True})
        resp = client.post("/location/fix", json={"latitude": -29.85, "longitude": 31.02, "accuracy": 5})
        assert resp.status_code == 201
        body = resp.json()
        assert body["permission"] == "granted"
        assert body["location"]["latitude"] == -29.85

    def test_refresh_without_permission(self, client):
        body = client.post("/location/refresh").json()
        assert body["location"] is None
        assert body["last_error"] == "denied"

    def test_invalid_fix_rejected(self, client):
        assert client.post("/location/fix", json={"latitude": 200, "longitude": 0}).status_code == 422


def test_ping(client):
    assert client.get("/ping").json() == {"status": "ok"}
