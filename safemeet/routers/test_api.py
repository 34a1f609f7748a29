"""
HTTP tests for the /api surface, with the store and providers faked

Run with: pytest safemeet/routers/test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from ..conftest import FakeEmailService, FakePushService, InMemoryIdentityStore
from ..dependencies import get_email, get_hooks, get_identity_store, get_push
from ..main import app
from ..services.push_service import PushProviderError
from ..services.side_effects import SideEffectQueue


@pytest.fixture
def api():
    store = InMemoryIdentityStore()
    push = FakePushService()
    email = FakeEmailService()
    hooks = SideEffectQueue()

    app.dependency_overrides[get_identity_store] = lambda: store
    app.dependency_overrides[get_push] = lambda: push
    app.dependency_overrides[get_email] = lambda: email
    app.dependency_overrides[get_hooks] = lambda: hooks

    # No context manager: lifespan (database pool, worker) is not started
    client = TestClient(app)
    client.store, client.push, client.email = store, push, email
    yield client

    app.dependency_overrides.clear()


class TestAuthEndpoints:

    def test_full_scenario(self, api):
        identifier = "Alice@Example.com"

        response = api.post("/api/send-otp", json={"identifier": identifier})
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "OTP sent"}

        code = api.email.last_code("alice@example.com")
        response = api.post("/api/verify-otp", json={"identifier": identifier, "code": code})
        assert response.json() == {"success": True, "message": "OTP verified"}

        response = api.post("/api/signup", json={
            "identifier": identifier,
            "password": "p1",
            "fullName": "Alice",
        })
        assert response.json() == {"success": True, "message": "Signup successful"}
        assert api.store.records["alice@example.com"].full_name == "Alice"

        response = api.post("/api/login", json={"identifier": identifier, "password": "p1"})
        assert response.json() == {"success": True, "message": "Login successful"}

        response = api.post("/api/login", json={"identifier": identifier, "password": "p2"})
        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "Invalid credentials"}

        api.post("/api/send-otp", json={"identifier": identifier})
        response = api.post("/api/login", json={"identifier": identifier, "password": "p1"})
        assert response.json() == {"success": False, "message": "OTP not verified"}

    def test_wrong_code_is_not_an_http_error(self, api):
        api.post("/api/send-otp", json={"identifier": "alice@example.com"})
        code = api.email.last_code("alice@example.com")
        wrong = "100000" if code != "100000" else "100001"

        response = api.post("/api/verify-otp", json={"identifier": "alice@example.com", "code": wrong})

        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "Invalid or expired OTP"}

    def test_signup_before_verification(self, api):
        response = api.post("/api/signup", json={"identifier": "alice@example.com", "password": "p1"})

        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "OTP not verified"}

    def test_missing_identifier_is_400(self, api):
        response = api.post("/api/send-otp", json={})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["errors"][0]["field"] == "identifier"

    def test_malformed_identifier_is_400(self, api):
        response = api.post("/api/send-otp", json={"identifier": "12ab"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.parametrize("path, body, field", [
        ("/api/verify-otp", {"identifier": "alice@example.com"}, "code"),
        ("/api/signup", {"identifier": "alice@example.com"}, "password"),
        ("/api/login", {"identifier": "alice@example.com"}, "password"),
        ("/api/register-token", {"identifier": "alice@example.com"}, "token"),
    ])
    def test_missing_field_is_400(self, api, path, body, field):
        response = api.post(path, json=body)

        assert response.status_code == 400
        payload = response.json()
        assert payload["success"] is False
        assert payload["errors"][0]["field"] == field
        assert api.store.records == {}

    def test_phone_forms_share_one_identity(self, api):
        api.post("/api/register-token", json={"identifier": "15551234567", "token": "fcm-phone"})
        api.post("/api/register-token", json={"identifier": "+1 555 123 4567", "token": "fcm-phone-2"})

        assert list(api.store.records) == ["+15551234567"]
        assert api.store.records["+15551234567"].delivery_token == "fcm-phone-2"

    def test_delivery_failure_is_500(self, api):
        api.email.fail = True

        response = api.post("/api/send-otp", json={"identifier": "alice@example.com"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Error sending OTP"}

    def test_phone_otp_delivered_by_push(self, api):
        response = api.post("/api/send-otp", json={
            "identifier": "+1 (555) 123-4567",
            "deliveryToken": "fcm-phone",
        })

        assert response.status_code == 200
        assert api.push.sent[0]["token"] == "fcm-phone"
        assert "+15551234567" in api.store.records


class TestNotificationEndpoints:

    def test_register_and_send(self, api):
        response = api.post("/api/register-token", json={"identifier": "alice@example.com", "token": "t1"})
        assert response.json() == {"success": True, "message": "Token registered successfully"}

        api.post("/api/register-token", json={"identifier": "alice@example.com", "token": "t2"})
        response = api.post("/api/send-notification", json={
            "identifier": "alice@example.com",
            "title": "Meet",
            "body": "Your meeting starts soon",
            "data": {"meetingId": 7},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["messageId"] == "projects/safemeet/messages/1"
        assert api.push.sent[0]["token"] == "t2"

    def test_send_to_unknown_identifier_is_404(self, api):
        response = api.post("/api/send-notification", json={
            "identifier": "nobody@example.com",
            "title": "Meet",
            "body": "Hi",
        })

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_send_without_recipient_is_400(self, api):
        response = api.post("/api/send-notification", json={"title": "Meet", "body": "Hi"})

        assert response.status_code == 400

    def test_unconfigured_provider_is_503(self, api):
        api.push.available = False

        response = api.post("/api/send-notification", json={"token": "t1", "title": "Meet", "body": "Hi"})

        assert response.status_code == 503

    def test_provider_error_is_500(self, api):
        api.push.error = PushProviderError("quota exceeded", code="RESOURCE_EXHAUSTED")

        response = api.post("/api/send-notification", json={"token": "t1", "title": "Meet", "body": "Hi"})

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to send notification"


class TestHealth:

    def test_health_ok(self, api):
        response = api.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["database"] == "Connected"
        assert body["notificationProvider"] == "Available"
        assert body["email"] == "Configured"
        assert "timestamp" in body

    def test_health_degraded(self, api):
        api.store.ping_ok = False

        body = api.get("/api/health").json()

        assert body["status"] == "DEGRADED"
        assert body["database"] == "Disconnected"

    def test_root_and_security_headers(self, api):
        response = api.get("/")

        assert response.status_code == 200
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
