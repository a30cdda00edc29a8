"""
Tests for the HTTP layer (`api/`).

The application is exercised through FastAPI's TestClient without running its
lifespan: settings, the Supabase client, notification delivery and the clock
are swapped in through dependency overrides.
"""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_clock, get_notification_delivery, get_settings, get_supabase
from api.main import app
from repositories.client import Settings
from tests.conftest import COMPANY_ID, OTHER_COMPANY_ID

EDITOR_PERMISSIONS = {
    "leads": {"view": True, "create": True, "edit": True, "delete": True},
    "analytics": False,
    "profile": True,
}

VIEWER_PERMISSIONS = {"leads": {"view": True, "create": False, "edit": False, "delete": False}}


@pytest.fixture
def client(fake_supabase, dispatcher, clock):
    settings = Settings(supabase_url="http://localhost", supabase_key="test-key")
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_notification_delivery] = lambda: dispatcher
    app.dependency_overrides[get_clock] = lambda: clock

    fake_supabase.auth.add_user("editor-token", "agent-1", first_name="Lina")
    fake_supabase.auth.add_user("viewer-token", "agent-2")
    fake_supabase.auth.add_user("buyer-token", "buyer-1")
    fake_supabase.auth.add_user("orphan-token", "ghost-1")
    fake_supabase.tables["profiles"] = [
        {"id": "agent-1", "role": "agent", "admin_id": COMPANY_ID, "full_name": "Lina Haddad", "permissions": EDITOR_PERMISSIONS},
        {"id": "agent-2", "role": "agent", "admin_id": COMPANY_ID, "full_name": "Karim", "permissions": VIEWER_PERMISSIONS},
        {"id": "buyer-1", "role": "buyer", "admin_id": None, "full_name": "Nour", "permissions": None},
    ]

    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ----------------------------------------------------------------------------
# Authorization
# ----------------------------------------------------------------------------

def test_no_token_is_401_with_login_redirect(client) -> None:
    response = client.get("/api/v1/leads")

    assert response.status_code == 401
    assert response.json()["redirect_to"] == "/login"


def test_identity_without_profile_is_401(client) -> None:
    response = client.get("/api/v1/leads", headers=_auth("orphan-token"))

    assert response.status_code == 401


def test_missing_capability_is_403_with_landing_redirect(client, seed_lead, fake_supabase) -> None:
    seed_lead("L1")

    response = client.put("/api/v1/leads/L1", json={"status": "Won"}, headers=_auth("viewer-token"))

    assert response.status_code == 403
    assert response.json()["redirect_to"] == "/dashboard"
    assert fake_supabase.rows("leads")[0]["status"] == "New"


def test_buyer_is_sent_to_portal(client) -> None:
    response = client.get("/api/v1/leads", headers=_auth("buyer-token"))

    assert response.status_code == 403
    assert response.json()["redirect_to"] == "/portal"


# ----------------------------------------------------------------------------
# Leads
# ----------------------------------------------------------------------------

def test_list_leads_is_tenant_scoped(client, seed_lead) -> None:
    seed_lead("L1")
    seed_lead("L2", company_id=OTHER_COMPANY_ID)

    response = client.get("/api/v1/leads", headers=_auth("viewer-token"))

    assert response.status_code == 200
    assert [lead["id"] for lead in response.json()["data"]] == ["L1"]


def test_create_lead_uses_caller_company(client, fake_supabase) -> None:
    response = client.post(
        "/api/v1/leads",
        json={"name": "Omar", "email": "omar@example.com", "source": "WhatsApp"},
        headers=_auth("editor-token"),
    )

    assert response.status_code == 201
    body = response.json()["data"]
    assert body["company_id"] == COMPANY_ID
    assert body["status"] == "New"
    assert [row["event_type"] for row in fake_supabase.rows("lead_events")] == ["created"]


def test_create_lead_rejects_company_id_in_body(client, fake_supabase) -> None:
    response = client.post(
        "/api/v1/leads",
        json={"name": "Omar", "company_id": OTHER_COMPANY_ID},
        headers=_auth("editor-token"),
    )

    assert response.status_code == 422
    assert fake_supabase.rows("leads") == []


def test_update_contacted_schedules_follow_up_and_notifies(client, seed_lead, dispatcher) -> None:
    seed_lead("L1", name="Sara", email="sara@example.com", property_id="P1")

    response = client.put("/api/v1/leads/L1", json={"status": "Contacted"}, headers=_auth("editor-token"))

    assert response.status_code == 200
    body = response.json()["data"]
    assert body["follow_up_date"] == "2026-03-13"
    assert len(dispatcher.sent) == 1
    assert dispatcher.sent[0].template_data["broker_name"] == "Lina"


def test_update_clears_property(client, seed_lead, fake_supabase) -> None:
    seed_lead("L2", property_id="P1")

    response = client.put("/api/v1/leads/L2", json={"property_id": ""}, headers=_auth("editor-token"))

    assert response.status_code == 200
    assert response.json()["data"]["property_id"] is None
    event = fake_supabase.rows("lead_events")[0]
    assert (event["old_value"], event["new_value"]) == ("P1", "Unassigned")


def test_update_other_tenant_is_404(client, seed_lead) -> None:
    seed_lead("L1", company_id=OTHER_COMPANY_ID)

    response = client.put("/api/v1/leads/L1", json={"notes": "x"}, headers=_auth("editor-token"))

    assert response.status_code == 404


def test_clearing_status_is_400(client, seed_lead) -> None:
    seed_lead("L1")

    response = client.put("/api/v1/leads/L1", json={"status": None}, headers=_auth("editor-token"))

    assert response.status_code == 400


def test_store_failure_is_500(client, seed_lead, fake_supabase) -> None:
    seed_lead("L1")
    fake_supabase.fail("leads", "update")

    response = client.put("/api/v1/leads/L1", json={"notes": "x"}, headers=_auth("editor-token"))

    assert response.status_code == 500


def test_ledger_failure_still_returns_200(client, seed_lead, fake_supabase) -> None:
    seed_lead("L1")
    fake_supabase.fail("lead_events", "insert")

    response = client.put("/api/v1/leads/L1", json={"status": "Won"}, headers=_auth("editor-token"))

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "Won"


def test_lead_events_oldest_first(client) -> None:
    created = client.post("/api/v1/leads", json={"name": "Omar"}, headers=_auth("editor-token")).json()["data"]
    client.put(f"/api/v1/leads/{created['id']}", json={"status": "Viewing"}, headers=_auth("editor-token"))

    response = client.get(f"/api/v1/leads/{created['id']}/events", headers=_auth("viewer-token"))

    assert response.status_code == 200
    assert [e["event_type"] for e in response.json()["events"]] == ["created", "status_changed"]


def test_delete_lead(client, seed_lead, fake_supabase) -> None:
    seed_lead("L1")

    response = client.delete("/api/v1/leads/L1", headers=_auth("editor-token"))

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert fake_supabase.rows("leads") == []


def test_upcoming_follow_ups(client, seed_lead) -> None:
    seed_lead("soon", follow_up_date="2026-03-12")
    seed_lead("later", follow_up_date="2026-05-01")

    response = client.get("/api/v1/leads/upcoming", headers=_auth("viewer-token"))

    assert [lead["id"] for lead in response.json()["data"]] == ["soon"]


# ----------------------------------------------------------------------------
# Bulk
# ----------------------------------------------------------------------------

def test_bulk_update_reports_partial_success(client, seed_lead) -> None:
    seed_lead("L1")
    seed_lead("L2")

    response = client.put(
        "/api/v1/leads",
        json={"ids": ["L1", "missing", "L2"], "data": {"status": "Lost"}},
        headers=_auth("editor-token"),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success_count"] == 2
    assert body["total"] == 3
    assert body["message"] == "Updated 2/3 leads"
    assert [item["outcome"] for item in body["results"]] == ["success", "failure", "success"]


def test_bulk_delete(client, seed_lead, fake_supabase) -> None:
    seed_lead("L1")

    response = client.request(
        "DELETE",
        "/api/v1/leads",
        json={"ids": ["L1"]},
        headers=_auth("editor-token"),
    )

    assert response.status_code == 200
    assert response.json()["success_count"] == 1
    assert fake_supabase.rows("leads") == []


def test_bulk_create(client, fake_supabase) -> None:
    response = client.post(
        "/api/v1/leads/bulk-create",
        json={"leads": [{"name": "Sara"}, {"name": "Omar"}]},
        headers=_auth("editor-token"),
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Created 2/2 leads"
    assert len(fake_supabase.rows("leads")) == 2


# ----------------------------------------------------------------------------
# Portal
# ----------------------------------------------------------------------------

def test_anonymous_inquiry_creates_lead_for_property_owner(client, fake_supabase) -> None:
    response = client.post(
        "/api/v1/portal/inquiries",
        json={"name": "Nour", "email": "nour@example.com", "propertyId": "P1", "message": "Available?"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["lead"]["company_id"] == COMPANY_ID
    assert body["lead"]["source"] == "Website"
    assert fake_supabase.rows("lead_events")[0]["broker_id"] == "portal"


def test_inquiry_for_unknown_property_is_400(client) -> None:
    response = client.post(
        "/api/v1/portal/inquiries",
        json={"name": "Nour", "email": "nour@example.com", "propertyId": "nope"},
    )

    assert response.status_code == 400


# ----------------------------------------------------------------------------
# Error bodies and deferred delivery
# ----------------------------------------------------------------------------

def test_not_found_body_has_no_redirect(client) -> None:
    response = client.put("/api/v1/leads/missing", json={"notes": "x"}, headers=_auth("editor-token"))

    assert response.status_code == 404
    assert response.json() == {"error": "Lead not found: missing", "status_code": 404}


def test_legacy_status_row_does_not_break_listing(client, seed_lead) -> None:
    seed_lead("L1", status="closed")
    seed_lead("L2", status="viewing")

    response = client.get("/api/v1/leads", headers=_auth("viewer-token"))

    assert response.status_code == 200
    statuses = {lead["id"]: lead["status"] for lead in response.json()["data"]}
    assert statuses == {"L1": "New", "L2": "Viewing"}


def test_failed_delivery_is_logged_not_raised(client, seed_lead, dispatcher, caplog) -> None:
    seed_lead("L1", email="sara@example.com")
    dispatcher.error = ConnectionError("smtp down")

    with caplog.at_level(logging.WARNING, logger="api.dependencies"):
        response = client.put("/api/v1/leads/L1", json={"status": "Won"}, headers=_auth("editor-token"))

    assert response.status_code == 200
    failures = [r for r in caplog.records if getattr(r, "failure_type", None) == "notification_dispatch"]
    assert len(failures) == 1
    assert failures[0].lead_id == "L1"
    assert failures[0].tenant_id == COMPANY_ID
