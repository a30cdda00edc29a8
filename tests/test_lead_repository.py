"""
Tests for `repositories/lead_repository.py`.

Covers rules:
- Every read and write is scoped to the tenant; foreign leads are NotFound.
- create stamps the tenant and created_at server-side and defaults status to New.
- update distinguishes "leave unchanged" from "explicitly clear".
- Bulk variants return only the leads that were actually affected.
- Persistence errors surface as StoreFailure.
"""

from __future__ import annotations

import logging
from datetime import date

import pytest

from domain.errors import NotFound, StoreFailure
from domain.lead import LeadStatus, validate_new_lead
from tests.conftest import COMPANY_ID, OTHER_COMPANY_ID


def test_get_returns_lead_with_property_title(store, seed_lead) -> None:
    seed_lead("L1", property_id="P1")

    lead = store.get("L1", COMPANY_ID)

    assert lead.lead_id == "L1"
    assert lead.property_title == "Marina View 2BR"


def test_get_outside_tenant_is_not_found(store, seed_lead) -> None:
    seed_lead("L1")

    with pytest.raises(NotFound):
        store.get("L1", OTHER_COMPANY_ID)

    with pytest.raises(NotFound):
        store.get("missing", COMPANY_ID)


def test_list_by_tenant_is_scoped_and_newest_first(store, seed_lead) -> None:
    seed_lead("old", created_at="2026-01-01T00:00:00+00:00")
    seed_lead("new", created_at="2026-02-01T00:00:00+00:00")
    seed_lead("foreign", company_id=OTHER_COMPANY_ID)

    leads = store.list_by_tenant(COMPANY_ID)

    assert [lead.lead_id for lead in leads] == ["new", "old"]


def test_create_stamps_tenant_and_defaults(store, fake_supabase) -> None:
    lead = store.create(validate_new_lead({"name": "Omar"}), COMPANY_ID)

    assert lead.company_id == COMPANY_ID
    assert lead.status is LeadStatus.NEW
    assert lead.created_at.isoformat() == "2026-03-10T09:00:00+00:00"
    assert fake_supabase.rows("leads")[0]["company_id"] == COMPANY_ID


def test_update_leaves_absent_fields_unchanged(store, seed_lead) -> None:
    seed_lead("L1", notes="first call", property_id="P1", follow_up_date="2026-03-20")

    lead = store.update("L1", {"status": "Viewing"}, COMPANY_ID)

    assert lead.status is LeadStatus.VIEWING
    assert lead.notes == "first call"
    assert lead.property_id == "P1"
    assert lead.follow_up_date == date(2026, 3, 20)


def test_update_explicit_clear_writes_null(store, seed_lead, fake_supabase) -> None:
    seed_lead("L1", property_id="P1", follow_up_date="2026-03-20")

    lead = store.update("L1", {"property_id": "", "follow_up_date": ""}, COMPANY_ID)

    assert lead.property_id is None
    assert lead.follow_up_date is None
    row = fake_supabase.rows("leads")[0]
    assert row["property_id"] is None
    assert row["follow_up_date"] is None


def test_update_never_changes_tenant(store, seed_lead, fake_supabase) -> None:
    seed_lead("L1")

    store.update("L1", {"company_id": OTHER_COMPANY_ID, "notes": "x"}, COMPANY_ID)

    assert fake_supabase.rows("leads")[0]["company_id"] == COMPANY_ID


def test_update_outside_tenant_is_not_found(store, seed_lead, fake_supabase) -> None:
    seed_lead("L1")

    with pytest.raises(NotFound):
        store.update("L1", {"status": "Won"}, OTHER_COMPANY_ID)

    assert fake_supabase.rows("leads")[0]["status"] == "New"


def test_delete_is_permanent(store, seed_lead, fake_supabase) -> None:
    seed_lead("L1")

    store.delete("L1", COMPANY_ID)

    assert fake_supabase.rows("leads") == []
    with pytest.raises(NotFound):
        store.delete("L1", COMPANY_ID)


def test_bulk_update_returns_only_updated(store, seed_lead) -> None:
    seed_lead("L1")
    seed_lead("L2")
    seed_lead("L3", company_id=OTHER_COMPANY_ID)

    updated = store.bulk_update(["L1", "L2", "L3", "missing"], {"status": "Lost"}, COMPANY_ID)

    assert sorted(lead.lead_id for lead in updated) == ["L1", "L2"]
    assert all(lead.status is LeadStatus.LOST for lead in updated)


def test_bulk_delete_returns_deleted_ids(store, seed_lead, fake_supabase) -> None:
    seed_lead("L1")
    seed_lead("L2", company_id=OTHER_COMPANY_ID)

    deleted = store.bulk_delete(["L1", "L2"], COMPANY_ID)

    assert deleted == ["L1"]
    assert [row["id"] for row in fake_supabase.rows("leads")] == ["L2"]


def test_upcoming_follow_ups_window(store, seed_lead) -> None:
    seed_lead("past", follow_up_date="2026-03-01")
    seed_lead("soon", follow_up_date="2026-03-12")
    seed_lead("today", follow_up_date="2026-03-10")
    seed_lead("later", follow_up_date="2026-04-30")
    seed_lead("none", follow_up_date=None)

    leads = store.list_upcoming_follow_ups(COMPANY_ID, today=date(2026, 3, 10), days=7)

    assert [lead.lead_id for lead in leads] == ["today", "soon"]


def test_store_errors_become_store_failure(store, seed_lead, fake_supabase) -> None:
    seed_lead("L1")
    fake_supabase.fail("leads", "update", "connection reset")

    with pytest.raises(StoreFailure, match="connection reset"):
        store.update("L1", {"status": "Won"}, COMPANY_ID)


def test_status_is_read_case_insensitively(store, seed_lead) -> None:
    seed_lead("L1", status="contacted")

    assert store.get("L1", COMPANY_ID).status is LeadStatus.CONTACTED


def test_unknown_stored_status_reads_as_new(store, seed_lead, caplog) -> None:
    seed_lead("L1", status="Closed")
    seed_lead("L2", status="Won")

    with caplog.at_level(logging.WARNING, logger="repositories.lead_repository"):
        leads = {lead.lead_id: lead for lead in store.list_by_tenant(COMPANY_ID)}

    assert leads["L1"].status is LeadStatus.NEW
    assert leads["L2"].status is LeadStatus.WON
    assert any(getattr(r, "status", None) == "Closed" for r in caplog.records)
