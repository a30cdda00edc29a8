"""
Pytest configuration.

Adds the project root to the Python path so that tests can import the
domain, repositories, services and api packages, and provides fixtures wired
against an in-memory Supabase fake.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.profile import Actor  # noqa: E402
from repositories.lead_event_repository import LeadEventLedger  # noqa: E402
from repositories.lead_repository import LeadStore  # noqa: E402
from repositories.property_repository import PropertyDirectory  # noqa: E402
from services.automation_service import AutomationEngine  # noqa: E402
from services.bulk_operation_service import BulkOperationCoordinator  # noqa: E402
from tests.fakes import FakeSupabase, RecordingDispatcher, TickingClock  # noqa: E402

COMPANY_ID = "company-1"
OTHER_COMPANY_ID = "company-2"
BROKER_ID = "broker-1"


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    fake = FakeSupabase()
    fake.tables["properties"] = [
        {"id": "P1", "title": "Marina View 2BR", "company_id": COMPANY_ID},
        {"id": "P2", "title": "Downtown Loft", "company_id": COMPANY_ID},
    ]
    return fake


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock(datetime(2026, 3, 10, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def actor() -> Actor:
    return Actor(user_id=BROKER_ID, company_id=COMPANY_ID, display_name="Lina")


@pytest.fixture
def store(fake_supabase, clock) -> LeadStore:
    return LeadStore(fake_supabase, clock=clock)


@pytest.fixture
def ledger(fake_supabase, clock) -> LeadEventLedger:
    return LeadEventLedger(fake_supabase, clock=clock)


@pytest.fixture
def engine(fake_supabase, store, ledger, dispatcher, clock) -> AutomationEngine:
    return AutomationEngine(store, ledger, PropertyDirectory(fake_supabase), dispatcher, clock=clock)


@pytest.fixture
def coordinator(store, engine) -> BulkOperationCoordinator:
    return BulkOperationCoordinator(store, engine)


@pytest.fixture
def seed_lead(fake_supabase):
    """Insert a lead row directly, bypassing the engine (no created event)."""

    def _seed(lead_id: str, **overrides):
        row = {
            "id": lead_id,
            "company_id": COMPANY_ID,
            "name": f"Lead {lead_id}",
            "email": None,
            "phone": None,
            "message": None,
            "status": "New",
            "source": "Website",
            "property_id": None,
            "notes": "",
            "follow_up_date": None,
            "created_at": "2026-03-01T08:00:00+00:00",
        }
        row.update(overrides)
        fake_supabase.tables.setdefault("leads", []).append(row)
        return row

    return _seed
