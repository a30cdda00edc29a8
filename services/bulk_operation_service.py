"""
Bulk lead operations.

Applies one mutation to many leads, one lead at a time. Each item succeeds or
fails on its own: a failure is recorded in the report and processing moves on
to the next item. Nothing is rolled back, so items applied before an abandoned
batch stay applied.

Handles:
- bulk update (with the status_changed ledger rule per updated lead)
- bulk delete
- bulk create (capped per call)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from domain.lead import normalize_lead_patch
from domain.profile import Actor
from repositories.lead_repository import LeadStore
from services.automation_service import AutomationEngine, AutomationResult

logger = logging.getLogger(__name__)

# Upper bound on leads created by one bulk_create call.
MAX_BULK_CREATE: int = 50


@dataclass(frozen=True, slots=True)
class ItemOutcome:
    """
    Result for one item of a batch.

    index: 1-based position in the request
    label: lead name when known, otherwise the id
    reason: failure message (None on success)
    """

    index: int
    label: str
    success: bool
    reason: Optional[str] = None

    @property
    def outcome(self) -> str:
        return "success" if self.success else "failure"


@dataclass(slots=True)
class BulkReport:
    """Per-item outcomes; no batch-wide pass/fail flag."""

    outcomes: List[ItemOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failure_count(self) -> int:
        return len(self.outcomes) - self.success_count

    def succeeded(self, index: int, label: str) -> None:
        self.outcomes.append(ItemOutcome(index=index, label=label, success=True))

    def failed(self, index: int, label: str, error: Exception) -> None:
        logger.warning(
            f"Bulk item {index} ({label}) failed: {error}",
            extra={"index": index, "label": label, "error_type": type(error).__name__},
        )
        self.outcomes.append(ItemOutcome(index=index, label=label, success=False, reason=str(error)))


class BulkOperationCoordinator:
    def __init__(self, store: LeadStore, engine: AutomationEngine) -> None:
        self._store = store
        self._engine = engine

    def bulk_update(
        self,
        lead_ids: Iterable[str],
        patch: Mapping[str, Any],
        actor: Actor,
    ) -> BulkReport:
        """
        Apply `patch` to each lead in turn.

        The patch is validated once up front (ValidationError aborts the whole
        batch before any store call). The follow-up injection rule does not run
        here; only the status_changed ledger rule does.
        """

        fields = normalize_lead_patch(patch)
        report = BulkReport()

        for index, lead_id in enumerate(lead_ids, start=1):
            label = lead_id
            try:
                old_lead = self._store.get(lead_id, actor.company_id)
                label = old_lead.label
                new_lead = self._store.update(lead_id, fields, actor.company_id)
            except Exception as e:
                report.failed(index, label, e)
                continue

            result = AutomationResult(lead=new_lead)
            self._engine.record_status_change(result, old_lead, actor, notify=False)
            report.succeeded(index, new_lead.label)

        return report

    def bulk_delete(self, lead_ids: Iterable[str], actor: Actor) -> BulkReport:
        """Delete each lead in turn."""

        report = BulkReport()

        for index, lead_id in enumerate(lead_ids, start=1):
            label = lead_id
            try:
                label = self._store.get(lead_id, actor.company_id).label
                self._engine.delete_lead(lead_id, actor)
            except Exception as e:
                report.failed(index, label, e)
                continue
            report.succeeded(index, label)

        return report

    def bulk_create(self, templates: Iterable[Mapping[str, Any]], actor: Actor) -> BulkReport:
        """Create a lead from each template (at most MAX_BULK_CREATE per call)."""

        report = BulkReport()

        for index, template in enumerate(templates, start=1):
            if index > MAX_BULK_CREATE:
                logger.info(
                    f"Bulk create truncated to {MAX_BULK_CREATE} leads",
                    extra={"tenant_id": actor.company_id},
                )
                break

            label = str(template.get("name") or f"#{index}")
            try:
                result = self._engine.create_lead(template, actor)
            except Exception as e:
                report.failed(index, label, e)
                continue
            report.succeeded(index, result.lead.label)

        return report


__all__ = [
    "MAX_BULK_CREATE",
    "BulkOperationCoordinator",
    "BulkReport",
    "ItemOutcome",
]
