"""
FastAPI dependency wiring.

Builds the per-request components from the Supabase client and settings held
on `app.state`. Nothing here is a module-level singleton; tests override
`get_settings`, `get_supabase` and `get_notification_delivery`.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from domain.notification import NotificationRequest
from domain.time import Clock, utc_now
from repositories.client import Settings
from repositories.lead_event_repository import LeadEventLedger
from repositories.lead_repository import LeadStore
from repositories.profile_repository import ProfileRepository, SupabaseIdentityResolver
from repositories.property_repository import PropertyDirectory
from services.authorization_service import AuthenticatedUser, AuthorizationGate, AuthorizedContext
from services.automation_service import AutomationEngine
from services.bulk_operation_service import BulkOperationCoordinator
from services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


class BackgroundNotificationDispatcher:
    """Defers delivery until after the response has been sent."""

    def __init__(self, background_tasks: BackgroundTasks, delivery: NotificationDispatcher) -> None:
        self._background_tasks = background_tasks
        self._delivery = delivery

    def dispatch(self, request: NotificationRequest) -> None:
        self._background_tasks.add_task(self._deliver, request)

    def _deliver(self, request: NotificationRequest) -> None:
        # Runs after the response has been sent.
        try:
            self._delivery.dispatch(request)
        except Exception as e:
            logger.warning(
                f"Best-effort notification_dispatch failed for lead {request.lead_id}: {e}",
                extra={
                    "lead_id": request.lead_id,
                    "tenant_id": request.tenant_id,
                    "failure_type": "notification_dispatch",
                    "recipient": request.recipient,
                },
            )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_supabase(request: Request) -> Client:
    return request.app.state.supabase


def get_notification_delivery(request: Request) -> NotificationDispatcher:
    return request.app.state.notification_delivery


def get_clock() -> Clock:
    return utc_now


def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_gate(
    client: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
) -> AuthorizationGate:
    return AuthorizationGate(
        SupabaseIdentityResolver(client),
        ProfileRepository(client),
        login_path=settings.login_path,
        landing_path=settings.landing_path,
    )


def get_lead_store(
    client: Client = Depends(get_supabase),
    clock: Clock = Depends(get_clock),
) -> LeadStore:
    return LeadStore(client, clock=clock)


def get_engine(
    background_tasks: BackgroundTasks,
    client: Client = Depends(get_supabase),
    store: LeadStore = Depends(get_lead_store),
    delivery: NotificationDispatcher = Depends(get_notification_delivery),
    clock: Clock = Depends(get_clock),
) -> AutomationEngine:
    return AutomationEngine(
        store,
        LeadEventLedger(client, clock=clock),
        PropertyDirectory(client),
        BackgroundNotificationDispatcher(background_tasks, delivery),
        clock=clock,
    )


def get_coordinator(
    store: LeadStore = Depends(get_lead_store),
    engine: AutomationEngine = Depends(get_engine),
) -> BulkOperationCoordinator:
    return BulkOperationCoordinator(store, engine)


def require_permission(module: str, action: Optional[str] = None) -> Callable[..., AuthorizedContext]:
    """Dependency factory: authorize the caller for `module`/`action`."""

    def checker(
        access_token: Optional[str] = Depends(get_access_token),
        gate: AuthorizationGate = Depends(get_gate),
    ) -> AuthorizedContext:
        return gate.authorize(access_token, module, action)

    return checker


def optional_user(
    access_token: Optional[str] = Depends(get_access_token),
    gate: AuthorizationGate = Depends(get_gate),
) -> Optional[AuthenticatedUser]:
    return gate.optional_identity(access_token)
