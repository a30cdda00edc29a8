"""
Supabase client construction and settings.

This module contains *only* configuration loading and the factory for the
Supabase client. There is no module-level client: the application creates one
at startup and passes it to every repository constructor.

Environment variables:
- SUPABASE_URL: Your Supabase project URL (required)
- SUPABASE_KEY: Your Supabase API key (required; server-side key on the backend)
- CRM_LOGIN_PATH: Where unauthenticated callers are sent (default: /login)
- CRM_LANDING_PATH: Where callers lacking a capability are sent (default: /dashboard)
- CRM_LOG_LEVEL: Root log level for the API process (default: INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from postgrest.exceptions import APIError
from supabase import Client, create_client

from domain.errors import StoreFailure

# Look for .env in the project root
_ENV_PATH = Path(__file__).parent.parent / ".env"


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: str
    supabase_key: str
    login_path: str = "/login"
    landing_path: str = "/dashboard"
    log_level: str = "INFO"


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """
    Load settings from the environment (after reading the .env file).

    Raises:
        RuntimeError: if a required variable is missing.
    """

    load_dotenv(dotenv_path=env_path or _ENV_PATH)

    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    return Settings(
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        login_path=os.getenv("CRM_LOGIN_PATH", "/login"),
        landing_path=os.getenv("CRM_LANDING_PATH", "/dashboard"),
        log_level=os.getenv("CRM_LOG_LEVEL", "INFO").upper(),
    )


def create_supabase_client(settings: Settings) -> Client:
    """Create a Supabase client for the given settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


def execute(query: Any, action: str) -> list[dict[str, Any]]:
    """
    Execute a postgrest query and return its rows.

    supabase-py raises APIError for most failures, but some responses still
    carry an `error` attribute; both become StoreFailure.
    """

    try:
        response = query.execute()
    except APIError as e:
        raise StoreFailure(f"Failed to {action}: {e.message or e}") from e

    error = getattr(response, "error", None)
    if error:
        raise StoreFailure(f"Failed to {action}: {error}")

    return getattr(response, "data", None) or []


__all__ = [
    "Settings",
    "create_supabase_client",
    "execute",
    "load_settings",
]
