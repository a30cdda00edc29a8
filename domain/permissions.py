"""
Domain: per-user capability matrix.

The matrix has a fixed shape:

    {
        "properties": {"view": bool, "edit": bool, "create": bool, "delete": bool},
        "leads":      {...same four flags...},
        "users":      {...same four flags...},
        "analytics":  bool,
        "profile":    bool,
    }

It reaches us either as a JSON text blob or as already-structured data. Both are
decoded once into a PermissionMatrix. Decoding is fail-closed: anything missing
or malformed grants nothing, and decoding never raises.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

logger = logging.getLogger(__name__)

ACTION_MODULES: tuple[str, ...] = ("properties", "leads", "users")
FLAG_MODULES: tuple[str, ...] = ("analytics", "profile")
ACTIONS: tuple[str, ...] = ("view", "edit", "create", "delete")

RawPermissions = Union[str, bytes, Mapping[str, Any], None]


def _flag(value: Any) -> bool:
    # Only a real boolean True grants; "true", 1, etc. are malformed.
    return value is True


@dataclass(frozen=True, slots=True)
class ModuleCapabilities:
    view: bool = False
    edit: bool = False
    create: bool = False
    delete: bool = False

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["ModuleCapabilities"]:
        if not isinstance(raw, Mapping):
            return None
        return cls(**{action: _flag(raw.get(action)) for action in ACTIONS})

    def allows(self, action: str) -> bool:
        if action not in ACTIONS:
            return False
        return bool(getattr(self, action))


@dataclass(frozen=True, slots=True)
class PermissionMatrix:
    """Canonical, decoded capability matrix. Absent modules are None."""

    properties: Optional[ModuleCapabilities] = None
    leads: Optional[ModuleCapabilities] = None
    users: Optional[ModuleCapabilities] = None
    analytics: bool = False
    profile: bool = False

    @classmethod
    def empty(cls) -> "PermissionMatrix":
        return cls()


def decode_permission_matrix(raw: RawPermissions) -> PermissionMatrix:
    """
    Decode a stored permission matrix into its canonical form.

    Accepts a JSON string/bytes or a mapping. Parse errors and wrong shapes are
    swallowed and produce an empty (no capability) matrix.
    """

    if raw is None:
        return PermissionMatrix.empty()

    data: Any = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug("Unparseable permission matrix treated as empty")
            return PermissionMatrix.empty()

    if not isinstance(data, Mapping):
        return PermissionMatrix.empty()

    return PermissionMatrix(
        properties=ModuleCapabilities.from_raw(data.get("properties")),
        leads=ModuleCapabilities.from_raw(data.get("leads")),
        users=ModuleCapabilities.from_raw(data.get("users")),
        analytics=_flag(data.get("analytics")),
        profile=_flag(data.get("profile")),
    )


def can_perform(matrix: Optional[PermissionMatrix], module: str, action: Optional[str] = None) -> bool:
    """
    Answer a single capability question.

    - analytics / profile: the standalone flag; action is ignored.
    - properties / leads / users: requires an action in ACTIONS.
    - Anything else, or a missing matrix/module/action: False.
    """

    if matrix is None:
        return False

    if module in FLAG_MODULES:
        return bool(getattr(matrix, module))

    if module in ACTION_MODULES:
        if action is None:
            return False
        capabilities: Optional[ModuleCapabilities] = getattr(matrix, module)
        if capabilities is None:
            return False
        return capabilities.allows(action)

    return False


__all__ = [
    "ACTIONS",
    "ACTION_MODULES",
    "FLAG_MODULES",
    "ModuleCapabilities",
    "PermissionMatrix",
    "can_perform",
    "decode_permission_matrix",
]
