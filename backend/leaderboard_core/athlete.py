from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

UNAFFILIATED = "Unaffiliated"
UNKNOWN_NAME = "Unknown"
OPEN_DIVISION_ID = "open"
OPEN_DIVISION_LABEL = "Open"
REMOVED_STATUS = "REMOVED"


def parse_affiliate_name(metadata: str | Dict[str, Any] | None) -> Optional[str]:
    """Extract the team name from registration metadata.

    Accepts the raw JSON text or an already decoded object. Looks at
    ``affiliateName`` first, then the first value of the ``affiliates``
    map. Returns ``None`` for anything it cannot read.
    """

    if not metadata:
        return None

    if isinstance(metadata, dict):
        parsed: Any = metadata
    else:
        try:
            parsed = json.loads(metadata)
        except (TypeError, ValueError):
            return None

    if not isinstance(parsed, dict):
        return None

    name = parsed.get("affiliateName")
    if isinstance(name, str) and name.strip():
        return name.strip()

    affiliates = parsed.get("affiliates")
    if isinstance(affiliates, dict) and affiliates:
        first = next(iter(affiliates.values()))
        if isinstance(first, str) and first.strip():
            return first.strip()

    return None


@dataclass(frozen=True)
class Athlete:
    """A registered competitor and the bracket and team they compete for."""

    user_id: str
    name: str
    affiliate_name: str = UNAFFILIATED
    division_id: str = OPEN_DIVISION_ID
    division_label: str = OPEN_DIVISION_LABEL

    @classmethod
    def from_registration(
        cls,
        registration: Dict[str, Any],
        user: Optional[Dict[str, Any]] = None,
        division_label: Optional[str] = None,
    ) -> "Athlete":
        """Factory for a ``competition_registrations`` row plus its joins."""

        if registration.get("status") == REMOVED_STATUS:
            raise ValueError(f"registration {registration.get('id')} has been removed")

        user = user or {}
        first_name = str(user.get("first_name") or "")
        last_name = str(user.get("last_name") or "")
        name = f"{first_name} {last_name}".strip() or UNKNOWN_NAME

        division_id = registration.get("division_id")

        return cls(
            user_id=str(registration["user_id"]),
            name=name,
            affiliate_name=parse_affiliate_name(registration.get("metadata")) or UNAFFILIATED,
            division_id=str(division_id) if division_id else OPEN_DIVISION_ID,
            division_label=division_label or OPEN_DIVISION_LABEL,
        )
