"""In-memory identity store.

Learn: The store is the single owner of every IdentityRecord for the
life of the app. It is an object (one per app, kept on app.state), not a
module global, so tests and multiple apps never share identities.

Records are frozen and only ever swapped whole, so readers can look up
names without taking the lock and still never see a half-built record.
Mutations take the lock and re-check existence under it. The identity
service validates and runs provider commits *before* calling in here,
and another request may have won the race in between; updates also
carry the id they validated, so a removed and re-added name is refused.
"""

import threading
from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class IdentityRecord:
    """A named principal with committed credentials and granted functions."""

    id: str
    name: str
    auth: dict[str, Any]
    functions: list[str] = field(default_factory=list)

    @property
    def auth_type(self) -> str | None:
        return self.auth.get("type")

    def public(self) -> dict[str, Any]:
        """Record without credential material, safe to return over the API."""
        return {
            "id": self.id,
            "name": self.name,
            "auth_type": self.auth_type,
            "functions": list(self.functions),
        }


class IdentityConflictError(Exception):
    """Raised when a mutation would break name uniqueness or find no record."""


class IdentityStore:
    """Name → IdentityRecord, mutated only under one exclusive lock."""

    def __init__(self) -> None:
        self._records: dict[str, IdentityRecord] = {}
        self._lock = threading.Lock()

    # ─── Reads (lock-free) ──────────────────────────────

    def get(self, name: str) -> IdentityRecord | None:
        return self._records.get(name)

    def records(self) -> list[IdentityRecord]:
        return sorted(self._records.values(), key=lambda r: r.name)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    # ─── Mutations ──────────────────────────────────────

    def insert(self, record: IdentityRecord) -> None:
        with self._lock:
            if record.name in self._records:
                raise IdentityConflictError("Identity name already in use.")
            self._records[record.name] = record

    def update(
        self, name: str, expected_id: str | None = None, **changes: Any
    ) -> IdentityRecord:
        """Swap in a copy of the named record with `changes` applied.

        With `expected_id`, the record must still be the one the caller
        validated: a name removed and re-added in between is refused.
        """
        with self._lock:
            current = self._records.get(name)
            if current is None:
                raise IdentityConflictError("No such user.")
            if expected_id is not None and current.id != expected_id:
                raise IdentityConflictError("No such user.")
            updated = replace(current, **changes)
            self._records[name] = updated
            return updated

    def delete(self, name: str) -> IdentityRecord:
        with self._lock:
            record = self._records.pop(name, None)
            if record is None:
                raise IdentityConflictError("No such user.")
            return record
