"""Identity validation pipeline.

Learn: Every identity mutation (add, update, remove) and every
authentication attempt runs caller input through validate_identity_spec()
first. The pipeline is the only way caller input reaches the store: it
returns a clean record containing nothing but fields that passed.

Checks run in order and stop at the first failure:
1. name — present and well-formed
2. existence — free for new identities, taken for everything else
3. auth — delegated to the named provider's validate()
4. functions — a list of well-formed names, optionally allow-listed
5. functions default to [] when omitted
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from warden.auth.providers import AuthProvider, ProviderRegistry
from warden.auth.results import Result, State
from warden.auth.store import IdentityStore

NAME_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")
FUNCTION_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")

IDENTITY_FIELDS = ("name", "auth", "functions")


@dataclass
class SpecValidation(Result):
    """Pipeline result. On success, `clean_record` is safe to store.

    `supplied` names the fields present in the caller's details, so a
    partial update can apply only what was actually sent. `identity_id`
    is the id of the existing record the details were checked against.
    """

    clean_record: dict[str, Any] = field(default_factory=dict)
    provider: AuthProvider | None = None
    supplied: frozenset[str] = frozenset()
    identity_id: str | None = None

    @property
    def passed(self) -> bool:
        return self.ok

    @classmethod
    def rejected(cls, result: Result) -> "SpecValidation":
        return cls(result.state, result.reason, list(result.offending), dict(result.payload))


def validate_identity_spec(
    details: Any,
    *,
    store: IdentityStore,
    registry: ProviderRegistry,
    new_identity: bool = False,
    valid_functions: Iterable[str] | None = None,
) -> SpecValidation:
    """Check a proposed identity specification.

    new_identity: the name must be free and auth details are mandatory.
        Otherwise the name must belong to an existing identity.
    valid_functions: when given, every requested function must be in it.
    """
    if not isinstance(details, Mapping):
        return _reject(Result.request_error("No identity details provided."))

    clean: dict[str, Any] = {}
    provider: AuthProvider | None = None

    # ── name ──
    name = details.get("name")
    if not name:
        return _reject(Result.request_error("No user specified."))
    if not isinstance(name, str) or not NAME_PATTERN.fullmatch(name):
        return _reject(
            Result.request_error(
                f"Invalid name format (should match regex {NAME_PATTERN.pattern})."
            )
        )

    existing = store.get(name)
    if new_identity:
        if existing is not None:
            return _reject(Result.request_error("Identity name already in use."))
    elif existing is None:
        return _reject(Result.request_error("No such user."))
    clean["name"] = name

    # ── auth ──
    auth = details.get("auth")
    if new_identity and not auth:
        return _reject(
            Result.request_error("No authentication details specified for new identity.")
        )

    if auth:
        if not isinstance(auth, Mapping) or not isinstance(auth.get("type"), str):
            return _reject(Result.request_error("No authentication type specified."))

        auth_type = auth["type"]
        provider = registry.get(auth_type)
        if provider is None:
            return _reject(
                Result.configuration_error(
                    f"Invalid authentication type specified for user: {auth_type}"
                )
            )
        if not callable(getattr(provider, "validate", None)):
            return _reject(
                Result.configuration_error(
                    f"No validation function specified for authentication type: {auth_type}"
                )
            )
        if not callable(getattr(provider, "commit", None)):
            return _reject(
                Result.configuration_error(
                    f"No commit function specified for authentication type: {auth_type}"
                )
            )

        r = provider.validate(auth)
        if not r.ok:
            return _reject(r)
        clean["auth"] = r.payload["clean_record"]

    # ── functions ──
    if "functions" in details and details["functions"] is not None:
        functions = details["functions"]
        if not isinstance(functions, list):
            return _reject(Result.request_error("Functions not specified as an array."))

        bad_format = [
            str(f)
            for f in functions
            if not isinstance(f, str) or not FUNCTION_PATTERN.fullmatch(f)
        ]
        if bad_format:
            return _reject(
                Result.request_error(
                    "Incorrectly formatted function names (should match regex "
                    f"{FUNCTION_PATTERN.pattern}): {', '.join(bad_format)}",
                    offending=bad_format,
                )
            )

        if valid_functions is not None:
            allowed = set(valid_functions)
            invalid = [f for f in functions if f not in allowed]
            if invalid:
                return _reject(
                    Result.request_error(
                        f"Invalid functions named: {', '.join(invalid)}",
                        offending=invalid,
                    )
                )
        # Keep first occurrence order, drop repeats
        clean["functions"] = list(dict.fromkeys(functions))

    clean.setdefault("functions", [])

    supplied = frozenset(
        f for f in IDENTITY_FIELDS if details.get(f) is not None and f in clean
    )
    return SpecValidation(
        State.SUCCESS,
        clean_record=clean,
        provider=provider,
        supplied=supplied,
        identity_id=existing.id if existing is not None else None,
    )


def _reject(result: Result) -> SpecValidation:
    return SpecValidation.rejected(result)
