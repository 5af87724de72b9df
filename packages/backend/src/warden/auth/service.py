"""Identity service — business logic for identities and authentication.

Learn: Service layer separates business logic from HTTP routing.
API routes call the service, the service calls the pipeline, providers
and the store. Everything returns a Result; nothing raises past here.

Provider calls (bcrypt hashing, credential checks) run before the store
lock is taken. The store re-checks name existence under its lock, so two
concurrent adds of the same name cannot both land.
"""

import uuid
from typing import Any, Iterable, Optional

import structlog

from warden.auth.jwt import TokenService
from warden.auth.providers import ProviderRegistry
from warden.auth.results import Result
from warden.auth.store import IdentityConflictError, IdentityRecord, IdentityStore
from warden.auth.validation import SpecValidation, validate_identity_spec

logger = structlog.get_logger()


class IdentityService:
    """Identity CRUD and the authenticate → token flow."""

    def __init__(
        self,
        store: IdentityStore,
        registry: ProviderRegistry,
        tokens: TokenService,
    ):
        self.store = store
        self.registry = registry
        self.tokens = tokens

    def validate(
        self,
        details: Any,
        new_identity: bool = False,
        valid_functions: Optional[Iterable[str]] = None,
    ) -> SpecValidation:
        return validate_identity_spec(
            details,
            store=self.store,
            registry=self.registry,
            new_identity=new_identity,
            valid_functions=valid_functions,
        )

    # ─── Create ─────────────────────────────────────────

    def add_identity(
        self, details: Any, valid_functions: Optional[Iterable[str]] = None
    ) -> Result:
        """Validate, commit credentials, then insert — all or nothing."""
        r = self.validate(details, new_identity=True, valid_functions=valid_functions)
        if not r.passed:
            return r

        clean = r.clean_record
        commit = self._commit(r, clean["auth"])
        if not commit.ok:
            return commit

        record = IdentityRecord(
            id=uuid.uuid4().hex,
            name=clean["name"],
            auth=commit.payload["commit_record"],
            functions=clean["functions"],
        )
        try:
            self.store.insert(record)
        except IdentityConflictError as e:
            return Result.request_error(str(e))

        logger.info(
            "identity.added",
            identity=record.name,
            auth_type=record.auth_type,
            functions=record.functions,
        )
        return Result.success(identity=record.public())

    # ─── Update ─────────────────────────────────────────

    def set_identity(
        self, details: Any, valid_functions: Optional[Iterable[str]] = None
    ) -> Result:
        """Apply each supplied, validated field; leave the rest untouched."""
        r = self.validate(details, valid_functions=valid_functions)
        if not r.passed:
            return r

        clean = r.clean_record
        changes: dict[str, Any] = {}

        if "auth" in r.supplied:
            commit = self._commit(r, clean["auth"])
            if not commit.ok:
                return commit
            changes["auth"] = commit.payload["commit_record"]

        if "functions" in r.supplied:
            changes["functions"] = clean["functions"]

        try:
            record = self.store.update(
                clean["name"], expected_id=r.identity_id, **changes
            )
        except IdentityConflictError as e:
            return Result.request_error(str(e))

        logger.info("identity.updated", identity=record.name, fields=sorted(changes))
        return Result.success(identity=record.public())

    # ─── Delete ─────────────────────────────────────────

    def remove_identity(self, name: Any) -> Result:
        r = self.validate({"name": name})
        if not r.passed:
            return r

        try:
            self.store.delete(r.clean_record["name"])
        except IdentityConflictError as e:
            return Result.request_error(str(e))

        logger.info("identity.removed", identity=name)
        return Result.success()

    # ─── Read ───────────────────────────────────────────

    def get_identity(self, name: Any) -> Result:
        r = self.validate({"name": name})
        if not r.passed:
            return r
        record = self.store.get(r.clean_record["name"])
        if record is None:
            return Result.request_error("No such user.")
        return Result.success(identity=record.public())

    def list_identities(self) -> list[dict[str, Any]]:
        return [record.public() for record in self.store.records()]

    # ─── Authenticate ───────────────────────────────────

    def authenticate(self, details: Any) -> Result:
        """Check credentials and issue a token on success.

        Any non-success result from the pipeline or the provider is
        returned as-is, with no token.
        """
        r = self.validate(details)
        if not r.passed:
            logger.info("auth.rejected", reason=r.reason, state=r.state.value)
            return r

        name = r.clean_record["name"]
        identity = self.store.get(name)
        if identity is None:
            return Result.request_error("No such user.")

        provider = self.registry.get(identity.auth_type or "")
        if provider is None:
            logger.error(
                "auth.provider_missing", identity=name, auth_type=identity.auth_type
            )
            return Result.configuration_error(
                f"Invalid authentication type specified for user: {identity.auth_type}"
            )

        supplied = details.get("auth")
        if supplied and supplied.get("type") != identity.auth_type:
            logger.info("auth.failed", identity=name, reason="auth_type_mismatch")
            return Result.failed("Invalid credentials.")

        r = provider.authenticate(identity.auth, supplied)
        if not r.ok:
            logger.info("auth.failed", identity=name, state=r.state.value)
            return r

        token = self.tokens.new_token(identity)
        logger.info("auth.succeeded", identity=name)
        return Result(r.state, r.reason, r.offending, {**r.payload, "token": token})

    # ─── Helpers ────────────────────────────────────────

    def _commit(self, validation: SpecValidation, clean_auth: dict[str, Any]) -> Result:
        """Run the provider's commit, converting exceptions into a Result."""
        provider = validation.provider
        try:
            r = provider.commit(clean_auth)
        except Exception:
            logger.exception(
                "identity.auth_commit_failed",
                identity=validation.clean_record.get("name"),
                auth_type=clean_auth.get("type"),
            )
            return Result.commit_failed(
                "An exception occurred while committing authentication details."
            )
        if not r.ok:
            logger.warning(
                "identity.auth_commit_rejected",
                identity=validation.clean_record.get("name"),
                reason=r.reason,
            )
        return r
