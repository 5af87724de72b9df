"""Result objects shared by the pipeline, providers and the identity service.

Learn: Identity mutations never raise across the service boundary. Every
step returns a Result whose `state` is one of a closed set of values,
and the HTTP layer maps that state to a status code. Who has to act
depends on the state:

- requestError              → the caller (bad input, name conflict, unknown user)
- serverConfigurationError  → the operator (provider missing or malformed)
- serverAuthCommitFailed    → nobody can fix it from outside; store left untouched
- failed                    → well-formed request, credentials did not match
- failure                   → a provider could not commit credentials
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class State(str, Enum):
    SUCCESS = "success"
    REQUEST_ERROR = "requestError"
    SERVER_CONFIGURATION_ERROR = "serverConfigurationError"
    SERVER_AUTH_COMMIT_FAILED = "serverAuthCommitFailed"
    FAILED = "failed"
    FAILURE = "failure"


@dataclass
class Result:
    """Outcome of one identity/auth step.

    `offending` lists the input values that caused a requestError (bad
    function names, for instance). `payload` carries step-specific
    output such as a provider's clean record or an issued token.
    """

    state: State
    reason: str = ""
    offending: list[str] = field(default_factory=list)
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.state is State.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"state": self.state.value}
        if self.reason:
            data["reason"] = self.reason
        if self.offending:
            data["offending"] = list(self.offending)
        data.update(self.payload)
        return data

    # ─── Constructors ───────────────────────────────────

    @classmethod
    def success(cls, **payload: Any) -> "Result":
        return cls(State.SUCCESS, payload=payload)

    @classmethod
    def request_error(cls, reason: str, offending: list[str] | None = None) -> "Result":
        return cls(State.REQUEST_ERROR, reason, list(offending or []))

    @classmethod
    def configuration_error(cls, reason: str) -> "Result":
        return cls(State.SERVER_CONFIGURATION_ERROR, reason)

    @classmethod
    def commit_failed(cls, reason: str) -> "Result":
        return cls(State.SERVER_AUTH_COMMIT_FAILED, reason)

    @classmethod
    def failed(cls, reason: str) -> "Result":
        return cls(State.FAILED, reason)

    @classmethod
    def failure(cls, reason: str) -> "Result":
        return cls(State.FAILURE, reason)
