"""Authentication provider base — pluggable credential verification.

Learn: Warden doesn't hard-code how identities prove who they are. Each
identity's `auth` blob names a provider by `type`, and that provider owns
the blob's shape end to end:

1. validate — check caller-supplied credential material (no storage)
2. commit   — turn validated material into what gets stored (e.g. a hash)
3. authenticate — compare supplied credentials with the stored form

The core never looks inside `auth` beyond its `type` key.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from warden.auth.results import Result


class AuthProvider(ABC):
    """Abstract base for credential providers.

    Implement this to add a new way of authenticating identities, then
    register an instance with a ProviderRegistry at startup. validate()
    and authenticate() should return error-shaped Results rather than
    raise; exceptions from commit() are caught by the identity service.
    """

    @property
    @abstractmethod
    def type(self) -> str:
        """Provider identifier, matched against `auth["type"]`, e.g. 'password'."""

    @abstractmethod
    def validate(self, raw: Mapping[str, Any]) -> Result:
        """Check the structure of caller-supplied credential material.

        Success carries `payload["clean_record"]`: only the fields the
        provider needs for commit(), always including `type`.
        """

    @abstractmethod
    def commit(self, clean_record: Mapping[str, Any]) -> Result:
        """Turn a clean record into the stored form.

        Success carries `payload["commit_record"]`, which must include
        `type` and must not include plaintext secrets.
        """

    @abstractmethod
    def authenticate(
        self, stored: Mapping[str, Any], supplied: Mapping[str, Any] | None
    ) -> Result:
        """Compare supplied credentials with the committed record.

        Returns success, failed (mismatch) or requestError (unusable input).
        Never echoes secret material back.
        """
