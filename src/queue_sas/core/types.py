"""Domain types, enumerations, and data models for queue-sas.

This module is the single source of truth for the library's domain
vocabulary.  All other modules import *from* this module, never the reverse.

Design notes
------------
* Enumerations use :class:`~enum.StrEnum` so values render as plain strings
  in logs and CLI output.
* Every model is a Pydantic ``frozen=True`` model.  A queue's policy set is a
  plain ``dict[str, AccessPolicy]`` keyed by policy name, so one name can
  never map to two policies.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, SecretStr

# Permission letter granting get + delete of messages ("process messages").
PROCESS_MESSAGES = "p"

# Stand-in for an unbounded expiry; the service needs a concrete timestamp.
NEVER_EXPIRES = datetime(9999, 12, 31, 23, 59, 59, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class IssueOutcome(StrEnum):
    """Which branch of the issue procedure produced a token.

    ADHOC
        No policy name was given; the token embeds its own rule.
    CREATED
        The named policy did not exist and was added to the queue.
    REUSED
        The named policy already existed and was left untouched.
    OVERWRITTEN
        The named policy already existed and was replaced.
    """

    ADHOC = "adhoc"
    CREATED = "created"
    REUSED = "reused"
    OVERWRITTEN = "overwritten"


class VerificationStatus(StrEnum):
    """Outcome of a token probe.  The three values are exhaustive."""

    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"
    UNREACHABLE = "unreachable"


class ProbeMode(StrEnum):
    """Operation used to test a token against a queue.

    RECEIVE
        Dequeue at most one message with a short visibility timeout.  Needs
        the ``p`` permission that issued tokens carry.  The message becomes
        visible again once the timeout lapses.
    PEEK
        Read at most one message without changing its visibility.  Needs the
        ``r`` permission.
    """

    RECEIVE = "receive"
    PEEK = "peek"


# ---------------------------------------------------------------------------
# Domain models
# ---------------------------------------------------------------------------


class AccountIdentity(BaseModel):
    """Storage account name and key.

    The key is held as a :class:`~pydantic.SecretStr` so it never shows up in
    ``repr`` output or logs.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Storage account name.")
    key: SecretStr = Field(..., description="Base64 storage account key.")


class AccessPolicy(BaseModel):
    """A stored access policy, or the unnamed rule of an ad-hoc token.

    Attributes:
        permission: Permission letters (``r``, ``a``, ``u``, ``p``).  ``None``
            when a policy read from the service carries no permission.
        expiry: Expiry time in UTC.
        start: Optional start time in UTC.
    """

    model_config = ConfigDict(frozen=True)

    permission: str | None = Field(default=None, description="Permission letters.")
    expiry: datetime | None = Field(default=None, description="Expiry (UTC).")
    start: datetime | None = Field(default=None, description="Start (UTC).")

    @classmethod
    def process_messages(cls) -> AccessPolicy:
        """Return the rule every issued token is signed with: process messages, never expires."""
        return cls(permission=PROCESS_MESSAGES, expiry=NEVER_EXPIRES)


class IssueResult(BaseModel):
    """What :meth:`~queue_sas.issuer.TokenIssuer.issue` hands back to the caller.

    Attributes:
        queue_name: Name of the queue the token is scoped to.
        queue_url: Resolved queue address.
        token: The SAS token string (no leading ``?``).
        outcome: Which issue branch ran.
        policy_name: Stored policy the token refers to; ``None`` for ad-hoc.
        policy: The policy or ad-hoc rule the token was signed against.
    """

    model_config = ConfigDict(frozen=True)

    queue_name: str
    queue_url: str
    token: str
    outcome: IssueOutcome
    policy_name: str | None = None
    policy: AccessPolicy


class VerificationResult(BaseModel):
    """Outcome of :meth:`~queue_sas.verifier.TokenVerifier.verify`.

    Attributes:
        status: Authorized, unauthorized or unreachable.
        queue_name: Queue named by the endpoint.
        queue_url: Endpoint that was probed.
        reason: Service or transport explanation for a negative result.
        status_code: HTTP status of the failed probe, when one was received.
        error_code: Storage error code of the failed probe, when known.
    """

    model_config = ConfigDict(frozen=True)

    status: VerificationStatus
    queue_name: str
    queue_url: str
    reason: str | None = None
    status_code: int | None = None
    error_code: str | None = None

    @property
    def is_authorized(self) -> bool:
        return self.status == VerificationStatus.AUTHORIZED


__all__ = [
    "NEVER_EXPIRES",
    "PROCESS_MESSAGES",
    "AccessPolicy",
    "AccountIdentity",
    "IssueOutcome",
    "IssueResult",
    "ProbeMode",
    "VerificationResult",
    "VerificationStatus",
]
