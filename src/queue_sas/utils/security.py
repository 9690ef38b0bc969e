"""Helpers for keeping credentials out of logs.

``mask_sas_token``
    Redact the signature of a SAS token or SAS URL.

``mask_sensitive_data``
    Redact sensitive keys from a dictionary before logging.
"""

from __future__ import annotations

import re
from typing import Any

_SIG_RE = re.compile(r"(?i)(\bsig=)[^&\s]+")


def mask_sas_token(token: str, mask: str = "***") -> str:
    """Return *token* with the value of its ``sig`` parameter replaced by *mask*.

    Everything else (version, permissions, expiry, policy id) is left intact
    so the masked token is still useful when debugging.

    Example::

        mask_sas_token("sv=2021-08-06&si=p1&sig=abc%3D")
        # → "sv=2021-08-06&si=p1&sig=***"
    """
    return _SIG_RE.sub(lambda m: f"{m.group(1)}{mask}", token)


def mask_sensitive_data(
    data: dict[str, Any],
    sensitive_keys: list[str] | None = None,
    mask: str = "***MASKED***",
) -> dict[str, Any]:
    """Return a copy of *data* with sensitive values replaced by *mask*.

    Key matching is case-insensitive substring search.

    Example::

        mask_sensitive_data({"account": "acct", "account_key": "abc=="})
        # → {"account": "acct", "account_key": "***MASKED***"}
    """
    if sensitive_keys is None:
        sensitive_keys = ["key", "token", "sig", "secret", "connection_string"]

    result = dict(data)
    for key in result:
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in sensitive_keys):
            result[key] = mask
    return result


__all__ = ["mask_sas_token", "mask_sensitive_data"]
