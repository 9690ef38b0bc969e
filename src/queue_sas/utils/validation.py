"""Name and endpoint validation for storage resources.

Every account name, queue name, policy name and endpoint that reaches a
queue handle passes through these validators first, so malformed input is
rejected locally instead of surfacing as an opaque service error.

Rules follow the Azure Storage naming conventions:

- Account name: 3-24 characters, lowercase letters and digits only.
- Queue name: 3-63 characters, lowercase letters, digits and hyphens; starts
  and ends with a letter or digit; no consecutive hyphens.
- Stored access policy id: 1-64 characters.

Input length is capped *before* any regex runs.
"""

from __future__ import annotations

import base64
import binascii
import re
from urllib.parse import parse_qs, urlsplit

################################
# Compiled regular expressions #
################################

_ACCOUNT_NAME_RE = re.compile(r"^[a-z0-9]{3,24}$")

_QUEUE_NAME_RE = re.compile(r"^[a-z0-9](?:[a-z0-9]|-(?!-)){1,61}[a-z0-9]$")

# HTTP/HTTPS URL.
_URL_RE = re.compile(r"^https?://[a-zA-Z0-9.\-]+(:[0-9]{1,5})?(/.*)?$")

_MAX_INPUT_LEN: int = 512

_MAX_TOKEN_LEN: int = 2048

MAX_POLICY_ID_LEN: int = 64


##############
# Validators #
##############


def validate_account_name(name: str) -> bool:
    """Return ``True`` if *name* is a valid storage account name.

    Examples::

        validate_account_name("mystorage01")  # True
        validate_account_name("My-Storage")   # False
    """
    if not name or not isinstance(name, str):
        return False
    if len(name) > _MAX_INPUT_LEN:
        return False
    return bool(_ACCOUNT_NAME_RE.match(name))


def validate_account_key(key: str) -> bool:
    """Return ``True`` if *key* is non-empty, strictly valid base64."""
    if not key or not isinstance(key, str):
        return False
    try:
        base64.b64decode(key, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def validate_queue_name(name: str) -> bool:
    """Return ``True`` if *name* is a valid queue name.

    Examples::

        validate_queue_name("orders-in")   # True
        validate_queue_name("orders--in")  # False  (consecutive hyphens)
        validate_queue_name("-orders")     # False  (starts with hyphen)
        validate_queue_name("Orders")      # False  (uppercase)
    """
    if not name or not isinstance(name, str):
        return False
    if len(name) > _MAX_INPUT_LEN:
        return False
    return bool(_QUEUE_NAME_RE.match(name))


def validate_policy_id(policy_id: str) -> bool:
    """Return ``True`` if *policy_id* can name a stored access policy."""
    if not policy_id or not isinstance(policy_id, str):
        return False
    return len(policy_id) <= MAX_POLICY_ID_LEN


def validate_url(url: str) -> bool:
    """Return ``True`` if *url* is a well-formed HTTP or HTTPS URL."""
    if not url or not isinstance(url, str):
        return False
    if len(url) > _MAX_INPUT_LEN:
        return False
    return bool(_URL_RE.match(url))


def validate_sas_token(token: str) -> bool:
    """Return ``True`` if *token* is a SAS query string carrying a signature.

    A bare account key has no ``sig`` parameter and is rejected.

    Examples::

        validate_sas_token("sv=2021-08-06&si=p1&sig=abc%3D")  # True
        validate_sas_token("c2VjcmV0a2V5==")                  # False
    """
    if not token or not isinstance(token, str):
        return False
    if len(token) > _MAX_TOKEN_LEN:
        return False
    return bool(parse_qs(token).get("sig"))


def queue_name_from_url(url: str) -> str:
    """Return the last non-empty path segment of *url*.

    Works for both the hosted form (``https://acct.queue.../orders``) and the
    emulator path-style form (``http://127.0.0.1:10001/devstoreaccount1/orders``).

    Returns:
        The queue name, or ``""`` when the path is empty.
    """
    segments = [s for s in urlsplit(url).path.split("/") if s]
    return segments[-1] if segments else ""


__all__ = [
    "MAX_POLICY_ID_LEN",
    "queue_name_from_url",
    "validate_account_key",
    "validate_account_name",
    "validate_policy_id",
    "validate_queue_name",
    "validate_sas_token",
    "validate_url",
]
