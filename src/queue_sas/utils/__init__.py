"""Utility functions — name validation and log-safety helpers."""

from queue_sas.utils.security import mask_sas_token, mask_sensitive_data
from queue_sas.utils.validation import (
    queue_name_from_url,
    validate_account_key,
    validate_account_name,
    validate_policy_id,
    validate_queue_name,
    validate_sas_token,
    validate_url,
)

__all__ = [
    # Security
    "mask_sas_token",
    "mask_sensitive_data",
    # Validation
    "queue_name_from_url",
    "validate_account_key",
    "validate_account_name",
    "validate_policy_id",
    "validate_queue_name",
    "validate_sas_token",
    "validate_url",
]
