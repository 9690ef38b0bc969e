"""Configuration management for queue-sas.

``QueueSasSettings`` is a ``pydantic_settings.BaseSettings`` model that reads
its values from environment variables (prefix ``QUEUE_SAS_``), an optional
``.env`` file, or explicit keyword arguments.

Environment variables
---------------------
Every field can be overridden with ``QUEUE_SAS_<FIELD_NAME_UPPER>``::

    QUEUE_SAS_ACCOUNT_NAME=mystorageaccount
    QUEUE_SAS_ACCOUNT_KEY=<base64 key>
    QUEUE_SAS_ACCOUNT_URL=http://127.0.0.1:10001/devstoreaccount1
    QUEUE_SAS_PROBE_MODE=peek
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from queue_sas.core.types import ProbeMode


class QueueSasSettings(BaseSettings):
    """Settings shared by the resolver, the verifier and the CLI.

    Example — programmatic::

        settings = QueueSasSettings(account_url="http://127.0.0.1:10001/devstoreaccount1")

    Example — environment variables::

        # .env
        QUEUE_SAS_ACCOUNT_NAME=mystorageaccount
        QUEUE_SAS_ENDPOINT_SUFFIX=core.chinacloudapi.cn

        settings = QueueSasSettings()
    """

    model_config = SettingsConfigDict(
        env_prefix="QUEUE_SAS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    ###########
    # Account #
    ###########

    account_name: str | None = Field(
        default=None,
        description="Storage account name used when the CLI is not given one.",
    )

    account_key: SecretStr | None = Field(
        default=None,
        description="Storage account key used when the CLI is not given one.",
    )

    ############
    # Endpoint #
    ############

    protocol: Literal["https", "http"] = Field(
        default="https",
        description="Scheme of the derived queue service URL.",
    )

    endpoint_suffix: str = Field(
        default="core.windows.net",
        description="DNS suffix of the derived queue service URL.",
    )

    account_url: str | None = Field(
        default=None,
        description=(
            "Queue service URL overriding the derived one "
            "(emulators, custom domains)."
        ),
    )

    #########
    # Probe #
    #########

    probe_mode: ProbeMode = Field(
        default=ProbeMode.RECEIVE,
        description="Operation used by the verifier to test a token.",
    )

    probe_visibility_timeout: int = Field(
        default=1,
        ge=1,
        le=604_800,
        description="Seconds a message received by a RECEIVE probe stays hidden.",
    )

    ###########
    # Logging #
    ###########

    log_level: str = Field(
        default="INFO",
        description="Root log level configured by the CLI.",
    )

    ####################
    # Field validators #
    ####################

    @field_validator("endpoint_suffix")
    @classmethod
    def _validate_endpoint_suffix(cls, v: str) -> str:
        suffix = v.strip().strip(".")
        if not suffix:
            msg = "endpoint_suffix must not be empty."
            raise ValueError(msg)
        return suffix

    @field_validator("account_url")
    @classmethod
    def _validate_account_url(cls, v: str | None) -> str | None:
        if v is None:
            return v
        from queue_sas.utils.validation import validate_url  # noqa: PLC0415

        url = v.rstrip("/")
        if not validate_url(url):
            msg = f"account_url must be an absolute http(s) URL, got {v!r}."
            raise ValueError(msg)
        return url

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            msg = f"Unknown log level {v!r}."
            raise ValueError(msg)
        return level

    ##################
    # Helper methods #
    ##################

    def get_account_url(self, account_name: str) -> str:
        """Return the queue service URL for *account_name*.

        Example::

            settings.get_account_url("acct")  # "https://acct.queue.core.windows.net"
        """
        if self.account_url:
            return self.account_url
        return f"{self.protocol}://{account_name}.queue.{self.endpoint_suffix}"


__all__ = ["QueueSasSettings"]
