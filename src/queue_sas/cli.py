"""Command-line entry point: ``queue-sas get`` and ``queue-sas test``.

Examples::

    # Ad-hoc token (nothing stored on the queue)
    queue-sas get -a mystorage -k <key> -q orders

    # Token backed by the stored policy "consumer", replacing it if present
    queue-sas get -a mystorage -k <key> -q orders -p consumer -f

    # Check a token
    queue-sas test -e https://mystorage.queue.core.windows.net/orders -t "sv=...&si=consumer&sig=..."

Account name and key fall back to ``QUEUE_SAS_ACCOUNT_NAME`` and
``QUEUE_SAS_ACCOUNT_KEY``.

Exit codes
----------
0  token issued, or token authorized
1  tool error (bad input, remote read/write failure, signing failure)
2  usage error
3  token unauthorized
4  endpoint unreachable
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from queue_sas import __version__
from queue_sas.core.config import QueueSasSettings
from queue_sas.core.exceptions import QueueSasError
from queue_sas.core.types import AccountIdentity, IssueOutcome, VerificationStatus
from queue_sas.service import SasTokenService
from queue_sas.utils.security import mask_sensitive_data

logger = logging.getLogger("queue_sas")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_UNAUTHORIZED = 3
EXIT_UNREACHABLE = 4

_VERIFICATION_EXIT_CODES = {
    VerificationStatus.AUTHORIZED: EXIT_OK,
    VerificationStatus.UNAUTHORIZED: EXIT_UNAUTHORIZED,
    VerificationStatus.UNREACHABLE: EXIT_UNREACHABLE,
}

_RULE = "-" * 87


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="queue-sas",
        description="Generate and test SAS tokens for Azure Storage queues.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)

    get = commands.add_parser(
        "get",
        help="Generate new or get existing SAS token for specified storage entity",
    )
    get.add_argument("-a", "--account", help="Storage account name")
    get.add_argument("-k", "--key", help="Storage account key")
    get.add_argument(
        "-s",
        "--service",
        choices=["queue"],
        default="queue",
        type=str.lower,
        help="Storage service",
    )
    get.add_argument("-p", "--policy", default="", help="Persistent SAS token policy name")
    get.add_argument("-q", "--queue", required=True, help="Queue name")
    get.add_argument("-f", "--force", action="store_true", help="Overwrite existing policy")

    test = commands.add_parser("test", help="Test specified SAS token")
    test.add_argument(
        "-s",
        "--service",
        choices=["queue"],
        default="queue",
        type=str.lower,
        help="Storage service",
    )
    test.add_argument("-t", "--token", required=True, help="SAS token")
    test.add_argument("-e", "--endpoint", required=True, help="Service endpoint uri")

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout, force=True)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = QueueSasSettings()
    except ValidationError as exc:
        configure_logging("INFO")
        logger.error("Invalid QUEUE_SAS_* settings: %s", exc)
        return EXIT_ERROR

    configure_logging("DEBUG" if args.verbose else settings.log_level)
    logger.debug("Settings: %s", mask_sensitive_data(settings.model_dump()))

    logger.info(_RULE)
    logger.info("AZURE storage SAS token generation tool. Version %s.", __version__)
    logger.info(_RULE)
    logger.info("")

    service = SasTokenService(settings)
    try:
        if args.command == "get":
            code = _run_get(parser, args, settings, service)
        else:
            code = _run_test(args, service)
    except QueueSasError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return EXIT_ERROR

    logger.info("")
    logger.info("Done.")
    return code


def _run_get(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    settings: QueueSasSettings,
    service: SasTokenService,
) -> int:
    account = args.account or settings.account_name
    key = args.key or (settings.account_key.get_secret_value() if settings.account_key else None)
    if not account or not key:
        parser.error("get requires --account and --key (or QUEUE_SAS_ACCOUNT_NAME / QUEUE_SAS_ACCOUNT_KEY)")

    result = asyncio.run(
        service.issue_token(
            AccountIdentity(name=account, key=key),
            args.queue,
            policy_name=args.policy or None,
            overwrite=args.force,
        )
    )

    if result.outcome == IssueOutcome.ADHOC:
        logger.info("Generated ad-hoc SAS token for %s queue.", result.queue_name)
    logger.info("Queue address   : %s.", result.queue_url)
    logger.info("Queue SAS token : %s.", result.token)
    return EXIT_OK


def _run_test(args: argparse.Namespace, service: SasTokenService) -> int:
    result = asyncio.run(service.verify_token(args.endpoint, args.token))
    if not result.is_authorized:
        detail = f" ({result.error_code})" if result.error_code else ""
        logger.info("SAS token check result: %s%s - %s", result.status, detail, result.reason)
    return _VERIFICATION_EXIT_CODES[result.status]


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


__all__ = ["build_parser", "main", "run"]
