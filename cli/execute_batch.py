#!/usr/bin/env python3
"""
Batch executor.
Runs a JSON array of Hedera operation items with the operator configured in
the environment (HEDERA_OPERATOR_ACCOUNT_ID, HEDERA_OPERATOR_PRIVATE_KEY,
HEDERA_NETWORK) and prints one record per item.
"""

import asyncio
import json
import signal
import sys
from typing import Any

import structlog

from hedera_node.config import HederaCredentials, Settings, get_settings
from hedera_node.core.dispatcher import Operator, build_dispatcher
from hedera_node.errors import HederaError
from hedera_node.log_config import configure_logging
from hedera_node.network.transports import NetworkTransport, create_transport

logger = structlog.get_logger()


def load_items(path: str) -> list[dict[str, Any]]:
    """Read batch items from a file, or stdin when path is '-'."""
    if path == "-":
        data = json.load(sys.stdin)
    else:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("Batch file must contain a JSON array of items")
    return data


async def execute_batch(
    items: list[dict[str, Any]],
    settings: Settings,
    fail_fast: bool = False,
    max_concurrency: int = 1,
    transport: NetworkTransport | None = None,
) -> list[dict[str, Any]]:
    """Execute items and return their records.

    Args:
        items: Operation items
        settings: Application settings (operator, gateway, timeouts)
        fail_fast: Stop at the first failing item
        max_concurrency: Items processed in parallel
        transport: Transport to use instead of the configured gateway

    Returns:
        One record per item, in input order
    """
    operator = Operator.from_credentials(HederaCredentials.from_settings(settings))

    # Ctrl-C stops dispatching new items; in-flight ones still finish
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
        handles_sigint = True
    except (NotImplementedError, RuntimeError):
        handles_sigint = False

    if transport is None:
        transport = create_transport("http", url=settings.gateway_url, timeout=settings.http_timeout)
    try:
        async with transport:
            dispatcher = build_dispatcher(operator, transport, settings)
            records = await dispatcher.run_batch(
                items,
                fail_fast=fail_fast,
                max_concurrency=max_concurrency,
                cancel_event=cancel_event,
            )
    finally:
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)

    return [record.to_json(reveal_secrets=True) for record in records]


async def main():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Execute a batch of Hedera account and transaction operations"
    )
    parser.add_argument("items", help="Path to a JSON array of items ('-' for stdin)")
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first failure")
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Items processed in parallel (default from settings)",
    )
    parser.add_argument("--network", choices=["mainnet", "testnet", "previewnet"])

    args = parser.parse_args()

    settings = get_settings()
    if args.network:
        settings = settings.model_copy(update={"network": args.network})
    configure_logging(settings)

    try:
        items = load_items(args.items)
        records = await execute_batch(
            items,
            settings,
            fail_fast=args.fail_fast or settings.fail_fast,
            max_concurrency=args.max_concurrency or settings.max_concurrency,
        )
    except HederaError as e:
        logger.error("batch_failed", error_kind=e.kind, error=e.message)
        print(json.dumps(e.to_record(), indent=2, ensure_ascii=False))
        sys.exit(1)
    except (OSError, ValueError) as e:
        logger.error("batch_input_invalid", error=str(e))
        print(f"\n✗ Error: {e}\n")
        sys.exit(2)

    print(json.dumps(records, indent=2, ensure_ascii=False))
    sys.exit(1 if any("errorKind" in record for record in records) else 0)


if __name__ == "__main__":
    asyncio.run(main())
