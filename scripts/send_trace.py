#!/usr/bin/env python3
"""
Smoke test - send a trace to a Langfuse instance and wait for delivery.

Usage:
    # Credentials from LANGFUSE_* env vars or ./langfuse.yaml
    python scripts/send_trace.py --name smoke-test

    # Explicit config file, a few child spans
    python scripts/send_trace.py --config langfuse.yaml --spans 5

    # Check the API is reachable first
    python scripts/send_trace.py --health
"""

import argparse
import logging
import sys
from pathlib import Path

from langfuse_sdk import HttpIngestionClient, Langfuse, TransportError, load_config


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def check_health(config) -> bool:
    """Call the health endpoint, returning True when it answers."""
    with HttpIngestionClient(
        config.host, config.public_key, config.secret_key, timeout=config.request_timeout_s
    ) as client:
        try:
            status = client.health()
        except TransportError as e:
            logger.error(f"Health check failed: {e}")
            return False
    logger.info(f"Health: {status}")
    return True


def send_trace(config, name: str, spans: int) -> int:
    """
    Send one trace with child spans, then shut the client down.

    Returns:
        Number of records still buffered after the final flush.
    """
    langfuse = Langfuse(config)
    trace = langfuse.trace(name=name, metadata={"source": "send_trace.py"})
    for i in range(spans):
        span = trace.span(name=f"{name}-span-{i}", input={"index": i})
        span.output = {"ok": True}
        span.end()
    trace.score(name="smoke", value=1)

    logger.info(f"Trace {trace.id}: pending per queue {langfuse.event_manager.occupancy()}")
    langfuse.shutdown()

    remaining = langfuse.event_manager.pending_count
    print(f"Trace id: {trace.id}")
    print(f"Records still buffered: {remaining}")
    return remaining


def main():
    parser = argparse.ArgumentParser(
        description="Send a test trace to Langfuse",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to langfuse.yaml configuration file",
    )
    parser.add_argument(
        "--name",
        type=str,
        default="smoke-test",
        help="Trace name",
    )
    parser.add_argument(
        "--spans",
        type=int,
        default=3,
        help="Number of child spans to create",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        help="Only call the health endpoint",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = load_config(str(args.config) if args.config else None)
    if not config.has_credentials:
        print("No credentials. Set LANGFUSE_PUBLIC_KEY / LANGFUSE_SECRET_KEY or use --config")
        sys.exit(1)

    if args.health:
        sys.exit(0 if check_health(config) else 1)

    remaining = send_trace(config, args.name, args.spans)
    sys.exit(1 if remaining else 0)


if __name__ == "__main__":
    main()
