"""Publish a single event to an EventBridge bus.

    event-publish --source myapp.orders --detail-type OrderCreated \
        --message '{"orderId": "o1", "status": "new"}'
"""
from __future__ import annotations

import argparse
import logging
import sys

from event_subscriber.application.exceptions import ConfigurationError, PublishError
from event_subscriber.config import Settings, get_settings
from event_subscriber.infrastructure.bus.eventbridge_publisher import (
    EventBridgePublisher,
    create_eventbridge_client,
    prepare_detail,
    split_and_trim,
)

logger = logging.getLogger(__name__)


def parse_args(settings: Settings, argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Publish one event to EventBridge")
    parser.add_argument(
        "--bus",
        default=settings.EVENT_BUS_NAME,
        help=f"Event bus name (default: {settings.EVENT_BUS_NAME})",
    )
    parser.add_argument("--source", required=True, help="Event source identifier (e.g. myapp.orders)")
    parser.add_argument("--detail-type", required=True, help="Event detail type (e.g. OrderCreated)")
    parser.add_argument("--message", required=True, help="Event detail payload (JSON or plain text)")
    parser.add_argument("--resources", default="", help="Comma-separated resource ARNs (optional)")
    parser.add_argument("--trace-header", default="", help="X-Ray trace header (optional)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = get_settings()
    except ConfigurationError as exc:
        logger.error("%s", exc.detail)
        sys.exit(1)
    logging.getLogger().setLevel(settings.LOG_LEVEL)
    args = parse_args(settings, argv)

    try:
        detail = prepare_detail(args.message)
    except ValueError as exc:
        logger.error("Invalid --message payload: %s", exc)
        sys.exit(1)

    try:
        publisher = EventBridgePublisher(create_eventbridge_client(settings), args.bus)
        event_id = publisher.publish(
            args.source,
            args.detail_type,
            detail,
            resources=split_and_trim(args.resources),
            trace_header=args.trace_header,
        )
    except PublishError as exc:
        logger.error("%s", exc.detail)
        sys.exit(1)

    logger.info("Event sent successfully to bus %s (event id %s)", args.bus, event_id)


if __name__ == "__main__":
    main()
