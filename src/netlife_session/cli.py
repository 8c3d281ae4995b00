from __future__ import annotations

import argparse
import asyncio

from netlife_session.config import load_config, validate_auto_logout
from netlife_session.logging_utils import setup_logging
from netlife_session.runner import SessionRunner


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="NetLife inactivity auto-logout session driver")
    parser.add_argument("--config", default="config.yaml")
    parser.add_argument("--user", default="local-user")
    parser.add_argument("--phone", default=None)
    parser.add_argument("--timeout-ms", type=int, default=None)
    parser.add_argument("--warning-ms", type=int, default=None)
    parser.add_argument("--poll-ms", type=int, default=None)
    return parser.parse_args()


async def amain() -> None:
    args = parse_args()
    cfg = load_config(args.config)
    if args.timeout_ms is not None:
        cfg.auto_logout.inactivity_timeout_ms = args.timeout_ms
    if args.warning_ms is not None:
        cfg.auto_logout.warning_lead_time_ms = args.warning_ms
    if args.poll_ms is not None:
        cfg.auto_logout.poll_interval_ms = args.poll_ms
    validate_auto_logout(cfg.auto_logout)
    setup_logging(cfg.runtime.log_level)

    runner = SessionRunner(cfg, user_id=args.user, phone=args.phone)
    await runner.start()


def main() -> None:
    asyncio.run(amain())


if __name__ == "__main__":
    main()
