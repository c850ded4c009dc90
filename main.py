"""Interactive multi-agent CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from handoffAgent.cli import HandoffCLI
from handoffAgent.config import get_settings
from handoffAgent.runtime import build_application
from handoffAgent.utils import log_error, setup_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with a team of agents that hand conversations to each other.")
    parser.add_argument("--user", default="local-user", help="User id for sessions")
    parser.add_argument("--tenant", default="local", help="Tenant id for sessions")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    logger = setup_logging(
        level=getattr(logging, settings.observability.log_level.upper(), logging.INFO),
        log_dir=settings.observability.log_dir,
        preview_length=settings.observability.log_content_max_length,
    )

    try:
        app = build_application(settings)
    except Exception as e:
        log_error(logger, e, context="building application")
        print(f"❌ 启动失败: {e}")
        sys.exit(1)

    asyncio.run(HandoffCLI(app, user_id=args.user, tenant_id=args.tenant).run())


if __name__ == "__main__":
    main()
