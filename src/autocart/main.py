#!/usr/bin/env python3
"""
Command line entry point for the cart automation.

Examples:
  autocart run                     # random preset keyword
  autocart run --keyword 女裝 --headless
  autocart run --export-logs run.log
  autocart status
  autocart stop                    # stops a run started from another terminal
  autocart clear                   # forget processed products
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from autocart.core.config import AutoCartConfig
from autocart.core.logging_config import ActivityLog, setup_logger
from autocart.db import Database, create_database
from autocart.runner import AutoCartRunner
from autocart.state.coordinator import Coordinator, CoordinatorClient
from autocart.state.store import ProcessedTracker, RunStateStore

logger = logging.getLogger(__name__)


def build_coordinator(config: AutoCartConfig, activity_log: Optional[ActivityLog] = None) -> Coordinator:
    """Coordinator over the SQLite store at `config.database_path`"""
    create_database(config.database_path)
    database = Database(config.database_path)
    return Coordinator(
        RunStateStore(database),
        ProcessedTracker(database),
        config,
        activity_log=activity_log or ActivityLog(max_entries=config.max_log_entries),
    )


class AutoCart:
    """
    Main entry point for the package.
    Wraps the coordinator and the browser runner behind a small API.
    """

    def __init__(self, config: Optional[AutoCartConfig] = None):
        self.config = config or AutoCartConfig.from_env()
        self.activity_log = ActivityLog(max_entries=self.config.max_log_entries)
        self.coordinator = build_coordinator(self.config, self.activity_log)
        self.client = CoordinatorClient(self.coordinator)

    async def run(self, keyword: Optional[str] = None, export_logs: Optional[Path] = None):
        """Drive the browser until the run stops (Ctrl+C, `autocart stop`, or exhaustion)."""
        runner = AutoCartRunner(self.coordinator, self.config)
        try:
            await runner.run(keyword)
        finally:
            await runner.close()
            if export_logs:
                self.export_logs(export_logs)

    async def stop(self) -> Dict[str, Any]:
        return (await self.client.stop()).model_dump()

    async def status(self) -> Dict[str, Any]:
        state = await self.client.get_state()
        return {
            **state.model_dump(),
            'processed_products': len(self.coordinator.tracker),
        }

    async def clear(self) -> int:
        return await self.client.clear_processed()

    def export_logs(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.activity_log.export_text(), encoding='utf-8')
        logger.info(f"CLI: activity log exported to {path}")
        return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='autocart',
        description='Bulk add-to-cart automation for Shopee listings',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split('Examples:', 1)[1] if __doc__ else None,
    )
    parser.add_argument('--log-level', default='INFO', help='Logging level (default: INFO)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    run_parser = subparsers.add_parser('run', help='Start a run and drive the browser')
    run_parser.add_argument('--keyword', type=str, help='Search keyword (default: random preset)')
    run_parser.add_argument('--base-url', type=str, help='Storefront origin, e.g. https://shopee.tw')
    run_parser.add_argument('--headless', action='store_true', help='Run Chrome headless')
    run_parser.add_argument('--export-logs', type=Path, help='Write the activity log here when the run ends')

    subparsers.add_parser('stop', help='Stop the current run')
    subparsers.add_parser('status', help='Show the persisted run state')
    subparsers.add_parser('clear', help='Clear the processed product list')
    return parser


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    config = AutoCartConfig.from_env()
    if getattr(args, 'base_url', None):
        config.base_url = args.base_url.rstrip('/')
    if getattr(args, 'headless', False):
        config.headless = True

    app = AutoCart(config)
    setup_logger('autocart', level=args.log_level, activity_log=app.activity_log)

    if args.command == 'run':
        await app.run(args.keyword, args.export_logs)
        return 0

    if args.command == 'stop':
        result = await app.stop()
    elif args.command == 'status':
        result = await app.status()
    else:
        result = {'cleared': await app.clear()}

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


def run():
    """Console script entry point"""
    if sys.platform == 'win32':
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    run()
