"""
Driver - The Orchestrator
=========================
Main entry point for the Backlog Unroller.

This script:
1. Scans the /workers folder for worker packages
2. Imports the selected worker and runs its browser session
3. Handles worker failures (logs the traceback, exits non-zero)

Usage:  python run.py --url https://<site>.atlassian.net/jira/software/c/projects/X/boards/1/backlog
        python run.py --find "**READY TO PLAN**" --duration 0
        python run.py --list
"""

import os
import sys
import argparse
import importlib
import logging
from datetime import datetime
from typing import Dict, Any, List, Optional
import traceback

from core.config import (get_global_settings, get_worker_settings, get_log_dir,
                         get_profile_dir, PROJECT_ROOT as CFG_ROOT)

logger = logging.getLogger('driver')

# Configuration
WORKERS_DIR = os.path.join(CFG_ROOT, 'workers')
DEFAULT_WORKER = 'jira_backlog'


def setup_logging():
    """Configure the root logger: dated file under the log dir + stdout."""
    log_filename = os.path.join(get_log_dir(), f"driver_{datetime.now().strftime('%Y%m%d')}.log")
    level = getattr(logging, str(get_global_settings().get('log_level', 'INFO')).upper(), logging.INFO)

    # force=True replaces handlers installed by an earlier basicConfig
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_filename),
            logging.StreamHandler(sys.stdout)
        ],
        force=True
    )


def discover_workers(workers_dir: str = None) -> List[str]:
    """
    Scan the /workers folder for worker packages.

    Returns:
        Sorted list of package names (directories with __init__.py)
    """
    workers_dir = workers_dir or WORKERS_DIR
    workers = []

    if not os.path.exists(workers_dir):
        logger.warning(f"Workers directory not found: {workers_dir}")
        return workers

    for filename in sorted(os.listdir(workers_dir)):
        package_path = os.path.join(workers_dir, filename)
        if filename.startswith('_') or not os.path.isdir(package_path):
            continue
        if os.path.exists(os.path.join(package_path, '__init__.py')):
            workers.append(filename)
            logger.debug(f"Discovered worker package: {filename}")

    return workers


def load_worker_module(worker_name: str):
    """
    Import a worker package from /workers.

    Returns:
        Loaded module object, or None if failed
    """
    try:
        return importlib.import_module(f'workers.{worker_name}')
    except Exception as e:
        logger.error(f"Failed to load worker {worker_name}: {e}")
        logger.error(traceback.format_exc())
        return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='run.py',
        description='Load every item of a virtualized backlog into the page so it can be searched.')
    parser.add_argument('--worker', default=DEFAULT_WORKER,
                        help=f'worker package under workers/ (default: {DEFAULT_WORKER})')
    parser.add_argument('--url', help='board URL (overrides settings.json)')
    action = parser.add_mutually_exclusive_group()
    action.add_argument('--harvest', action='store_true',
                        help='unroll immediately after the board loads')
    action.add_argument('--find', metavar='PHRASE',
                        help='unroll, then jump to the first item containing PHRASE')
    parser.add_argument('--fresh', action='store_true',
                        help='discard a previous harvest and start a new pass')
    parser.add_argument('--duration', type=float, default=None,
                        help='seconds to keep the session alive (default: until the browser closes)')
    parser.add_argument('--headless', action='store_true', default=None,
                        help='run the browser headless')
    parser.add_argument('--list', action='store_true', help='list available workers and exit')
    return parser


def build_options(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge command-line arguments with the global settings."""
    glob = get_global_settings()
    return {
        'url': args.url,
        'harvest': args.harvest,
        'find': args.find,
        'fresh': args.fresh,
        'duration': args.duration,
        'headless': glob.get('headless', False) if args.headless is None else args.headless,
        'use_system_chrome': glob.get('use_system_chrome', True),
        'user_data_dir': get_profile_dir(),
    }


def run_worker(worker_name: str, options: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Load and run one worker.

    Returns:
        The worker's summary dict, or None if it could not run
    """
    module = load_worker_module(worker_name)
    if module is None:
        return None
    if not hasattr(module, 'Worker'):
        logger.error(f"Worker {worker_name} has no Worker class")
        return None

    ws = get_worker_settings(worker_name)
    if ws and ws.get('enabled') is False:
        logger.info(f"Worker '{worker_name}' is disabled in settings.")
        return None

    worker = module.Worker()
    return worker.run(options)


def main(argv: Optional[List[str]] = None):
    """Entry point for the driver."""
    args = build_parser().parse_args(argv)

    if args.list:
        for name in discover_workers():
            module = load_worker_module(name)
            if module is None or not hasattr(module, 'Worker'):
                continue
            meta = module.Worker().get_metadata()
            print(f"{name:20s} {meta['description']}")
        sys.exit(0)

    setup_logging()
    start_time = datetime.now()
    logger.info("=" * 60)
    logger.info(f"DRIVER STARTED - {start_time.strftime('%Y-%m-%d %H:%M:%S')} ({args.worker})")
    logger.info("=" * 60)

    try:
        summary = run_worker(args.worker, build_options(args))
    except Exception as e:
        logger.critical(f"Driver crashed: {e}")
        logger.critical(traceback.format_exc())
        sys.exit(2)

    duration = (datetime.now() - start_time).total_seconds()
    logger.info("=" * 60)
    logger.info(f"DRIVER COMPLETED in {duration:.2f} seconds")
    if summary:
        logger.info(f"  Items harvested: {summary.get('items', 0)}")
        logger.info(f"  Items injected:  {summary.get('injected', 0)}")
    logger.info("=" * 60)

    # An empty summary means the worker failed
    sys.exit(0 if summary else 1)


if __name__ == '__main__':
    main()
