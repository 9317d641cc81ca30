#!/usr/bin/env python3
"""
InternBot - Main Entry Point

Usage:
    # Run API server for the dashboard
    python main.py server

    # Log in, search and apply from the terminal
    python main.py run --keywords "python, django" --location Mumbai --min-stipend 5000

    # Check configuration
    python main.py check-env
"""

import os
import sys
import asyncio
import argparse
import logging
import signal

from dotenv import load_dotenv

# Settings are read when api.config is imported
load_dotenv()

logger = logging.getLogger("internbot.cli")


def check_environment() -> bool:
    """Report missing settings. Only the run command needs credentials."""
    from api.config import get_config

    missing = get_config().validate()
    credentials = [var for var in ("INTERNSHALA_EMAIL", "INTERNSHALA_PASSWORD") if not os.getenv(var)]

    if credentials:
        print("⚠️  Not set (required for `run` unless passed as flags):")
        for var in credentials:
            print(f"  - {var}")
    if missing:
        print("⚠️  Optional settings missing:")
        for var in missing:
            print(f"  - {var}")
    if not credentials and not missing:
        print("✅ All environment variables set")
    return not credentials


def run_server(host: str, port: int, reload: bool = False):
    """Run the FastAPI server."""
    import uvicorn

    print(f"🚀 Starting server on {host}:{port}")
    uvicorn.run(
        "api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )


async def run_automation(args) -> int:
    """Verify, search and apply to every match; returns a process exit code."""
    from playwright.async_api import Error as PlaywrightError

    from api.main import build_services
    from core.models import RunConfiguration
    from core.exceptions import AutomationError

    services = build_services()
    loop = asyncio.get_running_loop()

    def request_stop():
        logger.warning("Interrupted; finishing the current application")
        loop.create_task(services.orchestrator.stop_run())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, request_stop)

    try:
        result = await services.verifier.verify(args.email, args.password)
        print(result.message)
        if not result.success:
            return 1

        run_config = RunConfiguration(
            keywords=args.keywords,
            location=args.location,
            remote_only=args.remote_only,
            min_stipend=args.min_stipend,
            email=args.email,
        )
        await services.orchestrator.start_run(run_config, services.answers.list())
        await services.orchestrator.wait_idle()

        for event in services.event_log.snapshot()[0]:
            print(f"[{event.timestamp:%H:%M:%S}] {event.severity.value:<7} {event.message}")
        stats = services.orchestrator.stats()
        print(f"\nApplied: {stats['applied']}  Failed: {stats['failed']}  Skipped: {stats['skipped']}")
        return 0
    except (AutomationError, PlaywrightError) as e:
        logger.error(f"Automation aborted: {e}")
        print(f"Error: {e}")
        return 1
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await services.session.close_session()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="InternBot - automated internship applications"
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Server command
    server_parser = subparsers.add_parser('server', help='Run API server')
    server_parser.add_argument('--host', default=None, help='Host to bind to')
    server_parser.add_argument('--port', type=int, default=None, help='Port to bind to')
    server_parser.add_argument('--reload', action='store_true', help='Enable auto-reload')

    # Run command
    run_parser = subparsers.add_parser('run', help='Log in, search and apply')
    run_parser.add_argument('--email', default=os.getenv("INTERNSHALA_EMAIL"), help='Login e-mail')
    run_parser.add_argument('--password', default=os.getenv("INTERNSHALA_PASSWORD"), help='Login password')
    run_parser.add_argument('--keywords', default='', help='Comma-separated keywords')
    run_parser.add_argument('--location', default='', help='City filter')
    run_parser.add_argument('--remote-only', action='store_true', help='Work from home only')
    run_parser.add_argument('--min-stipend', type=int, default=0, help='Minimum monthly stipend')

    subparsers.add_parser('check-env', help='Check configuration')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.command == 'check-env':
        sys.exit(0 if check_environment() else 1)

    elif args.command == 'server':
        from api.config import get_config
        config = get_config()
        run_server(args.host or config.HOST, args.port or config.PORT, args.reload)

    elif args.command == 'run':
        if not args.email or not args.password:
            parser.error("run needs --email/--password or INTERNSHALA_EMAIL/INTERNSHALA_PASSWORD")
        sys.exit(asyncio.run(run_automation(args)))


if __name__ == "__main__":
    main()
