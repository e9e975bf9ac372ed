# cli/cli.py
"""
CLI registry and dispatcher for lead funnel operator commands.
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
import traceback
from typing import Callable, Dict, Optional

from cli.verification import (
    check_api_health,
    check_config,
    check_readiness,
    check_lead_flow,
)
from leadfunnel.core.config import Settings


# Output formatting utilities
def _supports_color() -> bool:
    """Check if terminal supports ANSI color codes."""
    if sys.platform == "win32":
        return os.getenv("TERM") == "xterm" or os.getenv("ANSICON") is not None
    return sys.stdout.isatty()


SUPPORTS_COLOR = _supports_color()

# ANSI color codes
GREEN = '\033[92m' if SUPPORTS_COLOR else ''
RED = '\033[91m' if SUPPORTS_COLOR else ''
YELLOW = '\033[93m' if SUPPORTS_COLOR else ''
BLUE = '\033[94m' if SUPPORTS_COLOR else ''
RESET = '\033[0m' if SUPPORTS_COLOR else ''


def print_success(message: str):
    """Print success message with [✓] symbol."""
    print(f"{GREEN}[✓]{RESET} {message}")


def print_error(message: str):
    """Print error message with [✗] symbol."""
    print(f"{RED}[✗]{RESET} {message}")


def print_warning(message: str):
    """Print warning message with [!] symbol."""
    print(f"{YELLOW}[!]{RESET} {message}")


def print_info(message: str):
    """Print info message with [i] symbol."""
    print(f"{BLUE}[i]{RESET} {message}")


# Command functions
async def cmd_verify_config(args: argparse.Namespace) -> int:
    """Command: Validate sink configuration from the environment."""
    print_info("Checking configuration...")
    result = check_config(Settings())

    for warning in result.data.get('warnings', []):
        print_warning(f"  {warning}")
    for error in result.data.get('errors', []):
        print_error(f"  {error}")

    if result.success:
        print_success(result.message)
        print_info(
            f"  Cooldown {result.data['cooldown_seconds']}s "
            f"({result.data['rate_limit_backend']} backend)"
        )
        return 0
    print_error(result.message)
    return 1


async def cmd_verify_api_start(args: argparse.Namespace) -> int:
    """Command: Verify API is up and ready."""
    print_info("Checking API health...")
    api_url = getattr(args, 'api_url', 'http://localhost:8000')
    result = await check_api_health(api_url=api_url)

    if not result.success:
        print_error(result.message)
        return 1
    print_success(result.message)

    readiness = await check_readiness(api_url=api_url)
    for name, state in readiness.data.get('checks', {}).items():
        print_info(f"  {name}: {state}")
    if readiness.success:
        print_success(readiness.message)
        return 0
    print_error(readiness.message)
    return 1


async def cmd_verify_lead_flow(args: argparse.Namespace) -> int:
    """Command: Submit a sample lead through the public endpoint."""
    live = getattr(args, 'live', False)
    if live:
        print_warning("Sending a REAL lead: the admin inbox and lead sheet will receive it")
    else:
        print_info("Submitting honeypot lead (no e-mail, no sheet row)...")
    api_url = getattr(args, 'api_url', 'http://localhost:8000')
    result = await check_lead_flow(api_url=api_url, live=live)

    if result.success:
        print_success(result.message)
        details = result.data.get('details', {})
        if live and details:
            print_info(f"  email: {details.get('email')}, sheets: {details.get('sheets')}")
        return 0
    print_error(result.message)
    return 1


async def cmd_verify_all(args: argparse.Namespace) -> int:
    """Command: Run all verification steps."""
    print_info("Running all verification checks...")
    print()

    checks = [
        ('Configuration', cmd_verify_config),
        ('API Health', cmd_verify_api_start),
        ('Lead Flow', cmd_verify_lead_flow),
    ]

    results = []
    for check_name, check_func in checks:
        print_info(f"Running: {check_name}...")
        exit_code = await check_func(args)
        results.append((check_name, exit_code == 0))
        print()

    passed = sum(1 for _, success in results if success)
    total = len(results)

    if passed == total:
        print_success(f"All {total} checks passed")
        return 0

    print_error(f"{passed}/{total} checks passed")
    for check_name, success in results:
        status = "PASS" if success else "FAIL"
        symbol = "✓" if success else "✗"
        print(f"  [{symbol}] {check_name}: {status}")
    return 1


# Command registry
COMMANDS: Dict[str, Callable] = {
    'verify-config': cmd_verify_config,
    'verify-api-start': cmd_verify_api_start,
    'verify-lead-flow': cmd_verify_lead_flow,
    'verify-all': cmd_verify_all,
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        description='Lead Funnel CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # verify-config
    subparsers.add_parser('verify-config', help='Validate sink configuration')

    # verify-api-start
    api_parser = subparsers.add_parser('verify-api-start', help='Verify API is up and ready')
    api_parser.add_argument('--api-url', default='http://localhost:8000', help='API URL')

    # verify-lead-flow
    lead_parser = subparsers.add_parser('verify-lead-flow', help='Submit a sample lead')
    lead_parser.add_argument('--api-url', default='http://localhost:8000', help='API URL')
    lead_parser.add_argument('--live', action='store_true', help='Send a real lead to both sinks')

    # verify-all
    all_parser = subparsers.add_parser('verify-all', help='Run all verification checks')
    all_parser.add_argument('--api-url', default='http://localhost:8000', help='API URL')
    all_parser.add_argument('--live', action='store_true', help='Send a real lead to both sinks')

    return parser


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    command_func = COMMANDS.get(parsed_args.command)
    if not command_func:
        print_error(f"Unknown command: {parsed_args.command}")
        parser.print_help()
        return 1

    try:
        return asyncio.run(command_func(parsed_args))
    except KeyboardInterrupt:
        print_error("\nInterrupted by user")
        return 130
    except Exception as e:
        print_error(f"Error executing command: {str(e)}")
        if os.getenv('DEBUG'):
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
