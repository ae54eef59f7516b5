"""
Network Diagnostics CLI

Command-line interface for the diagnostic probes.
"""

import asyncio
import argparse
import json
import sys
from typing import List, Optional
import logging

from .config import ProbeSettings
from .errors import DiagnosticError, ValidationError
from .facade import DiagnosticService
from .utils.probe_metrics import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser"""
    parser = argparse.ArgumentParser(
        prog='netdiag',
        description='Network Diagnostics - reachability, HTTP, port and TLS probes',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Liveness from the three default vantage points
  python -m netdiag.cli ping example.com

  # HTTP health check
  python -m netdiag.cli http https://example.com

  # Scan specific ports
  python -m netdiag.cli ports example.com -p 22 80 443

  # Inspect a TLS certificate as JSON
  python -m netdiag.cli ssl example.com --json
        """
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the raw result as JSON'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit log records as JSON'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    ping = subparsers.add_parser('ping', help='Reachability probe')
    ping.add_argument('host', help='Hostname or IP address')
    ping.add_argument(
        '--locations',
        nargs='+',
        help='Vantage point names (at least three to take effect)'
    )

    http = subparsers.add_parser('http', help='HTTP(S) health check')
    http.add_argument('url', help='URL including http:// or https://')

    ports = subparsers.add_parser('ports', help='TCP port scan')
    ports.add_argument('host', help='Hostname or IP address')
    ports.add_argument(
        '-p', '--ports',
        nargs='+',
        type=int,
        help='Ports to scan (default: common ports)'
    )

    ssl = subparsers.add_parser('ssl', help='TLS certificate inspection')
    ssl.add_argument('domain', help='Domain (scheme, port and path are ignored)')

    return parser


async def run_command(args, service: DiagnosticService):
    """Execute the selected command and return its result"""
    if args.command == 'ping':
        return await service.probe(args.host, args.locations)
    if args.command == 'http':
        return await service.check(args.url)
    if args.command == 'ports':
        return await service.scan(args.host, args.ports)
    if args.command == 'ssl':
        return await service.inspect(args.domain)
    raise ValidationError(f"Unknown command: {args.command}")


def to_jsonable(result):
    if isinstance(result, list):
        return [item.model_dump(mode='json') for item in result]
    return result.model_dump(mode='json')


def display_results(command: str, result, service: DiagnosticService):
    """Display probe results to console"""
    print("\n" + "=" * 60)

    if command == 'ping':
        print("REACHABILITY")
        print("=" * 60)
        for item in result:
            status = "alive" if item.alive else "unreachable"
            print(f"  {item.vantage_point:<12} {status:<12} {item.response_time_ms:.1f} ms")

    elif command == 'http':
        print("HTTP CHECK")
        print("=" * 60)
        print(f"  Status:        {result.status_code}")
        slow = " (slow)" if service.is_slow_response(result.response_time_ms) else ""
        print(f"  Response Time: {result.response_time_ms:.1f} ms{slow}")
        for name, value in result.headers.items():
            print(f"  {name}: {value}")

    elif command == 'ports':
        print(f"PORT SCAN - {result.host}")
        print("=" * 60)
        print(f"  Scanned: {len(result.scanned_ports)} ports in {result.scan_duration_ms:.0f} ms")
        for record in result.open_ports:
            print(f"  {record.port:>5}/tcp  open    {record.service}")
        if result.closed_ports:
            print(f"  Closed: {', '.join(str(p) for p in result.closed_ports)}")

    elif command == 'ssl':
        print(f"TLS CERTIFICATE - {result.subject}")
        print("=" * 60)
        print(f"  Valid:        {result.valid}")
        print(f"  Issuer:       {result.issuer}")
        print(f"  Valid From:   {result.valid_from}")
        print(f"  Valid To:     {result.valid_to}")
        print(f"  Expires In:   {result.days_until_expiry} days")
        print(f"  Protocol:     {result.protocol}")
        print(f"  Cipher:       {result.cipher}")
        print(f"  SHA-256:      {result.fingerprint_sha256}")
        if result.subject_alt_names:
            print(f"  SANs:         {', '.join(result.subject_alt_names)}")
        if service.is_certificate_expired(result.days_until_expiry):
            print("  WARNING: Certificate is EXPIRED")
        elif service.is_expiring_within_30_days(result.days_until_expiry):
            print("  WARNING: Certificate expires within 30 days")
        if result.is_self_signed:
            print("  WARNING: Certificate appears to be self-signed")

    print("=" * 60 + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    settings = ProbeSettings.from_env()

    level = "DEBUG" if args.verbose else settings.log_level
    configure_logging(level, json_logs=args.json_logs or settings.json_logs)

    service = DiagnosticService(settings.timeouts)
    try:
        result = asyncio.run(run_command(args, service))
    except ValidationError as e:
        print(json.dumps({"error": e.to_dict()}, indent=2, default=str))
        return 2
    except DiagnosticError as e:
        logger.debug(f"{args.command} failed with {e.code}: {e}")
        print(json.dumps({"error": e.to_dict()}, indent=2, default=str))
        return 1

    if args.json:
        print(json.dumps(to_jsonable(result), indent=2))
    else:
        display_results(args.command, result, service)
    return 0


if __name__ == '__main__':
    sys.exit(main())
