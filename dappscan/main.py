"""Command line entry point for dappscan."""

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import replace
from pathlib import Path
from urllib.parse import urlparse

from .api.server import ScanApiServer
from .config import Config, load_config, validate_config
from .constants import VERSION
from .errors import ConfigurationError, DappScanError
from .pipeline.scan import ScanPipeline
from .storage.reports import REPORT_FORMATS, ReportStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dappscan",
        description="Security scanner for Web3 dApp frontends and their contracts",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze a Web3 dApp for security issues")
    analyze.add_argument("url", help="URL of the Web3 dApp to analyze")
    analyze.add_argument("-o", "--output", type=Path, default=None, help="Output directory for reports")
    analyze.add_argument("-f", "--format", choices=REPORT_FORMATS, default="json", help="Report format")
    analyze.add_argument("--rpc", default=None, help="Custom RPC endpoint for contract analysis")
    analyze.add_argument("--timeout", type=float, default=None, help="Analysis timeout in seconds")
    analyze.add_argument("--verbose", action="store_true", help="Verbose logging")

    listing = sub.add_parser("list", help="List previous scan reports")
    listing.add_argument("-o", "--output", type=Path, default=None, help="Reports directory")
    listing.add_argument("-n", "--limit", type=int, default=10, help="Number of reports to show")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("-o", "--output", type=Path, default=None, help="Reports directory")
    serve.add_argument("--verbose", action="store_true", help="Verbose logging")

    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Fold command line options into the loaded configuration."""
    changes = {}
    if getattr(args, "output", None) is not None:
        changes["reports_dir"] = args.output
    if getattr(args, "rpc", None):
        changes["rpc_url"] = args.rpc
    if getattr(args, "timeout", None) is not None:
        changes["scan_timeout"] = args.timeout
    if getattr(args, "host", None):
        changes["api_host"] = args.host
    if getattr(args, "port", None) is not None:
        changes["api_port"] = args.port
    return replace(config, **changes) if changes else config


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def print_summary(report: dict, paths: list[Path]) -> None:
    risk = report["riskSummary"]
    frontend = report["frontendAnalysis"]["summary"]
    contracts = report["contractAnalysis"]["summary"]

    for path in paths:
        print(f"Report saved: {path}")
    print()
    print("SECURITY SUMMARY")
    print("================")
    print(f"URL:       {report['url']}")
    print(f"Scan ID:   {report['scanId']}")
    print(f"Timestamp: {report['timestamp']}")
    print()
    print(f"Risk Level:     {risk['level'].upper()}")
    print(f"Security Score: {risk['score']}/100")
    print()
    if risk["issues"]:
        print("Issues Found:")
        for index, issue in enumerate(risk["issues"], 1):
            print(f"  {index}. {issue}")
        print()
    print("Frontend Analysis:")
    print(f"  - {frontend['buttonsAnalyzed']} interactive elements analyzed")
    print(f"  - {frontend['walletInteractions']} wallet interactions detected")
    print(f"  - {frontend['externalScripts']} external scripts found")
    print()
    print("Contract Analysis:")
    print(f"  - {contracts['contractsFound']} contracts discovered")
    print(f"  - {contracts['verifiedContracts']} verified contracts")
    print(f"  - {contracts['functionsDetected']} functions identified")


async def run_analyze(config: Config, url: str, fmt: str) -> int:
    """Scan one URL, save the report and return the process exit code."""
    if not is_valid_url(url):
        logger.error("Invalid URL: %s", url)
        return 1

    store = ReportStore(config.reports_dir)
    try:
        async with ScanPipeline.from_config(config) as pipeline:
            report = await pipeline.run(url)
    except DappScanError as exc:
        logger.error("Analysis failed: %s", exc)
        return 1

    paths = await store.save(report, fmt)
    print_summary(report, paths)
    return 1 if report["riskSummary"]["level"] == "danger" else 0


def run_list(config: Config, limit: int) -> int:
    store = ReportStore(config.reports_dir)
    scans = store.list_summaries(limit=limit)
    if not scans:
        print("No previous scans found.")
        return 0

    print("Previous Security Scans")
    print("=======================")
    for scan in scans:
        print()
        print(f"[{str(scan['riskLevel']).upper()}] {scan['url']}")
        print(f"  ID:    {scan['scanId']}")
        print(f"  Date:  {scan['timestamp']}")
        print(f"  Score: {scan['score']}/100")
    return 0


async def run_server(config: Config) -> int:
    """Run the HTTP API until interrupted."""
    store = ReportStore(config.reports_dir)
    pipeline = ScanPipeline.from_config(config)
    server = ScanApiServer(config.api_host, config.api_port, store, pipeline.run)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    await server.start()
    try:
        await stop_event.wait()
    finally:
        await server.stop()
        await pipeline.close()
    return 0


def main(argv=None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(getattr(args, "verbose", False))

    try:
        config = apply_overrides(load_config(), args)
    except ConfigurationError as exc:
        logger.error(str(exc))
        return 1

    validation_errors = validate_config(config)
    if validation_errors:
        for err in validation_errors:
            logger.error(err)
        return 1

    if args.command == "analyze":
        return asyncio.run(run_analyze(config, args.url, args.format))
    if args.command == "list":
        return run_list(config, args.limit)
    return asyncio.run(run_server(config))


if __name__ == "__main__":
    sys.exit(main())
