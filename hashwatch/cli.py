from __future__ import annotations

import argparse
import logging

from rich.console import Console
from rich.table import Table

from hashwatch.api import MonitorService, build_service, create_app
from hashwatch.config import load_config
from hashwatch.outputs.csv_writer import write_leads_csv
from hashwatch.scan import ScanOptions, ScanResult
from hashwatch.store import MemoryStore


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def _non_negative_float(value: str) -> float:
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hashwatch", description="Instagram hashtag lead monitor")
    parser.add_argument("--config", default=None, help="Path to YAML config (default: config/hashwatch.yaml)")
    sub = parser.add_subparsers(dest="command", required=True)

    scan_cmd = sub.add_parser("scan", help="Run one scan cycle")
    scan_cmd.add_argument("--force", action="store_true", help="Scan even while paused (scheduled scan)")
    scan_cmd.add_argument("--limit", type=_positive_int, default=None, help="Posts to request per tag")
    scan_cmd.add_argument("--window", type=_non_negative_float, default=None, help="Freshness window in hours")
    scan_cmd.add_argument("--tag", action="append", dest="tags", default=None, help="Scan only this tag (repeatable)")
    scan_cmd.add_argument("--dry-run", action="store_true", help="Do not write the store or send alerts")

    sub.add_parser("start", help="Enable scanning")
    sub.add_parser("stop", help="Pause scanning")

    tags_cmd = sub.add_parser("tags", help="Manage monitored hashtags")
    tags_sub = tags_cmd.add_subparsers(dest="tags_command", required=True)
    tags_sub.add_parser("list", help="Show monitored tags")
    add_cmd = tags_sub.add_parser("add", help="Monitor a tag")
    add_cmd.add_argument("tag")
    remove_cmd = tags_sub.add_parser("remove", help="Stop monitoring a tag")
    remove_cmd.add_argument("tag")

    sub.add_parser("stats", help="Show store statistics")
    sub.add_parser("reset-state", help="Clear all leads, tags and the running flag")

    export_cmd = sub.add_parser("export", help="Export stored leads to CSV")
    export_cmd.add_argument("--csv-path", default="output/leads.csv")

    serve_cmd = sub.add_parser("serve", help="Run the HTTP API and dashboard")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)

    return parser


def cmd_scan(service: MonitorService, args: argparse.Namespace) -> int:
    if args.dry_run:
        orchestrator = service.orchestrator
        orchestrator.store = MemoryStore(service.store.load())
        orchestrator.notifier = None

    options = ScanOptions(force=args.force, limit=args.limit, window_hours=args.window, tags=args.tags)
    result = service.orchestrator.run_scan(options)
    _print_scan_table(Console(), result)
    return 0 if result.success else 1


def cmd_stats(service: MonitorService) -> int:
    document = service.store.load()
    with_email = sum(1 for lead in document.leads.values() if lead.raw_email)

    by_tag: dict[str, int] = {}
    for lead in document.leads.values():
        by_tag[lead.business_type] = by_tag.get(lead.business_type, 0) + 1

    table = Table(title="Hashwatch Stats")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Running", "yes" if document.is_running else "no")
    table.add_row("Monitored Tags", ", ".join(document.monitored_tags) or "-")
    table.add_row("Total Leads", str(len(document.leads)))
    table.add_row("With Email", str(with_email))
    for tag, count in sorted(by_tag.items()):
        table.add_row(f"  - {tag}", str(count))
    Console().print(table)
    return 0


def cmd_tags(service: MonitorService, args: argparse.Namespace) -> int:
    console = Console()
    if args.tags_command == "add":
        service.store.add_tag(args.tag)
    elif args.tags_command == "remove":
        service.store.remove_tag(args.tag)

    tags = service.store.load().monitored_tags
    console.print("Monitored tags: " + (", ".join(f"#{tag}" for tag in tags) or "none"))
    return 0


def cmd_export(service: MonitorService, csv_path: str) -> int:
    leads = list(service.store.load().leads.values())
    count = write_leads_csv(csv_path, leads)
    Console().print(f"Exported {count} leads to {csv_path}")
    return 0


def _print_scan_table(console: Console, result: ScanResult) -> None:
    table = Table(title="Hashwatch Scan Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    table.add_row("Success", "yes" if result.success else "no")
    if result.message:
        table.add_row("Message", result.message)
    table.add_row("Tags", str(len(result.per_tag)))
    for tag, count in result.per_tag.items():
        table.add_row(f"  - #{tag}", str(count))
    table.add_row("New Leads", str(result.new_leads_count))

    console.print(table)


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)
    parser = _build_parser()
    args = parser.parse_args(argv)
    config = load_config(args.config)

    if args.command == "serve":
        import uvicorn

        uvicorn.run(create_app(config), host=args.host, port=args.port)
        raise SystemExit(0)

    service = build_service(config)

    if args.command == "scan":
        raise SystemExit(cmd_scan(service, args))

    if args.command in ("start", "stop"):
        service.store.set_running(args.command == "start")
        Console().print("Started" if args.command == "start" else "Stopped")
        raise SystemExit(0)

    if args.command == "tags":
        raise SystemExit(cmd_tags(service, args))

    if args.command == "stats":
        raise SystemExit(cmd_stats(service))

    if args.command == "reset-state":
        service.store.reset()
        Console().print(f"State reset: {config['store']['path']}")
        raise SystemExit(0)

    if args.command == "export":
        raise SystemExit(cmd_export(service, args.csv_path))

    raise SystemExit(1)


if __name__ == "__main__":
    main()
