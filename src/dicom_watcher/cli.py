from __future__ import annotations

import argparse
import json
import logging
import sys

from dicom_watcher.config import load_config
from dicom_watcher.notify import HttpNotifier, NotificationError
from dicom_watcher.utils.logging_utils import configure_logging


logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dicom-watcher")
    sub = parser.add_subparsers(dest="command", required=True)

    watch = sub.add_parser("watch", help="Poll the directory and notify when studies stabilize")
    watch.add_argument("--config", required=True, help="Path to YAML config")

    scan = sub.add_parser("scan", help="Run one poll cycle and print the discovered studies")
    scan.add_argument("--config", required=True, help="Path to YAML config")
    scan.add_argument("--json", action="store_true", help="Emit machine-readable JSON")

    notify = sub.add_parser("notify", help="Send one ready notification by hand")
    notify.add_argument("tenant", help="Tenant id")
    notify.add_argument("study", help="Study id")
    notify.add_argument("--config", required=True, help="Path to YAML config")

    return parser


def _cmd_watch(args: argparse.Namespace) -> int:
    from dicom_watcher.service import run_watch_service

    config = load_config(args.config)
    configure_logging(config.log_level, config.log_file)
    run_watch_service(config)
    return 0


def _cmd_scan(args: argparse.Namespace) -> int:
    from dicom_watcher.service import scan_once

    config = load_config(args.config)
    configure_logging(config.log_level, config.log_file)

    result, snapshot = scan_once(config)
    payload = {
        "directory_path": str(config.directory_path),
        "files_seen": result.files_seen,
        "files_processed": result.files_processed,
        "errors": [{"path": e.path, "message": e.message} for e in result.errors],
        "tenants": snapshot["tenants"],
    }

    if args.json:
        print(json.dumps(payload, indent=2))
        return 0 if result.ok else 1

    print(f"Directory: {payload['directory_path']}")
    print(f"Files seen: {result.files_seen}  processed: {result.files_processed}")
    for tenant_id, studies in payload["tenants"].items():
        print(f"Tenant {tenant_id}:")
        for study in studies:
            print(f"  study={study['id']} series={len(study['series'])} files={study['file_count']}")
    if result.errors:
        print("Errors:")
        for err in result.errors:
            print(f"  {err.path}: {err.message}")
    return 0 if result.ok else 1


def _cmd_notify(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    configure_logging(config.log_level, config.log_file)

    notifier = HttpNotifier(api_url=config.api_url, model=config.model, timeout_seconds=config.notify_timeout)
    if not notifier.notify_study_ready(args.tenant, args.study):
        raise NotificationError(f"notification for {args.tenant}/{args.study} failed")
    print(json.dumps(notifier.payload(args.tenant, args.study)))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "watch":
            return _cmd_watch(args)
        if args.command == "scan":
            return _cmd_scan(args)
        if args.command == "notify":
            return _cmd_notify(args)

        parser.error(f"unknown command: {args.command}")
        return 2
    except Exception as exc:
        logger.exception("fatal error")
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
