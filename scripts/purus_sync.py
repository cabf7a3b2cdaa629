#!/usr/bin/env python3
"""Command line access to a purusdrive data directory.

Runs the same bootstrap as the app (fresh install detection, store
fallback, checklist ownership migration) and then one sync action.

Usage
-----
Set environment variables and run::

    export PURUS_DATA_DIR="~/.purusdrive"
    export PURUS_API_TOKEN="..."
    export PURUS_WEB_AUTH_TOKEN="..."
    python scripts/purus_sync.py status

Commands::

    status               Print storage mode, entity counts and store health
    sync                 Launch trigger: pending transition or full sync
    push                 Push every local entity
    pull                 Fetch every remote record into the local store
    mode local|synced    Switch storage mode (runs the transition)
    export               Write an export file (--scope, --format, --output)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from purusdrive import (  # noqa: E402
    EntityKind,
    ExportFormat,
    ExportScope,
    InMemoryRecordService,
    PurusDriveApp,
    PurusError,
    StorageMode,
    SyncConfig,
)


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _print_status(app: PurusDriveApp) -> None:
    out = [_section("purusdrive status")]
    out.append(f"  mode      : {app.storage_mode} (last applied: {app.preferences.last_known_storage_mode or '-'})")
    out.append(f"  cloud     : {'configured' if app.cloud_available else 'not configured'}")
    out.append(f"  persistent: {app.store.is_persistent}")
    if app.init_error:
        out.append(f"  warning   : {app.init_error}")
    out.append(f"  migrations: {', '.join(sorted(app.preferences.migrations_applied)) or '-'}")
    for kind in EntityKind:
        out.append(f"  {kind.value:<14}: {app.store.count(kind)}")
    print("\n".join(out))


async def _run(args: argparse.Namespace, config: SyncConfig) -> int:
    remote = InMemoryRecordService() if args.offline else None
    async with PurusDriveApp(config, remote=remote) as app:
        if args.command == "status":
            _print_status(app)
            return 0

        if args.command == "export":
            result = app.export(args.scope, args.format)
            target = Path(args.output or ".") / result.file_name
            target.write_bytes(result.data)
            print(f"Export written to {target}")
            return 0

        if args.command == "mode":
            ok = await app.set_storage_mode(StorageMode(args.mode))
            state = app.progress.state
            print(f"{state.phase}: {state.error or state.message or ''}".rstrip(": "))
            return 0 if ok else 1

        if args.command == "sync":
            ok = await app.on_launch()
            print("Sync completed" if ok else "Nothing synced (local mode or sync failed, see log)")
            return 0 if ok else 1

        orchestrator = app.orchestrator
        await orchestrator.ensure_zone()
        if args.command == "push":
            push = await orchestrator.push_all()
            print(f"Pushed {push.total} record(s)")
        else:
            fetch = await orchestrator.fetch_all()
            print(f"Fetched: {fetch.created} created, {fetch.updated} updated, {fetch.unresolved} unresolved")
        return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Sync and inspect a purusdrive data directory.")
    parser.add_argument("--data-dir", help="Data directory (default: PURUS_DATA_DIR or ~/.purusdrive)")
    parser.add_argument("--offline", action="store_true", help="Use a throw-away in-memory remote")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="Show storage mode and entity counts")
    sub.add_parser("sync", help="Run the launch sync")
    sub.add_parser("push", help="Push all local entities")
    sub.add_parser("pull", help="Fetch all remote records")
    mode = sub.add_parser("mode", help="Switch storage mode")
    mode.add_argument("mode", choices=[m.value for m in StorageMode])
    export = sub.add_parser("export", help="Export local data")
    export.add_argument("--scope", choices=[s.value for s in ExportScope], default=ExportScope.ALL.value)
    export.add_argument("--format", choices=[f.value for f in ExportFormat], default=ExportFormat.JSON.value)
    export.add_argument("--output", "-o", help="Directory to write the export to (default: cwd)")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    overrides = {"data_dir": Path(args.data_dir).expanduser()} if args.data_dir else {}
    try:
        config = SyncConfig.from_env(**overrides)
        sys.exit(asyncio.run(_run(args, config)))
    except PurusError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
