#!/usr/bin/env python3
"""
Command-line interface for the Rescue live incident feed.

Usage:
    python -m incident_feed.cli nearby --lat 28.61 --lng 77.21   # One-shot reconciled feed
    python -m incident_feed.cli watch                             # Live feed until Ctrl-C
    python -m incident_feed.cli replay complaints.json            # Reconcile a saved payload file
    python -m incident_feed.cli serve --port 8000                 # Run the HTTP/WebSocket server
    python -m incident_feed.cli config                            # Show resolved configuration
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import FeedConfig
from .display import format_record
from .importers.json_importer import JSONImporter
from .models import Source, ViewerLocation
from .processors.readiness import ReadinessFlag
from .reconciler import IncidentReconciler
from .session import FeedSnapshot, build_session
from .sinks import LoggingSink

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def config_from_args(args) -> FeedConfig:
    """Environment configuration with command-line overrides."""
    overrides = {
        "api_base_url": getattr(args, 'api_url', None),
        "api_token": getattr(args, 'token', None),
        "visible_limit": getattr(args, 'limit', None),
        "max_distance_km": getattr(args, 'max_distance', None),
        "host": getattr(args, 'host', None),
        "port": getattr(args, 'port', None),
    }
    if getattr(args, 'severity_radius', False):
        overrides["severity_radius_filter"] = True
    if getattr(args, 'locate_by_ip', False):
        overrides["locate_by_ip"] = True

    lat, lng = getattr(args, 'lat', None), getattr(args, 'lng', None)
    if (lat is None) != (lng is None):
        raise ValueError("--lat and --lng must be given together")
    if lat is not None:
        overrides["viewer_location"] = ViewerLocation(lat=lat, lng=lng)

    return FeedConfig.from_env(**overrides)


def print_snapshot(snapshot: FeedSnapshot):
    location = snapshot.viewer_location
    if location:
        print(f"Viewer location: ({location.lat:.4f}, {location.lng:.4f})")
    if snapshot.banner:
        print(f"  ! {snapshot.banner}")

    print("=" * 60)
    if snapshot.empty:
        print(snapshot.empty_message)
    for i, record in enumerate(snapshot.incidents, 1):
        print(f"{i:>2}. {format_record(record)}")
    print("=" * 60)

    stats = snapshot.stats
    print(f"New: {stats.get('ingested', 0)}  Duplicates: {stats.get('duplicates', 0)}  "
          f"Dropped: {stats.get('dropped_invalid', 0) + stats.get('dropped_distance', 0)}  "
          f"Evicted: {stats.get('evicted', 0)}")


async def _run_nearby(config: FeedConfig) -> FeedSnapshot:
    session = build_session(config, sink=LoggingSink(write=logger.debug), with_push=False)
    await session.mount()
    try:
        return session.snapshot()
    finally:
        await session.unmount()


def cmd_nearby(args):
    """Fetch and reconcile nearby incidents once."""
    config = config_from_args(args)
    print(f"Fetching nearby incidents from {config.nearby_url}...")
    snapshot = asyncio.run(_run_nearby(config))
    print_snapshot(snapshot)
    return 0


async def _run_watch(config: FeedConfig):
    session = build_session(config, sink=LoggingSink())
    await session.mount()
    print_snapshot(session.snapshot())
    print("Watching for new incidents (Ctrl-C to stop)...")
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await session.unmount()


def cmd_watch(args):
    """Run a live session until interrupted."""
    config = config_from_args(args)
    try:
        asyncio.run(_run_watch(config))
    except KeyboardInterrupt:
        print("\nStopped.")
    return 0


def cmd_replay(args):
    """Reconcile complaint payloads from JSON files without network access."""
    config = config_from_args(args)
    importer = JSONImporter()
    source = Source(args.source)

    reconciler = IncidentReconciler(
        LoggingSink(write=logger.debug),
        visible_limit=config.visible_limit,
        max_distance_km=config.max_distance_km,
        severity_radius_filter=config.severity_radius_filter,
        severity_radius_km=config.severity_radius_km,
    )
    reconciler.sink.open()
    reconciler.set_viewer_location(config.viewer_location or config.default_location)
    reconciler.mark_ready(ReadinessFlag.MAP_INITIALIZED)
    reconciler.mark_ready(ReadinessFlag.LISTENER_ATTACHED)

    for filepath in args.files:
        path = Path(filepath)
        if not path.exists():
            print(f"File not found: {filepath}")
            continue
        try:
            payloads = importer.import_file(path)
        except (OSError, ValueError) as e:
            print(f"Failed to read {path.name}: {e}")
            continue
        created = reconciler.ingest_many(payloads, source)
        print(f"{path.name}: {len(payloads)} payloads, {len(created)} new incidents")

    print_snapshot(FeedSnapshot(
        incidents=reconciler.visible,
        viewer_location=reconciler.viewer_location,
        ready=reconciler.is_ready,
        readiness=reconciler.gate.state(),
        pending=reconciler.pending_count,
        registered=len(reconciler.registry),
        mounted=False,
        stats=dict(reconciler.stats),
    ))
    return 0


def cmd_serve(args):
    """Run the HTTP/WebSocket server."""
    import uvicorn

    config = config_from_args(args)
    uvicorn.run("backend.main:app", host=config.host, port=config.port, reload=args.reload)
    return 0


def cmd_config(args):
    """Show resolved configuration."""
    config = config_from_args(args)
    print(json.dumps(config.to_dict(), indent=2, default=str))
    return 0


def _add_feed_options(parser):
    parser.add_argument('--api-url', type=str, help='Rescue API base URL')
    parser.add_argument('--token', type=str, help='API bearer token')
    parser.add_argument('--lat', type=float, help='Viewer latitude')
    parser.add_argument('--lng', type=float, help='Viewer longitude')
    parser.add_argument('--locate-by-ip', action='store_true', help='Approximate viewer location from IP')
    parser.add_argument('--limit', type=int, help='Visible feed size')
    parser.add_argument('--max-distance', type=float, help='Drop incidents farther than this (km)')
    parser.add_argument('--severity-radius', action='store_true',
                        help='Drop incidents outside their severity radius (10/20/100 km)')


def main():
    parser = argparse.ArgumentParser(
        description="Rescue live incident feed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument('-v', '--verbose', action='store_true', help="Verbose output")

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    nearby_parser = subparsers.add_parser('nearby', help='Fetch and reconcile nearby incidents once')
    _add_feed_options(nearby_parser)

    watch_parser = subparsers.add_parser('watch', help='Follow the live feed')
    _add_feed_options(watch_parser)

    replay_parser = subparsers.add_parser('replay', help='Reconcile complaint JSON files offline')
    replay_parser.add_argument('files', nargs='+', help='JSON files to replay')
    replay_parser.add_argument('--source', choices=[s.value for s in Source], default=Source.PUSH.value,
                               help='Source to attribute the payloads to')
    _add_feed_options(replay_parser)

    serve_parser = subparsers.add_parser('serve', help='Run the HTTP/WebSocket server')
    serve_parser.add_argument('--host', type=str, help='Bind address')
    serve_parser.add_argument('--port', type=int, help='Bind port')
    serve_parser.add_argument('--reload', action='store_true', help='Reload on code changes')

    config_parser = subparsers.add_parser('config', help='Show resolved configuration')
    _add_feed_options(config_parser)

    args = parser.parse_args()

    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        'nearby': cmd_nearby,
        'watch': cmd_watch,
        'replay': cmd_replay,
        'serve': cmd_serve,
        'config': cmd_config,
    }

    try:
        return commands[args.command](args)
    except ValueError as e:
        print(f"Error: {e}")
        return 2


if __name__ == '__main__':
    sys.exit(main())
