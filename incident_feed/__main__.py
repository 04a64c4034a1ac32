#!/usr/bin/env python3
"""
Run the incident feed CLI.

Usage:
    python -m incident_feed <command> [options]

Commands:
    nearby    - Fetch and reconcile nearby incidents once
    watch     - Follow the live feed until interrupted
    replay    - Reconcile complaint JSON files offline
    serve     - Run the HTTP/WebSocket server
    config    - Show resolved configuration

Examples:
    python -m incident_feed nearby --lat 23.03 --lng 72.58
    python -m incident_feed watch --severity-radius
    python -m incident_feed replay complaints.json --source initial-fetch
    python -m incident_feed serve --port 8000
"""

import sys

from .cli import main

if __name__ == '__main__':
    sys.exit(main())
