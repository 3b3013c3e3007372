#!/usr/bin/env python3
"""
Analytics data management script:
- sweep-sessions: close sessions that timed out without a follow-up event
- stats: print the dashboard numbers for a period
- summary: count the rows in each analytics table

Operates directly on the analytics data directory.
"""

import json
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional
import argparse
import logging

from visitor_engine import (
    AnalyticsAggregator,
    AnalyticsStore,
    SessionReconstructor,
    TIME_RANGES,
    VisitorStore,
)

# Set up logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


class AnalyticsDataManager:
    """Maintenance operations over the analytics tables."""

    def __init__(self, data_dir: Path, session_timeout_minutes: int = 30):
        self.store = AnalyticsStore(data_dir)
        self.session_reconstructor = SessionReconstructor(
            VisitorStore(), timedelta(minutes=session_timeout_minutes)
        )

    def sweep_sessions(self) -> Dict[str, Any]:
        """Close stale sessions and report how many were closed."""
        closed = self.session_reconstructor.close_stale_sessions(self.store)
        open_remaining = len(self.store.snapshot().open_sessions())
        return {"closed": closed, "open_remaining": open_remaining}

    def get_stats(self, period: str) -> Dict[str, Any]:
        """Dashboard numbers for a period, without percentages."""
        analytics = AnalyticsAggregator(self.store).get_web_analytics(period)
        return analytics.to_dict()

    def get_summary(self) -> Dict[str, Any]:
        """Row counts and integrity checks for the stored tables."""
        snapshot = self.store.snapshot()
        issues: List[str] = []

        for visitor in snapshot.visitors.values():
            sessions = snapshot.sessions_for(visitor.id)
            open_count = sum(1 for s in sessions if s.is_open)
            if open_count > 1:
                issues.append(f"Visitor {visitor.id} has {open_count} open sessions")
            if visitor.total_visits != len(sessions):
                issues.append(
                    f"Visitor {visitor.id} counts {visitor.total_visits} visits but has {len(sessions)} sessions"
                )

        return {
            "data_dir": str(self.store.data_dir),
            "visitors": len(snapshot.visitors),
            "sessions": len(snapshot.sessions),
            "open_sessions": len(snapshot.open_sessions()),
            "page_views": len(snapshot.page_views),
            "issues": issues
        }


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Analytics data management script")
    parser.add_argument("--data-dir", type=Path, default=Path("analytics_data"),
                       help="Directory containing the analytics tables")
    parser.add_argument("--session-timeout", type=int, default=30,
                       help="Session inactivity timeout in minutes")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("sweep-sessions", help="Close sessions inactive beyond the timeout")
    stats_parser = subparsers.add_parser("stats", help="Show dashboard numbers for a period")
    stats_parser.add_argument("--period", choices=sorted(TIME_RANGES), default="30d",
                              help="Rolling window to report on")
    subparsers.add_parser("summary", help="Show table sizes and integrity issues")

    args = parser.parse_args(argv)

    manager = AnalyticsDataManager(args.data_dir, args.session_timeout)

    if args.command == "sweep-sessions":
        result = manager.sweep_sessions()
    elif args.command == "stats":
        result = manager.get_stats(args.period)
    else:
        result = manager.get_summary()

    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
