"""
sweep_stale_orders.py
---------------------
Promote in-progress orders whose processing time has elapsed to
out-for-delivery.

Usage:
    python manage.py sweep_stale_orders            # one pass (run from cron every 15 min)
    python manage.py sweep_stale_orders --loop     # keep running, one pass per interval

Behavior:
- One pass = orders.services.status_sweeper.sweep_stale_orders().
- In --loop mode a failed pass is logged and retried on the next tick.
"""

import logging
import time

from django.core.management.base import BaseCommand
from django.db import DatabaseError

from configmgr.lookup import get_int_setting
from orders.services.status_sweeper import sweep_stale_orders

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Move in-progress orders past their processing time to out-for-delivery."

    def add_arguments(self, parser):
        parser.add_argument(
            "--loop",
            action="store_true",
            help="Run forever, sweeping once per interval.",
        )
        parser.add_argument(
            "--interval",
            type=int,
            default=None,
            help="Minutes between sweeps in --loop mode (default: SWEEP_INTERVAL_MINUTES, 15).",
        )

    def handle(self, *args, **options):
        if not options["loop"]:
            self._run_once()
            return

        minutes = options["interval"] or get_int_setting("SWEEP_INTERVAL_MINUTES", 15)
        self.stdout.write(f"Sweeping every {minutes} minute(s). Ctrl+C to stop.")
        while True:
            try:
                self._run_once()
            except DatabaseError as e:
                logger.error("Status sweep failed, will retry next run: %s", e)
            time.sleep(minutes * 60)

    def _run_once(self):
        summary = sweep_stale_orders()
        self.stdout.write(self.style.SUCCESS(
            f"Sweep complete. Promoted={summary['promoted']}, Waiting={summary['waiting']}, "
            f"Skipped={summary['skipped']}, Failed={summary['failed']}"
        ))
