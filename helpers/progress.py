"""
Progress tracking for long-running forecast batches.

BatchProgress is the observable state of a batch: countries completed,
countries failed and grid points evaluated. Counters are guarded by a lock so
they can be updated from worker callbacks while another thread reads a
snapshot.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from tqdm.auto import tqdm


@dataclass
class BatchProgress:
    """Mutable, lock-protected progress counters for a forecasting batch."""

    total_countries: int = 0
    countries_completed: int = 0
    countries_failed: int = 0
    grid_points_evaluated: int = 0
    start_time: float = field(default_factory=time.time)
    logger: Optional[logging.Logger] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __post_init__(self):
        if self.logger is None:
            self.logger = logging.getLogger("progress")

    def grid_point_done(self, n: int = 1) -> None:
        with self._lock:
            self.grid_points_evaluated += n

    def country_done(self, country: str, failed: bool = False) -> None:
        """Record a finished country and log batch progress."""
        with self._lock:
            self.countries_completed += 1
            if failed:
                self.countries_failed += 1
            done = self.countries_completed
            total = self.total_countries
        elapsed = time.time() - self.start_time
        self.logger.info(
            "Progress: %d/%d countries (%s%s) - elapsed %.1fs",
            done, total, country, " failed" if failed else "", elapsed,
        )

    def snapshot(self) -> Dict[str, float]:
        """Return a consistent copy of the counters."""
        with self._lock:
            return {
                "total_countries": self.total_countries,
                "countries_completed": self.countries_completed,
                "countries_failed": self.countries_failed,
                "grid_points_evaluated": self.grid_points_evaluated,
                "elapsed_seconds": time.time() - self.start_time,
            }


def grid_progress_bar(total: int, desc: str, enabled: bool = True):
    """tqdm bar for one grid search; disabled bars keep the same interface."""
    return tqdm(total=total, desc=desc, disable=not enabled, leave=False)
