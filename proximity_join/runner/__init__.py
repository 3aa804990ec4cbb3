"""Join execution infrastructure.

This package provides:
- NearestFeatureMatcher: per-feature matching shared by previews and runs
- BatchScheduler: batch-by-batch execution with progress and cancellation
- run_blocking / run_async: drivers that yield control between batches
"""

from proximity_join.runner.matcher import NearestFeatureMatcher
from proximity_join.runner.scheduler import (
    BatchScheduler,
    CancellationToken,
    run_async,
    run_blocking,
)

__all__ = [
    "NearestFeatureMatcher",
    "BatchScheduler",
    "CancellationToken",
    "run_blocking",
    "run_async",
]
