"""Chunked execution of a join run.

The scheduler processes source features in fixed-size batches. Each batch
runs synchronously; between batches the scheduler suspends (it is a
generator) so the driver can hand control back to the host: an OS-thread
yield for blocking callers, or the event loop for asyncio callers. A
cancellation token is checked at every batch boundary.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Iterator, Sequence

from proximity_join.config import DEFAULT_SETTINGS, ProximityJoinSettings
from proximity_join.models.domain import Feature, JoinProgress
from proximity_join.outputs.fields import FieldMapper, JoinPatch
from proximity_join.outputs.summary import ResultAggregator
from proximity_join.runner.matcher import NearestFeatureMatcher

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[JoinProgress], None]


class CancellationToken:
    """Thread-safe cancellation flag checked between batches."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class BatchScheduler:
    """Drives matching and field mapping over the source features in batches.

    Results accumulate in ``aggregator`` and property updates in ``patch``;
    nothing is written to the source dataset by the scheduler itself.
    """

    def __init__(
        self,
        matcher: NearestFeatureMatcher,
        mapper: FieldMapper,
        source_dataset_id: str,
        source_features: Sequence[Feature],
        source_indices: Sequence[int],
        settings: ProximityJoinSettings = DEFAULT_SETTINGS,
        cancel_token: CancellationToken | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.matcher = matcher
        self.mapper = mapper
        self.source_features = source_features
        self.source_indices = list(source_indices)
        self.batch_size = settings.batch_size
        self.cancel_token = cancel_token or CancellationToken()
        self.on_progress = on_progress

        self.patch = JoinPatch(source_dataset_id)
        self.aggregator = ResultAggregator(matcher.config)
        self.processed = 0

    @property
    def total(self) -> int:
        return len(self.source_indices)

    @property
    def completed(self) -> bool:
        return self.processed >= self.total

    @property
    def cancelled(self) -> bool:
        return self.processed < self.total and self.cancel_token.cancelled

    def process_batch(self) -> JoinProgress:
        """Process the next batch synchronously and publish progress."""
        end = min(self.processed + self.batch_size, self.total)
        for source_index in self.source_indices[self.processed : end]:
            result = self.matcher.match(source_index, self.source_features[source_index])
            self.aggregator.add(result)
            self.patch.add(source_index, self.mapper.updates_for(result))
        self.processed = end

        progress = JoinProgress(processed=self.processed, total=self.total)
        logger.info(f"Processed {progress.processed}/{progress.total} ({progress.percent:.0f}%)")
        if self.on_progress is not None:
            self.on_progress(progress)
        return progress

    def batches(self) -> Iterator[JoinProgress]:
        """Process every batch, suspending after each one.

        Stops early, leaving ``cancelled`` set, if the token is cancelled at a
        batch boundary.
        """
        while self.processed < self.total:
            if self.cancel_token.cancelled:
                logger.info(f"Join cancelled after {self.processed}/{self.total} features")
                return
            yield self.process_batch()


def _yield_thread() -> None:
    time.sleep(0)


def run_blocking(
    scheduler: BatchScheduler,
    yield_control: Callable[[], None] = _yield_thread,
) -> bool:
    """Run all batches on the calling thread, yielding between batches.

    Args:
        scheduler: Scheduler to drive
        yield_control: Called between batches (defaults to an OS-thread yield)

    Returns:
        True if every batch ran, False if the run was cancelled
    """
    for _ in scheduler.batches():
        yield_control()
    return scheduler.completed


async def run_async(scheduler: BatchScheduler) -> bool:
    """Run all batches, returning to the event loop between batches.

    Returns:
        True if every batch ran, False if the run was cancelled
    """
    for _ in scheduler.batches():
        await asyncio.sleep(0)
    return scheduler.completed
