"""Proximity Join Session - coordinates configuration, preview, run and write-back."""

import logging
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from proximity_join.common.log_utils import configure_logging, ctx_run_id
from proximity_join.config import DEFAULT_SETTINGS, ProximityJoinSettings
from proximity_join.debug import save_debug_layer
from proximity_join.models.domain import (
    Dataset,
    FieldMapping,
    JoinConfig,
    JoinDraft,
    JoinPreview,
    JoinProgress,
    JoinResult,
)
from proximity_join.models.enums import JoinState
from proximity_join.outputs.fields import FieldMapper
from proximity_join.outputs.summary import build_preview
from proximity_join.repositories.repository import LayerRepository, SelectionProvider
from proximity_join.repositories.schema import analyze_schema, refresh_schema
from proximity_join.runner.matcher import NearestFeatureMatcher
from proximity_join.runner.scheduler import (
    BatchScheduler,
    CancellationToken,
    ProgressCallback,
    run_blocking,
)
from proximity_join.runner.scheduler import run_async as run_batches_async
from proximity_join.services.notifications import NotificationService, Notifier
from proximity_join.validation.config import JoinConfigValidator
from proximity_join.validation.errors import (
    ConfigurationError,
    JoinInProgressError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Draft settings that can be changed through update_settings()
EDITABLE_SETTINGS = frozenset(
    {
        "selection_only",
        "representative_point_method",
        "display_unit",
        "max_radius",
        "write_distance",
        "write_match_id",
        "match_id_field",
        "write_match_layer",
    }
)


class ProximityJoinSession:
    """Orchestrates a proximity join: draft → validate → preview → run → write-back.

    The session owns the draft configuration being edited and the lifecycle
    state. Runs never write to the source dataset until every selected
    feature has been processed; the collected patch is then applied under the
    dataset lock, the schema is re-analysed and the host is notified. A
    cancelled run leaves the source dataset untouched.

    Only one preview or run may execute at a time; starting another raises
    JoinInProgressError.
    """

    def __init__(
        self,
        repository: LayerRepository,
        selection_provider: SelectionProvider | None = None,
        notifier: Notifier | None = None,
        analyzer=analyze_schema,
        settings: ProximityJoinSettings = DEFAULT_SETTINGS,
        on_progress: ProgressCallback | None = None,
    ):
        self.repository = repository
        self.selection_provider = selection_provider
        self.notifications = NotificationService(notifier)
        self.analyzer = analyzer
        self.settings = settings
        self.on_progress = on_progress
        self.validator = JoinConfigValidator(repository, selection_provider)
        if settings.logging_config:
            configure_logging(settings.logging_config)

        self.draft = JoinDraft()
        self.state = JoinState.IDLE
        self.progress: JoinProgress | None = None
        self.last_result: JoinResult | None = None

        self._run_lock = threading.Lock()
        self._cancel_token: CancellationToken | None = None
        self._started_at = 0.0

    # ----------------------------------------------------------------------------------
    # Layers and selection
    # ----------------------------------------------------------------------------------

    def spatial_layers(self) -> list[Dataset]:
        """Layers that can take part in a join (attribute-only tables excluded)."""
        return [layer for layer in self.repository.get_layers() if layer.spatial]

    def target_fields(self) -> list[str]:
        """Field names available on the selected target layer."""
        target = self.repository.get_layer_by_id(self.draft.target_layer_id or "")
        if target is None:
            return []
        return target.field_names(self.settings.field_sample_size)

    def selection_count(self) -> int:
        """Number of valid selected features on the selected source layer."""
        source = self.repository.get_layer_by_id(self.draft.source_layer_id or "")
        if source is None:
            return 0
        return len(self._selected_indices(source))

    def needs_representative_point(self) -> bool:
        """True when the source layer is mostly lines or polygons.

        Point sources are matched from their own coordinates, so the
        representative point method only matters for other geometry types.
        """
        source = self.repository.get_layer_by_id(self.draft.source_layer_id or "")
        if source is None:
            return False
        dominant = source.dominant_geometry()
        return dominant is not None and dominant != "Point"

    def large_dataset_warning(self) -> str | None:
        """Warning text when source x target is large enough to make a run slow."""
        source = self.repository.get_layer_by_id(self.draft.source_layer_id or "")
        target = self.repository.get_layer_by_id(self.draft.target_layer_id or "")
        if source is None or target is None:
            return None

        threshold = self.settings.large_dataset_warn
        if len(source) * len(target) <= threshold * threshold:
            return None
        return (
            f"Large datasets ({len(source)} x {len(target)} features). "
            "The join may take a while."
        )

    # ----------------------------------------------------------------------------------
    # Draft editing
    # ----------------------------------------------------------------------------------

    def select_source(self, layer_id: str | None) -> None:
        """Choose the source layer; clears the field mappings."""
        self._edit()
        self.draft.source_layer_id = layer_id
        self.draft.field_mappings = []

    def select_target(self, layer_id: str | None) -> None:
        """Choose the target layer; clears the field mappings and match id field."""
        self._edit()
        self.draft.target_layer_id = layer_id
        self.draft.field_mappings = []
        self.draft.match_id_field = ""

    def add_mapping(self, target_field: str = "", new_field_name: str = "") -> int:
        """Append a field mapping and return its index."""
        self._edit()
        mapping = FieldMapping(target_field=target_field, new_field_name=new_field_name)
        if mapping.target_field and not mapping.new_field_name:
            mapping = FieldMapping(
                target_field=mapping.target_field,
                new_field_name=FieldMapping.default_name(mapping.target_field),
            )
        self.draft.field_mappings.append(mapping)
        return len(self.draft.field_mappings) - 1

    def update_mapping(
        self,
        index: int,
        target_field: str | None = None,
        new_field_name: str | None = None,
    ) -> FieldMapping:
        """Change one field mapping.

        Picking a target field while the output name is empty names the
        output ``nearest_<target_field>``.

        Raises:
            IndexError: If there is no mapping at ``index``
        """
        self._edit()
        current = self.draft.field_mappings[index]
        changes: dict[str, Any] = {}
        if target_field is not None:
            changes["target_field"] = target_field
        if new_field_name is not None:
            changes["new_field_name"] = new_field_name

        updated = FieldMapping(**{**current.model_dump(), **changes})
        if updated.target_field and not updated.new_field_name:
            updated = FieldMapping(
                target_field=updated.target_field,
                new_field_name=FieldMapping.default_name(updated.target_field),
            )
        self.draft.field_mappings[index] = updated
        return updated

    def remove_mapping(self, index: int) -> None:
        self._edit()
        del self.draft.field_mappings[index]

    def update_settings(self, **changes: Any) -> None:
        """Change join settings on the draft (unit, radius, metadata toggles...).

        Values are stored as given and checked by validate().

        Raises:
            ValueError: For a setting that does not exist
        """
        unknown = sorted(set(changes) - EDITABLE_SETTINGS)
        if unknown:
            msg = f"Unknown join setting(s): {', '.join(unknown)}"
            raise ValueError(msg)
        self._edit()
        for name, value in changes.items():
            setattr(self.draft, name, value)

    def _edit(self) -> None:
        if self.state is JoinState.RUNNING:
            msg = "Cannot change the join configuration while a join is running"
            raise JoinInProgressError(msg)
        self.state = JoinState.CONFIGURING

    # ----------------------------------------------------------------------------------
    # Validation, preview and runs
    # ----------------------------------------------------------------------------------

    def validate(self) -> list[ValidationError]:
        return self.validator.validate(self.draft)

    def preview(self) -> JoinPreview:
        """Match the first few source features without writing anything.

        Raises:
            ConfigurationError: If the draft is invalid
            JoinInProgressError: If a join is already running
        """
        with self._exclusive("preview"):
            config = self._build_config()
            source, target = self._layers(config)
            self.state = JoinState.PREVIEWING

            matcher = NearestFeatureMatcher(config, target.features, self.settings)
            indices = self._source_indices(config, source)[: self.settings.preview_size]
            results = [matcher.match(i, source.features[i]) for i in indices]

            preview = build_preview(results, config, self.settings)
            logger.info(
                f"Preview matched {sum(1 for r in results if r.matched)}/{len(results)} features"
            )
            return preview

    def run(self) -> JoinResult | None:
        """Run the join on the calling thread, yielding between batches.

        Returns:
            JoinResult, or None if the run was cancelled

        Raises:
            ConfigurationError: If the draft is invalid
            JoinInProgressError: If a join is already running
        """
        with self._exclusive("run"):
            scheduler = self._start_run()
            completed = run_blocking(scheduler)
            return self._finish_run(scheduler, completed)

    async def run_async(self) -> JoinResult | None:
        """Run the join, returning to the event loop between batches.

        Same contract as run().
        """
        with self._exclusive("run"):
            scheduler = self._start_run()
            completed = await run_batches_async(scheduler)
            return self._finish_run(scheduler, completed)

    def cancel(self) -> bool:
        """Request cancellation of the running join at the next batch boundary.

        Returns:
            True if a running join was asked to stop
        """
        if self.state is not JoinState.RUNNING or self._cancel_token is None:
            return False
        logger.info("Cancellation requested")
        self._cancel_token.cancel()
        return True

    def reset(self) -> None:
        """Discard the draft and results and return to IDLE."""
        if self.state is JoinState.RUNNING:
            msg = "Cannot reset while a join is running"
            raise JoinInProgressError(msg)
        self.draft = JoinDraft()
        self.state = JoinState.IDLE
        self.progress = None
        self.last_result = None
        self._cancel_token = None

    # ----------------------------------------------------------------------------------
    # Internals
    # ----------------------------------------------------------------------------------

    @contextmanager
    def _exclusive(self, operation: str) -> Iterator[None]:
        """Hold the run lock and a fresh run id for one preview or run.

        Unexpected errors move the session to FAILED and propagate.
        """
        if not self._run_lock.acquire(blocking=False):
            msg = f"Cannot start {operation}: a proximity join is already running"
            raise JoinInProgressError(msg)

        token = ctx_run_id.set(uuid.uuid4().hex[:12])
        try:
            yield
        except ConfigurationError:
            raise
        except Exception as e:
            self.state = JoinState.FAILED
            logger.exception(f"Proximity join {operation} failed: {e}")
            raise
        finally:
            ctx_run_id.reset(token)
            self._run_lock.release()

    def _build_config(self) -> JoinConfig:
        try:
            return self.validator.build_config(self.draft)
        except ConfigurationError as e:
            self.state = JoinState.CONFIGURING
            self.notifications.send_configuration_error(str(e))
            raise

    def _layers(self, config: JoinConfig) -> tuple[Dataset, Dataset]:
        source = self.repository.get_layer_by_id(config.source_layer_id)
        target = self.repository.get_layer_by_id(config.target_layer_id)
        if source is None or target is None:
            msg = "Source or target layer was removed during the join"
            raise RuntimeError(msg)
        return source, target

    def _selected_indices(self, source: Dataset) -> list[int]:
        if self.selection_provider is None:
            return []
        selected = self.selection_provider.get_selected_indices(source.id)
        return sorted({i for i in selected if 0 <= i < len(source)})

    def _source_indices(self, config: JoinConfig, source: Dataset) -> list[int]:
        if config.selection_only:
            return self._selected_indices(source)
        return list(range(len(source)))

    def _publish_progress(self, progress: JoinProgress) -> None:
        self.progress = progress
        if self.on_progress is not None:
            self.on_progress(progress)

    def _start_run(self) -> BatchScheduler:
        config = self._build_config()
        source, target = self._layers(config)

        with source.lock:
            source_features = list(source.features)
        source_indices = self._source_indices(config, source)

        warning = self.large_dataset_warning()
        if warning:
            logger.warning(warning)

        logger.info(
            f"Starting proximity join '{source.name}' ({source.dominant_geometry()}) -> "
            f"'{target.name}' ({target.dominant_geometry()}): "
            f"{len(source_indices)} source features, {len(target)} targets, "
            f"radius {config.max_radius or 'unlimited'} {config.display_unit.abbreviation}"
        )

        self._cancel_token = CancellationToken()
        self.progress = JoinProgress(processed=0, total=len(source_indices))
        scheduler = BatchScheduler(
            matcher=NearestFeatureMatcher(config, target.features, self.settings),
            mapper=FieldMapper(config, target.name, self.settings),
            source_dataset_id=source.id,
            source_features=source_features,
            source_indices=source_indices,
            settings=self.settings,
            cancel_token=self._cancel_token,
            on_progress=self._publish_progress,
        )
        self._started_at = time.time()
        self.state = JoinState.RUNNING
        return scheduler

    def _finish_run(self, scheduler: BatchScheduler, completed: bool) -> JoinResult | None:
        self._cancel_token = None
        if not completed:
            self.state = JoinState.CANCELLED
            logger.info(
                f"Proximity join cancelled at {scheduler.processed}/{scheduler.total}; "
                "no changes written"
            )
            self.notifications.send_join_cancelled(scheduler.processed, scheduler.total)
            return None

        source = self.repository.get_layer_by_id(scheduler.patch.dataset_id)
        if source is None:
            msg = f"Source layer '{scheduler.patch.dataset_id}' was removed during the join"
            raise RuntimeError(msg)

        scheduler.patch.apply(source)
        refresh_schema(source, self.analyzer)
        save_debug_layer(source, "joined_source", ctx_run_id.get(), self.settings)

        result = scheduler.aggregator.summarize()
        self.last_result = result
        self.state = JoinState.COMPLETED

        elapsed = time.time() - self._started_at
        logger.info(
            f"Proximity join completed in {elapsed:.2f}s: "
            f"{result.matched_count} matched ({result.match_rate:.0%}), "
            f"{result.unmatched_count} unmatched"
        )
        for warning in result.warnings:
            logger.warning(warning)

        self.notifications.send_join_completed(result)
        self.notifications.refresh_ui()
        return result
