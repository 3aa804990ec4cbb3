"""Debug output helpers for proximity joins.

WARNING: For local development and debugging only. Never enable in production.
"""

import logging
from datetime import UTC, datetime

from proximity_join.config import ProximityJoinSettings
from proximity_join.models.domain import Dataset

logger = logging.getLogger(__name__)


def save_debug_layer(
    dataset: Dataset,
    name: str,
    run_id: str,
    settings: ProximityJoinSettings,
) -> None:
    """Save a dataset as a GeoPackage if debug output is enabled.

    Args:
        dataset: Layer to save (e.g. the source layer after a join)
        name: Descriptive name used in the file name
        run_id: Join run identifier for organizing output
        settings: Engine settings (debug_output, debug_output_dir)
    """
    if not settings.debug_output:
        return

    output_dir = settings.debug_output_dir / (run_id or "no-run")
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now(UTC).strftime("%H%M%S")
    output_path = output_dir / f"{timestamp}_{name}.gpkg"

    try:
        with dataset.lock:
            gdf = dataset.to_geodataframe()
        gdf.to_file(output_path, driver="GPKG")
        logger.debug(f"Saved debug output: {output_path} ({len(gdf)} features)")
    except Exception as e:
        logger.warning(f"Failed to save debug output {name}: {e}")
