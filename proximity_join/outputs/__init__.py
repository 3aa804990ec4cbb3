"""Join outputs: field writes onto source features, summaries and previews.

Commonly used exports:
- FieldMapper: Property updates (mapped fields plus metadata) per source feature
- JoinPatch: Updates collected over a run, applied under the dataset lock
- summarize / ResultAggregator: Counts, distance statistics and warnings
- build_preview: Tabular preview of the first few matches
"""

from proximity_join.outputs.fields import FieldMapper, JoinPatch
from proximity_join.outputs.summary import ResultAggregator, build_preview, summarize

__all__ = [
    "FieldMapper",
    "JoinPatch",
    "ResultAggregator",
    "summarize",
    "build_preview",
]
