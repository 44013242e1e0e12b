"""Top-level plotting functions.

Each ``build_*`` function returns a FigureSpec; the matching public function
renders it (and saves it when the config has a ``save_path``).
"""

from easyplots.plots.across_sessions import (
    build_event_aligned_average_across_sessions,
    event_aligned_average_across_sessions,
)
from easyplots.plots.event_aligned_average import build_event_aligned_average, event_aligned_average
from easyplots.plots.psth_by_depth import build_psth_by_depth, psth_by_depth
from easyplots.plots.raster_psth import build_raster_psth, raster_psth, raster_psth_batch
from easyplots.plots.time_warped import build_event_aligned_average_time_warped, event_aligned_average_time_warped

__all__ = [
    "build_event_aligned_average",
    "build_event_aligned_average_across_sessions",
    "build_event_aligned_average_time_warped",
    "build_psth_by_depth",
    "build_raster_psth",
    "event_aligned_average",
    "event_aligned_average_across_sessions",
    "event_aligned_average_time_warped",
    "psth_by_depth",
    "raster_psth",
    "raster_psth_batch",
]
