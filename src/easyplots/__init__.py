"""
easyplots: Event-aligned plots for neuroscience time series.

This package provides:
- raster_psth / raster_psth_batch: spike rasters with smoothed PSTHs
- event_aligned_average and its time-warped and across-session variants
- psth_by_depth: population z-scored PSTH along the probe
- Logging utilities for library and application use

Figures are described by a FigureSpec and drawn with plotly; importing this
package does not import plotly.

For logging configuration in standalone scripts/examples:
    ```python
    from easyplots.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library (imported by other applications), logging is
automatically handled by the parent application's configuration.
"""

import logging

from easyplots.utils.logging import configure_logging, get_logger

from easyplots.config import (
    DepthConfig,
    EventAverageConfig,
    RasterPSTHConfig,
    SessionsConfig,
    SortSpec,
    SplitSpec,
    SummaryStat,
    TimeWarpConfig,
)
from easyplots.core.sessions import SessionData
from easyplots.ephys import EphysData
from easyplots.errors import (
    ColorCountMismatch,
    ConfigurationError,
    EasyPlotsError,
    InputError,
    MissingDependencyError,
)
from easyplots.plots import (
    event_aligned_average,
    event_aligned_average_across_sessions,
    event_aligned_average_time_warped,
    psth_by_depth,
    raster_psth,
    raster_psth_batch,
)
from easyplots.simulate import simulate_event_responsive_neuron

# Ensure easyplots logger has NullHandler so logs don't propagate to root
# when no application has configured logging. Applications/examples call
# configure_logging() to replace this with a real handler.
_logger = logging.getLogger("easyplots")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "ColorCountMismatch",
    "ConfigurationError",
    "DepthConfig",
    "EasyPlotsError",
    "EphysData",
    "EventAverageConfig",
    "InputError",
    "MissingDependencyError",
    "RasterPSTHConfig",
    "SessionData",
    "SessionsConfig",
    "SortSpec",
    "SplitSpec",
    "SummaryStat",
    "TimeWarpConfig",
    "configure_logging",
    "event_aligned_average",
    "event_aligned_average_across_sessions",
    "event_aligned_average_time_warped",
    "get_logger",
    "psth_by_depth",
    "raster_psth",
    "raster_psth_batch",
    "simulate_event_responsive_neuron",
]

__version__ = "0.1.0"
