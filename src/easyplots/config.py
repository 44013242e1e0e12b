"""Typed configuration for the plotting functions.

Each plotting function takes one of the dataclasses below. Defaults match the
values most recordings are analysed with; ``validate()`` is called once when the
plotting function is entered, before anything is computed.

Per-alignment options (``split_by``, ``sort_by``, ``split_colors``) are keyed by
alignment label, the same label used in the ``events`` mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from easyplots.errors import (
    ConfigurationError,
    InvalidBinWidth,
    InvalidSmoothWidth,
    InvalidWindow,
)

PathLike = Union[str, Path]


class SummaryStat(Enum):
    """Summary statistic drawn as a centre line with a band."""
    CI = "ci"                      # mean and 95% t-interval
    SEM = "sem"                    # mean and standard error
    STD = "std"                    # mean and standard deviation
    QUARTILE = "quartile"          # median and 25-75 percentiles
    PERCENTILE_95 = "95percentile"  # median and 2.5-97.5 percentiles

    @classmethod
    def parse(cls, value: Union[str, "SummaryStat"]) -> "SummaryStat":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            options = ", ".join(m.value for m in cls)
            raise ConfigurationError(f"Unknown summary statistic {value!r}; expected one of: {options}") from None


@dataclass
class SplitSpec:
    """Categorical split of trials: a name and one label per trial."""
    name: str
    labels: Sequence[Any]


@dataclass
class SortSpec:
    """Ordinal sort of trials: a name and one absolute time per trial."""
    name: str
    times: Sequence[float]


def validate_window(window: Sequence[float], name: str = "window") -> tuple[float, float]:
    """Return ``window`` as a float pair, raising InvalidWindow unless start < end."""
    if len(window) != 2:
        raise InvalidWindow(f"{name} must be a (start, end) pair, got {window!r}")
    start, end = float(window[0]), float(window[1])
    if not start < end:
        raise InvalidWindow(f"{name} start must be < end, got ({start}, {end})")
    return start, end


def validate_bin_width(bin_width: float) -> float:
    bin_width = float(bin_width)
    if not bin_width > 0:
        raise InvalidBinWidth(f"bin width must be > 0, got {bin_width}")
    return bin_width


def validate_smooth_width(smooth_width: float) -> float:
    smooth_width = float(smooth_width)
    if smooth_width < 0:
        raise InvalidSmoothWidth(f"smoothing width must be >= 0, got {smooth_width}")
    return smooth_width


def _params(cfg: Any) -> dict[str, Any]:
    """JSON-friendly view of a config: split/sort data reduced to names, colours to counts."""
    out: dict[str, Any] = {}
    for f in fields(cfg):
        v = getattr(cfg, f.name)
        if isinstance(v, SummaryStat):
            v = v.value
        elif isinstance(v, Path):
            v = str(v)
        elif f.name in ("split_by", "sort_by"):
            specs = v.values() if isinstance(v, dict) else v
            v = [s.name for s in specs]
        elif f.name == "split_colors":
            v = {k: len(c) for k, c in v.items()}
        elif isinstance(v, tuple):
            v = list(v)
        out[f.name] = v
    return out


def _validate_ylim(ylim: Optional[Sequence[float]]) -> None:
    if ylim is not None:
        validate_window(ylim, name="ylim")


@dataclass
class RasterPSTHConfig:
    """Options for raster_psth / raster_psth_batch."""
    window: tuple[float, float] = (-1.0, 1.0)
    psth_bin_width: float = 0.001
    psth_smooth_width: float = 0.05
    split_by: dict[str, SplitSpec] = field(default_factory=dict)
    sort_by: dict[str, SortSpec] = field(default_factory=dict)
    split_colors: dict[str, Sequence[Any]] = field(default_factory=dict)
    title: str = ""
    ylim: Optional[tuple[float, float]] = None
    save_path: Optional[PathLike] = None
    template_sample_rate: float = 30000.0

    def validate(self) -> None:
        validate_window(self.window)
        validate_bin_width(self.psth_bin_width)
        validate_smooth_width(self.psth_smooth_width)
        _validate_ylim(self.ylim)
        if self.template_sample_rate <= 0:
            raise ConfigurationError(f"template_sample_rate must be > 0, got {self.template_sample_rate}")

    def to_dict(self) -> dict[str, Any]:
        return _params(self)


@dataclass
class EventAverageConfig:
    """Options for event_aligned_average."""
    window: tuple[float, float] = (-0.5, 0.5)
    label: str = ""
    baseline: Optional[tuple[float, float]] = None
    mode: SummaryStat = SummaryStat.CI
    split_by: dict[str, SplitSpec] = field(default_factory=dict)
    split_colors: dict[str, Sequence[Any]] = field(default_factory=dict)
    title: str = ""
    ylim: Optional[tuple[float, float]] = None
    save_path: Optional[PathLike] = None

    def validate(self) -> None:
        validate_window(self.window)
        if self.baseline is not None:
            validate_window(self.baseline, name="baseline")
        self.mode = SummaryStat.parse(self.mode)
        _validate_ylim(self.ylim)

    def to_dict(self) -> dict[str, Any]:
        return _params(self)


@dataclass
class TimeWarpConfig:
    """Options for event_aligned_average_time_warped."""
    pre_post: tuple[float, float] = (1.0, 1.0)
    n_samples: int = 400
    label: str = ""
    split_by: list[SplitSpec] = field(default_factory=list)
    split_colors: dict[str, Sequence[Any]] = field(default_factory=dict)
    title: str = ""
    save_path: Optional[PathLike] = None

    def validate(self) -> None:
        if len(self.pre_post) != 2 or min(self.pre_post) < 0:
            raise ConfigurationError(f"pre_post must be two non-negative durations, got {self.pre_post!r}")
        if int(self.n_samples) < 1:
            raise ConfigurationError(f"n_samples must be >= 1, got {self.n_samples}")

    def to_dict(self) -> dict[str, Any]:
        return _params(self)


@dataclass
class DepthConfig:
    """Options for psth_by_depth."""
    window: tuple[float, float] = (-0.5, 0.5)
    depth_bin_size: float = 80.0
    psth_bin_width: float = 0.01
    baseline: tuple[float, float] = (-0.2, -0.05)
    clim: tuple[float, float] = (-10.0, 10.0)
    ylim: Optional[tuple[float, float]] = (0.0, 3800.0)
    title: str = ""
    save_path: Optional[PathLike] = None

    def validate(self) -> None:
        validate_window(self.window)
        validate_bin_width(self.psth_bin_width)
        validate_window(self.baseline, name="baseline")
        validate_window(self.clim, name="clim")
        _validate_ylim(self.ylim)
        if not self.depth_bin_size > 0:
            raise ConfigurationError(f"depth_bin_size must be > 0, got {self.depth_bin_size}")

    def to_dict(self) -> dict[str, Any]:
        return _params(self)


@dataclass
class SessionsConfig:
    """Options for event_aligned_average_across_sessions."""
    window: tuple[float, float] = (-0.5, 0.5)
    label: str = ""
    baseline: Optional[tuple[float, float]] = None
    split_colors: dict[str, Sequence[Any]] = field(default_factory=dict)
    title: str = ""
    ylim: Optional[tuple[float, float]] = None
    save_path: Optional[PathLike] = None

    def validate(self) -> None:
        validate_window(self.window)
        if self.baseline is not None:
            validate_window(self.baseline, name="baseline")
        _validate_ylim(self.ylim)

    def to_dict(self) -> dict[str, Any]:
        return _params(self)
