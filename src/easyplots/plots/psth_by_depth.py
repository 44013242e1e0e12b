"""Population PSTH along the probe: one depth x time z-score heatmap per alignment."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from easyplots.config import DepthConfig
from easyplots.core.depth import psth_by_depth as depth_psth
from easyplots.core.depth import template_positions
from easyplots.ephys import EphysData
from easyplots.plot_spec import FacetSpec, FigureSpec, LayerKind, LayerSpec, VLine
from easyplots.plots._base import check_events, draw, prepare_renderer
from easyplots.render import Renderer
from easyplots.toolbox import DEFAULT_TOOLBOX, SpikeToolbox
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)

COLORBAR_TITLE = "Firing rate z-score"


def build_psth_by_depth(
    ephys: EphysData,
    events: Mapping[str, Sequence[float]],
    config: Optional[DepthConfig] = None,
    *,
    toolbox: SpikeToolbox = DEFAULT_TOOLBOX,
) -> FigureSpec:
    config = config or DepthConfig()
    config.validate()
    check_events(events)
    positions = template_positions(ephys)
    logger.info(f"Building PSTH by depth: {len(ephys.spike_times)} spikes, alignments={list(events)}")

    labels = list(events)
    facets = []
    for i, label in enumerate(labels):
        d = depth_psth(
            ephys.spike_times, positions.spike_depths, events[label], config.window,
            config.depth_bin_size, config.psth_bin_width, config.baseline, toolbox=toolbox,
        )
        last = i == len(labels) - 1
        facets.append(FacetSpec(
            row=1, col=i + 1, key=f"depth:{label}",
            title=label,
            xlabel="Time (sec)" if i == 0 else "",
            ylabel="Position on electrode array (µm; 0 = tip)" if i == 0 else "",
            xlim=config.window,
            ylim=config.ylim,
            hide_y=i > 0,
            vlines=[VLine(0.0)],
            layers=[LayerSpec(
                kind=LayerKind.HEATMAP, x=d.time_bins, y=d.depth_edges[:-1], z=d.zscores,
                colorscale="RdBu_r", zmin=config.clim[0], zmax=config.clim[1],
                colorbar_title=COLORBAR_TITLE if last else None,
            )],
        ))
        logger.debug(f"{label}: {d.zscores.shape[0]} depth bins x {d.zscores.shape[1]} time bins")

    return FigureSpec(
        facets=facets,
        title=config.title,
        annotations=[f"{config.psth_bin_width * 1000:g} ms time bin", f"{config.depth_bin_size:g} µm depth bin"],
        params=config.to_dict(),
    )


def psth_by_depth(
    ephys: EphysData,
    events: Mapping[str, Sequence[float]],
    config: Optional[DepthConfig] = None,
    *,
    renderer: Optional[Renderer] = None,
    toolbox: SpikeToolbox = DEFAULT_TOOLBOX,
) -> tuple[Any, FigureSpec]:
    """Draw the depth heatmaps, saving the figure when ``config.save_path`` is set.

    Returns:
        (figure, spec)
    """
    config = config or DepthConfig()
    config.validate()
    renderer = prepare_renderer(renderer, config.save_path)
    spec = build_psth_by_depth(ephys, events, config, toolbox=toolbox)
    return draw(spec, renderer, config.save_path), spec
