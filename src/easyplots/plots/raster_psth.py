"""Spike raster + PSTH figure, one column per alignment event.

Layout (rows x columns):

    col 1                 col 2 .. S+1
    template heatmap      raster (one per alignment)
    autocorrelogram       PSTH   (one per alignment)

The template facet is left out when no template is given.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import numpy as np

from easyplots.config import RasterPSTHConfig, SummaryStat
from easyplots.core.alignment import align_spikes
from easyplots.core.correlogram import REFRACTORY_PERIOD, autocorrelogram
from easyplots.core.grouping import relative_sort_keys, sort_order
from easyplots.core.smoothing import bin_and_smooth
from easyplots.core.stats import summarize_groups
from easyplots.ephys import EphysData
from easyplots.errors import InvalidSignal
from easyplots.plot_spec import FacetSpec, FigureSpec, LayerKind, LayerSpec, VLine
from easyplots.plots._base import (
    check_events,
    color_map,
    draw,
    facet_title,
    paint,
    prepare_renderer,
    split_labels,
    trial_colors,
)
from easyplots.render import Renderer
from easyplots.toolbox import DEFAULT_TOOLBOX, SpikeToolbox
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)

# Template overlay: mean waveform of this many largest channels.
N_TEMPLATE_CHANNELS = 3
TEMPLATE_XLIM_MS = (-0.8, 0.8)
SORT_MARKER_SIZE = 5


def _template_facet(template: np.ndarray, sample_rate: float) -> FacetSpec:
    """Channels x time heatmap with the mean waveform of the largest channels on top."""
    tmpl = np.asarray(template, dtype=float)
    if tmpl.ndim != 2:
        raise InvalidSignal(f"template must be (n_channels, n_samples), got shape {tmpl.shape}")
    n_channels, n_samples = tmpl.shape
    times_ms = (np.arange(n_samples) - (n_samples // 2 - 1)) / sample_rate * 1000.0
    zmax = float(np.max(np.abs(tmpl))) / 2 or 1.0

    largest = np.argsort(-np.mean(np.abs(tmpl), axis=1), kind="stable")[:N_TEMPLATE_CHANNELS]
    waveform = tmpl[largest].mean(axis=0)

    return FacetSpec(
        row=1, col=1, key="template",
        title="Kilosort template",
        xlabel="Time (ms)",
        ylabel="Channel number (0 = tip)",
        xlim=TEMPLATE_XLIM_MS,
        ylim=(0, n_channels),
        vlines=[VLine(-0.5, dash="dot"), VLine(0.0, dash="dot"), VLine(0.5, dash="dot")],
        layers=[
            LayerSpec(kind=LayerKind.HEATMAP, x=times_ms, y=np.arange(n_channels), z=tmpl,
                      colorscale="RdBu_r", zmin=-zmax, zmax=zmax),
            LayerSpec(kind=LayerKind.LINE, x=times_ms, y=waveform, color="black",
                      name="mean waveform", secondary_y=True),
        ],
    )


def _acg_facet(spike_times: np.ndarray, toolbox: SpikeToolbox) -> FacetSpec:
    acg = autocorrelogram(spike_times, toolbox=toolbox)
    # step layer: one y per left edge, repeated at the last edge to close the final bin
    x_ms = acg.edges * 1000.0
    y = np.append(acg.rate, acg.rate[-1] if acg.rate.size else 0.0)
    return FacetSpec(
        row=2, col=1, key="acg",
        title="Autocorrelation",
        xlabel="Time (ms)",
        hide_y=True,
        vlines=[VLine(REFRACTORY_PERIOD * 1000.0, dash="solid")],
        layers=[LayerSpec(kind=LayerKind.STEP, x=x_ms, y=y, color="black")],
    )


def build_raster_psth(
    spike_times: Sequence[float],
    events: Mapping[str, Sequence[float]],
    config: Optional[RasterPSTHConfig] = None,
    *,
    template: Optional[np.ndarray] = None,
    toolbox: SpikeToolbox = DEFAULT_TOOLBOX,
) -> FigureSpec:
    """Compute the raster/PSTH figure without drawing it.

    Args:
        spike_times: Sorted spike times (seconds).
        events: Alignment label -> event times (one per trial); insertion order sets column order.
        config: Plot options; defaults to RasterPSTHConfig().
        template: Optional (n_channels, n_samples) spike template.
        toolbox: Spike histogram provider.
    """
    config = config or RasterPSTHConfig()
    config.validate()
    check_events(events)
    st = np.asarray(spike_times, dtype=float)
    bw, sw = config.psth_bin_width, config.psth_smooth_width
    logger.info(f"Building raster/PSTH: {st.size} spikes, alignments={list(events)}")

    facets: list[FacetSpec] = []
    if template is not None:
        facets.append(_template_facet(template, config.template_sample_rate))
    facets.append(_acg_facet(st, toolbox))

    psth_keys = []
    for i, (label, event_times) in enumerate(events.items()):
        col = i + 2
        aligned = align_spikes(st, event_times, config.window)
        psth = bin_and_smooth(aligned, bw, sw, toolbox=toolbox)
        trials = aligned.trials
        rates = psth.rates
        n_trials = len(trials)

        split = config.split_by.get(label)
        labels = split_labels(split, n_trials)
        sort = config.sort_by.get(label)
        sort_keys = None
        if sort is not None:
            keys = relative_sort_keys(sort.times, event_times)
            order = sort_order(keys)
            trials = [trials[j] for j in order]
            rates = rates[order]
            sort_keys = keys[order]
            if labels is not None:
                labels = [labels[j] for j in order]

        cmap = color_map(split, labels, config.split_colors.get(label))
        raster_layers = [
            LayerSpec(kind=LayerKind.RASTER, trials=trials, colors=trial_colors(labels, cmap, n_trials)),
        ]
        if sort_keys is not None:
            raster_layers.append(LayerSpec(
                kind=LayerKind.MARKERS, x=sort_keys, y=np.arange(1, n_trials + 1),
                color="black", symbol="triangle-down", size=SORT_MARKER_SIZE, name=sort.name,
            ))
        facets.append(FacetSpec(
            row=1, col=col, key=f"raster:{label}",
            title=facet_title(label, split, sort.name if sort is not None else None),
            ylabel="Event number" if i == 0 else "",
            xlim=config.window,
            reverse_y=True,
            hide_y=i > 0,
            vlines=[VLine(0.0)],
            layers=raster_layers,
        ))

        groups = paint(summarize_groups(rates, SummaryStat.SEM, labels), cmap)
        key = f"psth:{label}"
        psth_keys.append(key)
        facets.append(FacetSpec(
            row=2, col=col, key=key,
            xlabel=label,
            ylabel="Spikes/sec" if i == 0 else "",
            xlim=config.window,
            ylim=config.ylim,
            vlines=[VLine(0.0)],
            layers=[LayerSpec(kind=LayerKind.SUMMARY, x=psth.bins, groups=groups)],
        ))
        logger.debug(f"{label}: {n_trials} trials, {len(groups)} groups, {int(aligned.missing.sum())} missing")

    return FigureSpec(
        facets=facets,
        title=config.title,
        annotations=[f"{bw * 1000:g} ms binning", f"{sw * 1000:g} ms smoothing"],
        link_y=[psth_keys] if len(psth_keys) > 1 else [],
        params=config.to_dict(),
    )


def raster_psth(
    spike_times: Sequence[float],
    events: Mapping[str, Sequence[float]],
    config: Optional[RasterPSTHConfig] = None,
    *,
    template: Optional[np.ndarray] = None,
    renderer: Optional[Renderer] = None,
    toolbox: SpikeToolbox = DEFAULT_TOOLBOX,
) -> tuple[Any, FigureSpec]:
    """Draw the raster/PSTH figure, saving it when ``config.save_path`` is set.

    Returns:
        (figure, spec): the rendered figure and the FigureSpec it was built from.

    Raises:
        MissingDependencyError: plotly (or kaleido for static export) is not installed.
    """
    config = config or RasterPSTHConfig()
    config.validate()
    renderer = prepare_renderer(renderer, config.save_path)
    spec = build_raster_psth(spike_times, events, config, template=template, toolbox=toolbox)
    return draw(spec, renderer, config.save_path), spec


def raster_psth_batch(
    ephys: EphysData,
    events: Mapping[str, Sequence[float]],
    save_dir: Union[str, Path],
    config: Optional[RasterPSTHConfig] = None,
    *,
    cluster_ids: Optional[Iterable[int]] = None,
    renderer: Optional[Renderer] = None,
    toolbox: SpikeToolbox = DEFAULT_TOOLBOX,
) -> list[Path]:
    """Save one raster/PSTH PNG per cluster into ``save_dir``.

    Args:
        ephys: Sorted spikes and templates.
        events: Alignment label -> event times.
        save_dir: Output directory (created if needed).
        config: Shared plot options; ``title`` is used as the file-name prefix.
        cluster_ids: Clusters to plot; all clusters when None.

    Returns:
        Paths of the written figures, in cluster order. Clusters without spikes are skipped.
    """
    config = config or RasterPSTHConfig()
    config.validate()
    check_events(events)
    save_dir = Path(save_dir)
    renderer = prepare_renderer(renderer, save_dir / "probe.png")
    ids = list(ephys.cluster_ids if cluster_ids is None else cluster_ids)
    logger.info(f"Batch raster/PSTH: {len(ids)} clusters -> {save_dir}")

    written = []
    for cid in ids:
        cid = int(cid)
        st = ephys.cluster_spike_times(cid)
        if st.size == 0:
            logger.warning(f"Cluster {cid} has no spikes; skipping")
            continue
        title = f"{config.title}_clu{cid}" if config.title else f"clu{cid}"
        path = save_dir / f"{title}.png"
        cfg = dataclasses.replace(config, title=title, save_path=path)
        raster_psth(st, events, cfg, template=ephys.cluster_template(cid), renderer=renderer, toolbox=toolbox)
        written.append(path)
    return written
