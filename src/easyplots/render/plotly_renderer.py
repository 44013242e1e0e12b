"""Plotly rendering of FigureSpec.

This module provides the PlotlyRenderer class, which turns the declarative
FigureSpec produced by the plot builders into a plotly Figure (one subplot per
facet) and exports it to disk.
"""

from __future__ import annotations

import importlib.util
from pathlib import Path
from typing import Union

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from easyplots.errors import ConfigurationError, MissingDependencyError
from easyplots.plot_spec import FacetSpec, FigureSpec, LayerKind, LayerSpec
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)

# Static formats written through kaleido; html is written by plotly itself.
STATIC_FORMATS = {"pdf", "png", "jpg", "jpeg", "svg", "eps", "webp"}
HTML_FORMATS = {"html", "htm"}

BAND_OPACITY = 0.25
RASTER_MARKER_SIZE = 3
FACET_WIDTH_PX = 380
FACET_HEIGHT_PX = 360


def _rgba(color: str, alpha: float) -> str:
    """Translucent version of an 'rgb(...)', '#rrggbb' or named colour."""
    if color.startswith("rgb("):
        return "rgba(" + color[4:-1] + f",{alpha})"
    if color.startswith("#") and len(color) == 7:
        r, g, b = (int(color[i:i + 2], 16) for i in (1, 3, 5))
        return f"rgba({r},{g},{b},{alpha})"
    return color


def export_format(path: Union[str, Path]) -> str:
    """File format inferred from the path extension (lower case, no dot)."""
    fmt = Path(path).suffix.lower().lstrip(".")
    if fmt not in STATIC_FORMATS | HTML_FORMATS:
        supported = ", ".join(sorted(STATIC_FORMATS | HTML_FORMATS))
        raise ConfigurationError(f"Cannot export to {str(path)!r}: unsupported extension (supported: {supported})")
    return fmt


class PlotlyRenderer:
    """Renders FigureSpec objects with plotly.

    Attributes:
        facet_width: Pixel width per facet column.
        facet_height: Pixel height per facet row.
    """

    def __init__(self, facet_width: int = FACET_WIDTH_PX, facet_height: int = FACET_HEIGHT_PX) -> None:
        self.facet_width = facet_width
        self.facet_height = facet_height

    # -----------------------------
    # Export
    # -----------------------------
    def check_export(self, path: Union[str, Path]) -> None:
        """Fail before any work is done if ``path`` cannot be written.

        Raises:
            ConfigurationError: unsupported extension.
            MissingDependencyError: static export requested but kaleido is not installed.
        """
        fmt = export_format(path)
        if fmt in STATIC_FORMATS and importlib.util.find_spec("kaleido") is None:
            raise MissingDependencyError(
                f"Saving {fmt.upper()} figures requires the 'kaleido' package (pip install kaleido)"
            )

    def save(self, fig: go.Figure, path: Union[str, Path]) -> Path:
        """Write ``fig`` to ``path``; format follows the extension."""
        self.check_export(path)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fmt = export_format(path)
        if fmt in HTML_FORMATS:
            fig.write_html(str(path))
        else:
            fig.write_image(str(path), format=fmt)
        logger.info(f"Saved figure to {path}")
        return path

    # -----------------------------
    # Rendering
    # -----------------------------
    def render(self, spec: FigureSpec) -> go.Figure:
        """Build a plotly Figure from ``spec``."""
        n_rows, n_cols = max(spec.n_rows, 1), max(spec.n_cols, 1)
        titles = [""] * (n_rows * n_cols)
        for f in spec.facets:
            titles[(f.row - 1) * n_cols + (f.col - 1)] = f.title
        specs = [[{} for _ in range(n_cols)] for _ in range(n_rows)]
        for f in spec.facets:
            if any(layer.secondary_y for layer in f.layers):
                specs[f.row - 1][f.col - 1] = {"secondary_y": True}

        fig = make_subplots(
            rows=n_rows,
            cols=n_cols,
            subplot_titles=titles,
            specs=specs,
            horizontal_spacing=0.06,
            vertical_spacing=0.12,
        )
        logger.info(f"PlotlyRenderer.render: {len(spec.facets)} facets in a {n_rows}x{n_cols} grid")
        fig.update_xaxes(ticks="outside")
        fig.update_yaxes(ticks="outside")

        for facet in spec.facets:
            self._render_facet(fig, facet)
        self._link_y(fig, spec)

        fig.update_layout(
            title_text=spec.title,
            template="simple_white",
            width=self.facet_width * n_cols,
            height=self.facet_height * n_rows,
            legend=dict(tracegroupgap=4),
        )
        if spec.annotations:
            fig.add_annotation(
                text="<br>".join(spec.annotations),
                xref="paper", yref="paper", x=0.0, y=1.08,
                xanchor="left", yanchor="bottom", showarrow=False, align="left",
            )
        logger.debug(f"Figure rendered: {len(fig.data)} traces")
        return fig

    def _render_facet(self, fig: go.Figure, facet: FacetSpec) -> None:
        rc = dict(row=facet.row, col=facet.col)
        has_secondary = any(layer.secondary_y for layer in facet.layers)
        # primary axis only; the secondary axis keeps its own autorange
        yk = dict(rc, secondary_y=False) if has_secondary else rc
        for layer in facet.layers:
            if layer.kind is LayerKind.RASTER:
                self._add_raster(fig, layer, facet)
            elif layer.kind is LayerKind.SUMMARY:
                self._add_summary(fig, layer, facet)
            elif layer.kind is LayerKind.HEATMAP:
                fig.add_trace(
                    go.Heatmap(
                        x=layer.x, y=layer.y, z=layer.z,
                        colorscale=layer.colorscale or "RdBu_r",
                        zmin=layer.zmin, zmax=layer.zmax,
                        colorbar=dict(title=layer.colorbar_title or ""),
                        showscale=layer.colorbar_title is not None,
                    ),
                    **rc,
                )
            else:
                self._add_xy(fig, layer, facet)

        for v in facet.vlines:
            label = dict(annotation_text=v.label, annotation_position="top") if v.label else {}
            fig.add_vline(x=v.x, line_dash=v.dash, line_color="black", line_width=1, **label, **rc)

        fig.update_xaxes(title_text=facet.xlabel, **rc)
        fig.update_yaxes(title_text=facet.ylabel, **yk)
        if facet.xlim is not None:
            fig.update_xaxes(range=list(facet.xlim), **rc)
        if facet.ylim is not None:
            fig.update_yaxes(range=list(facet.ylim), **yk)
        if facet.reverse_y:
            fig.update_yaxes(autorange="reversed", **yk)
        if facet.hide_y:
            fig.update_yaxes(showticklabels=False, ticks="", showline=False, **yk)
        if facet.hide_x:
            fig.update_xaxes(showticklabels=False, ticks="", showline=False, **rc)
        if has_secondary:
            fig.update_yaxes(visible=False, secondary_y=True, **rc)

    def _add_raster(self, fig: go.Figure, layer: LayerSpec, facet: FacetSpec) -> None:
        """One scatter trace per colour so each split group gets one legend entry."""
        trials = layer.trials or []
        colors = layer.colors or ["black"] * len(trials)
        by_color: dict[str, tuple[list[float], list[float]]] = {}
        for i, (spikes, color) in enumerate(zip(trials, colors)):
            if spikes is None or len(spikes) == 0:
                continue
            xs, ys = by_color.setdefault(color, ([], []))
            xs.extend(np.asarray(spikes, dtype=float).tolist())
            ys.extend([i + 1] * len(spikes))
        for color, (xs, ys) in by_color.items():
            fig.add_trace(
                go.Scattergl(
                    x=xs, y=ys, mode="markers",
                    marker=dict(color=color, size=layer.size or RASTER_MARKER_SIZE),
                    showlegend=False, hoverinfo="skip",
                ),
                row=facet.row, col=facet.col,
            )

    def _add_summary(self, fig: go.Figure, layer: LayerSpec, facet: FacetSpec) -> None:
        x = np.asarray(layer.x, dtype=float)
        for g in layer.groups:
            color = g.color or layer.color or "black"
            name = "all" if g.label is None else f"{g.label} (n={g.n_trials})"
            band_x = np.concatenate([x, x[::-1]])
            band_y = np.concatenate([g.upper, g.lower[::-1]])
            fig.add_trace(
                go.Scatter(
                    x=band_x, y=band_y, fill="toself", mode="lines",
                    line=dict(width=0), fillcolor=_rgba(color, BAND_OPACITY),
                    hoverinfo="skip", showlegend=False, legendgroup=name,
                ),
                row=facet.row, col=facet.col,
            )
            fig.add_trace(
                go.Scatter(
                    x=x, y=g.center, mode="lines", name=name,
                    line=dict(color=color, width=2),
                    showlegend=g.label is not None, legendgroup=name,
                ),
                row=facet.row, col=facet.col,
            )

    def _add_xy(self, fig: go.Figure, layer: LayerSpec, facet: FacetSpec) -> None:
        kwargs: dict = dict(x=layer.x, y=layer.y, name=layer.name or "", showlegend=False)
        if layer.kind is LayerKind.MARKERS:
            kwargs.update(mode="markers", marker=dict(
                color=layer.color or "black", symbol=layer.symbol or "circle", size=layer.size or 6,
            ))
        else:
            kwargs.update(mode="lines", line=dict(color=layer.color or "black", width=2))
            if layer.kind is LayerKind.STEP:
                kwargs["line_shape"] = "hv"
        trace = go.Scatter(**kwargs)
        if layer.secondary_y:
            fig.add_trace(trace, row=facet.row, col=facet.col, secondary_y=True)
        else:
            fig.add_trace(trace, row=facet.row, col=facet.col)

    def _link_y(self, fig: go.Figure, spec: FigureSpec) -> None:
        """Give every facet of a linked group the union of their data ranges (unless a ylim is set)."""
        for keys in spec.link_y:
            facets = [spec.facet(k) for k in keys]
            ranges = [r for r in (f.data_yrange() for f in facets) if r is not None]
            if not ranges:
                continue
            lo = min(r[0] for r in ranges)
            hi = max(r[1] for r in ranges)
            pad = 0.05 * (hi - lo) if hi > lo else 1.0
            for f in facets:
                if f.ylim is None:
                    fig.update_yaxes(range=[lo - pad, hi + pad], row=f.row, col=f.col)
