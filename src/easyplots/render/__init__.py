"""Rendering backends.

Only the Renderer protocol lives here; the plotly backend is imported on first
use so that computing figure specs never requires plotly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol, Union

from easyplots.errors import MissingDependencyError
from easyplots.plot_spec import FigureSpec


class Renderer(Protocol):
    """Turns a FigureSpec into a figure object and writes it to disk."""

    def render(self, spec: FigureSpec) -> Any:
        ...

    def save(self, fig: Any, path: Union[str, Path]) -> Path:
        ...

    def check_export(self, path: Union[str, Path]) -> None:
        ...


def get_renderer(renderer: Optional[Renderer] = None) -> Renderer:
    """Return ``renderer`` or, if None, a PlotlyRenderer.

    Raises:
        MissingDependencyError: plotly is not installed.
    """
    if renderer is not None:
        return renderer
    try:
        from easyplots.render.plotly_renderer import PlotlyRenderer
    except ImportError as e:
        raise MissingDependencyError("Drawing figures requires the 'plotly' package (pip install plotly)") from e
    return PlotlyRenderer()


__all__ = ["Renderer", "get_renderer"]
