"""Exception types raised by easyplots.

Three families:

- ``InputError``: an argument has the wrong shape, is empty, or violates an
  ordering constraint. Raised before any computation starts.
- ``ConfigurationError``: options are individually valid but inconsistent with
  the data (e.g. fewer colours than split conditions).
- ``MissingDependencyError``: a rendering/export library is not installed.
"""

from __future__ import annotations


class EasyPlotsError(Exception):
    """Base class for all easyplots errors."""


class InputError(EasyPlotsError, ValueError):
    """An input array or parameter violates its constraint."""


class InvalidWindow(InputError):
    """Window start is not strictly before window end."""


class EmptySignal(InputError):
    """The signal has zero samples."""


class InvalidSignal(InputError):
    """The signal has the wrong shape, non-finite or unordered timestamps."""


class InvalidBinWidth(InputError):
    """Bin width is not strictly positive."""


class InvalidSmoothWidth(InputError):
    """Smoothing width is negative."""


class MismatchedTrialCount(InputError):
    """Per-trial keys do not have one entry per event."""


class MismatchedEpochLength(InputError):
    """Epoch boundary event sets do not all have the same number of trials."""


class NonMonotonicEpochs(InputError):
    """Epoch boundary times of a trial are not strictly increasing."""


class ConfigurationError(EasyPlotsError, ValueError):
    """Options are inconsistent with each other or with the data."""


class ColorCountMismatch(ConfigurationError):
    """Number of supplied colours differs from the number of split conditions."""

    def __init__(self, split_label: str, n_colors: int, n_groups: int) -> None:
        self.split_label = split_label
        self.n_colors = n_colors
        self.n_groups = n_groups
        super().__init__(
            f"{split_label}: {n_colors} colours specified but {n_groups} splitting conditions"
        )


class MissingDependencyError(EasyPlotsError, ImportError):
    """A required third-party package is not installed."""
