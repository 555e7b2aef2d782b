# ---------------------------------------------------------------------------
# atsa_bayes.errors - Exception taxonomy
# ---------------------------------------------------------------------------
"""Errors raised by the request, posterior, summary and forecast layers.

Argument errors are raised before anything is handed to the sampler.
Engine failures are wrapped in :class:`FittingError` (or
:class:`FittingTimeout`) with the original exception chained as
``__cause__``.
"""

from __future__ import annotations


class AtsaError(Exception):
    """Base class for all atsa_bayes errors."""


class ConfigurationError(AtsaError, ValueError):
    """Malformed model request or MCMC configuration."""


class UnknownParameterError(AtsaError, KeyError):
    """Requested parameter was not monitored when the model was fit."""

    def __init__(self, names, monitored) -> None:
        self.names = sorted(names)
        self.monitored = sorted(monitored)
        super().__init__(
            f"Unknown parameter(s) {self.names}; monitored: {self.monitored}"
        )

    def __str__(self) -> str:
        return self.args[0]


class UnknownModelError(AtsaError, ValueError):
    """Model identifier is not one of the known templates."""


class InvalidQuantileError(AtsaError, ValueError):
    """Quantile probabilities outside [0, 1] or not strictly ordered."""


class InvalidHorizonError(AtsaError, ValueError):
    """Negative forecast horizon."""


class FittingError(AtsaError, RuntimeError):
    """The sampler failed to compile or sample the model."""


class FittingTimeout(FittingError):
    """The sampler gave up on time."""
