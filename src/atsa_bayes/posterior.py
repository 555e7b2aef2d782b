# ---------------------------------------------------------------------------
# atsa_bayes.posterior - Posterior draw extraction
# ---------------------------------------------------------------------------
"""Read posterior draws out of a fitted-model handle.

Chains are stacked on the first axis in chain order and never permuted,
so extracting twice from the same handle gives identical arrays.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Protocol, runtime_checkable

import numpy as np

from .errors import UnknownParameterError


@runtime_checkable
class PosteriorHandle(Protocol):
    """What the accessor needs from a fitted model."""

    def monitored_parameters(self) -> frozenset[str]: ...

    def get_draws(self, name: str) -> np.ndarray: ...


class DrawTable(Mapping):
    """Read-only mapping of parameter name -> draws ``(n_draws, *shape)``."""

    def __init__(self, draws: dict[str, np.ndarray]) -> None:
        sizes = {name: arr.shape[0] for name, arr in draws.items()}
        if len(set(sizes.values())) > 1:
            raise ValueError(f"Parameters disagree on the number of draws: {sizes}")
        for arr in draws.values():
            arr.setflags(write=False)
        self._draws = dict(draws)
        self.n_draws = next(iter(sizes.values()), 0)

    def __getitem__(self, name: str) -> np.ndarray:
        return self._draws[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._draws)

    def __len__(self) -> int:
        return len(self._draws)

    def __repr__(self) -> str:
        shapes = ", ".join(f"{k}{v.shape[1:]}" for k, v in self._draws.items())
        return f"DrawTable(n_draws={self.n_draws}, {shapes})"


def resolve_names(handle: PosteriorHandle, var_names) -> list[str]:
    monitored = handle.monitored_parameters()
    if var_names is None:
        return sorted(monitored)
    if isinstance(var_names, str):
        var_names = [var_names]
    names = list(var_names)
    unknown = set(names) - set(monitored)
    if unknown:
        raise UnknownParameterError(unknown, monitored)
    return names


def extract(
    handle: PosteriorHandle,
    var_names: str | Iterable[str] | None = None,
) -> DrawTable:
    """Extract draws with chains stacked.

    Parameters
    ----------
    handle : PosteriorHandle
        Typically a :class:`atsa_bayes.sampling.FittedModel`.
    var_names : str or iterable of str, optional
        Parameters to extract.  ``None`` extracts every monitored
        parameter.

    Raises
    ------
    UnknownParameterError
        A requested name was not monitored at fit time.  Checked for all
        names before any draws are read.
    """
    names = resolve_names(handle, var_names)
    draws = {}
    for name in names:
        arr = np.asarray(handle.get_draws(name))
        draws[name] = arr.reshape(-1, *arr.shape[2:]).copy()
    return DrawTable(draws)


def extract_chains(handle: PosteriorHandle, name: str) -> np.ndarray:
    """Draws of one parameter keeping the chain axis: ``(chain, draw, ...)``."""
    (name,) = resolve_names(handle, [name])
    arr = np.array(handle.get_draws(name))
    arr.setflags(write=False)
    return arr
