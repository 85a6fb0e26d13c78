"""Container for the first-order decision rule.

The decision rule maps the backward-looking variables of the previous
period and the current shocks to every endogenous variable:

.. math::

    y_t = g_{1,1} \\, y^b_{t-1} + g_{1,2} \\, u_t

``g1 = [g1_1 | g1_2]`` is stored as one matrix, and ``g1_1`` and ``g1_2``
are numpy views sharing its memory: writing through a view updates
``g1`` and vice versa.  The remaining blocks are copies sliced from
``g1`` at the backward and non-backward rows by :func:`fill_results`.

References
----------
Villemot, S. (2011). "Solving rational expectations models at first
    order: what Dynare does." *Dynare Working Papers*, 2.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .indices import Indices

Array = np.ndarray


class LinearRationalExpectationsResults:
    """Results of a linear solve, overwritten in place by every solve.

    Parameters
    ----------
    n_endogenous : int
        Number of endogenous variables.
    n_exogenous : int
        Number of current exogenous variables.
    n_backward : int
        Number of backward-looking variables.

    Attributes
    ----------
    eigenvalues : Array
        Generalised eigenvalues of the last dense solve, stable ones
        first.  Empty after a sparse solve.
    g1 : Array, shape (n_endogenous, n_backward + n_exogenous)
        Full first-order decision rule.
    g1_1 : Array, shape (n_endogenous, n_backward)
        View of the state columns of ``g1``.
    g1_2 : Array, shape (n_endogenous, n_exogenous)
        View of the shock columns of ``g1``.
    gs1 : Array, shape (n_backward, n_backward)
        Transition of the backward variables.
    hs1 : Array, shape (n_backward, n_exogenous)
        Shock impact on the backward variables.
    gns1 : Array, shape (n_endogenous - n_backward, n_backward)
        Response of the non-backward variables to the states.
    hns1 : Array, shape (n_endogenous - n_backward, n_exogenous)
        Response of the non-backward variables to the shocks.
    endogenous_variance : Array, shape (n_endogenous, n_endogenous)
        Unconditional variance, filled by
        :func:`linear_re.variance.compute_variance`.
    stationary_variables : Array of bool, shape (n_endogenous,)
        Stationarity flags, filled by
        :func:`linear_re.variance.compute_variance`.
    """

    def __init__(self, n_endogenous: int, n_exogenous: int, n_backward: int):
        state_nbr = n_backward + n_exogenous
        non_backward_nbr = n_endogenous - n_backward

        self.n_endogenous = n_endogenous
        self.n_exogenous = n_exogenous
        self.n_backward = n_backward

        self.eigenvalues = np.empty(0, dtype=complex)

        self.g1 = np.zeros((n_endogenous, state_nbr), dtype=float)
        self.gs1 = np.zeros((n_backward, n_backward), dtype=float)
        self.hs1 = np.zeros((n_backward, n_exogenous), dtype=float)
        self.gns1 = np.zeros((non_backward_nbr, n_backward), dtype=float)
        self.hns1 = np.zeros((non_backward_nbr, n_exogenous), dtype=float)

        self.g1_1 = self.g1[:, :n_backward]
        self.g1_2 = self.g1[:, n_backward:state_nbr]

        self.endogenous_variance = np.zeros((n_endogenous, n_endogenous), dtype=float)
        self.stationary_variables = np.zeros(n_endogenous, dtype=bool)

    @classmethod
    def from_indices(cls, ids: Indices) -> LinearRationalExpectationsResults:
        """Allocate results sized for the model described by *ids*."""
        return cls(ids.n_endogenous, ids.n_exogenous, ids.n_backward)

    @property
    def stable(self) -> bool:
        """Check whether the state transition is asymptotically stable.

        Returns
        -------
        bool
            True if all eigenvalues of ``gs1`` have modulus strictly less
            than one.
        """
        if self.gs1.size == 0:
            return True
        spectral_radius = float(np.max(np.abs(np.linalg.eigvals(self.gs1))))
        return spectral_radius < 1.0


def fill_results(results: LinearRationalExpectationsResults, ids: Indices) -> LinearRationalExpectationsResults:
    """Slice ``g1`` into the backward and non-backward sub-blocks."""
    results.hs1[...] = results.g1_2[ids.backward, :]
    results.gns1[...] = results.g1_1[ids.non_backward, :]
    results.hns1[...] = results.g1_2[ids.non_backward, :]
    return results
