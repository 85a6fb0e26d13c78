"""Variable classification and index bookkeeping for the linear solvers.

Endogenous variables are classified by the periods in which they appear in
the model equations: ``forward`` variables appear with a lead (``t+1``),
``current`` variables at ``t`` and ``backward`` variables with a lag
(``t-1``).  ``static`` variables appear only at ``t``.  From these four sets
:func:`build_indices` derives every row and column mapping needed by the
solvers:

* the *compact* Jacobian layout, with columns ordered as the backward
  block, the current block, the forward block and the exogenous block, each
  block following the order of the caller's index vector;
* the *dynamic system* layout of the reduced matrix pencil, whose unknowns
  are ``[y_backward(t); y_forward(t+1)]`` on the ``D`` side and
  ``[y_backward(t-1); y_forward(t)]`` on the ``E`` side;
* the static sub-Jacobian used to eliminate static variables.

Variables that are both forward and backward appear twice among the
pencil unknowns, so one identity equation per such variable links its
backward slot to its forward slot.

All positions are 0-based.

References
----------
Villemot, S. (2011). "Solving rational expectations models at first
    order: what Dynare does." *Dynare Working Papers*, 2.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Sequence

import numpy as np
from scipy import sparse

from .exceptions import IllPosedClassificationError

Array = np.ndarray


class ColumnMap(NamedTuple):
    """Pairs of pencil columns and the compact Jacobian columns feeding them."""

    pencil: Array
    jacobian: Array


def _frozen(values: Sequence[int] | Array) -> Array:
    out = np.array(values, dtype=np.intp).reshape(-1)
    out.setflags(write=False)
    return out


def _index_vector(values: Sequence[int] | Array, name: str) -> Array:
    out = _frozen(values)
    if np.any(out < 0):
        raise IllPosedClassificationError(f"Negative position in '{name}' indices: {out.tolist()}")
    if np.unique(out).size != out.size:
        raise IllPosedClassificationError(f"Duplicated position in '{name}' indices: {out.tolist()}")
    return out


@dataclass(frozen=True, eq=False)
class Indices:
    """Positions of the endogenous variables in the solver matrices.

    Attributes
    ----------
    current, forward, backward, static : Array
        Caller-supplied role vectors, in the caller's order.
    purely_forward : Array
        Forward variables that are not backward, in forward order.
    both : Array
        Variables that are both forward and backward, in forward order.
    non_backward : Array
        Sorted union of static and purely forward variables.
    dynamic : Array
        All non-static variables, ascending.
    current_dynamic : Array
        Current variables that are not static, in current order.
    current_in_dynamic, forward_in_dynamic, backward_in_dynamic : Array
        Positions within ``dynamic`` of the dynamic variables that are
        current, forward or backward.
    current_in_dynamic_jacobian : Array
        Compact Jacobian columns of the current derivatives of the
        variables listed by ``current_in_dynamic`` (same order).
    current_in_static_jacobian : Array
        Compact Jacobian columns of the current derivatives of the static
        variables (in static order).
    purely_forward_in_forward : Array
        Positions within ``forward`` of the purely forward variables.
    exogenous : Array
        Compact Jacobian columns of the exogenous variables.
    n_endogenous : int
        Number of endogenous variables.
    D_columns, E_columns : ColumnMap
        How the columns of the pencil matrices ``D`` and ``E`` are filled
        from the compact Jacobian.
    UD_columns, UE_columns : Array
        Pencil columns of the identity link equations for the variables
        that are both forward and backward (in ``both`` order).
    """

    current: Array
    forward: Array
    purely_forward: Array
    backward: Array
    both: Array
    non_backward: Array

    static: Array
    dynamic: Array
    current_dynamic: Array

    current_in_dynamic: Array
    forward_in_dynamic: Array
    backward_in_dynamic: Array

    current_in_dynamic_jacobian: Array
    current_in_static_jacobian: Array
    purely_forward_in_forward: Array

    exogenous: Array
    n_endogenous: int

    D_columns: ColumnMap
    E_columns: ColumnMap
    UD_columns: Array
    UE_columns: Array

    @property
    def n_static(self) -> int:
        return len(self.static)

    @property
    def n_forward(self) -> int:
        return len(self.forward)

    @property
    def n_backward(self) -> int:
        return len(self.backward)

    @property
    def n_both(self) -> int:
        return len(self.both)

    @property
    def n_current(self) -> int:
        return len(self.current)

    @property
    def n_dynamic(self) -> int:
        return len(self.dynamic)

    @property
    def n_exogenous(self) -> int:
        return len(self.exogenous)

    @property
    def n_compact_columns(self) -> int:
        """Number of columns of the compact Jacobian."""
        return self.n_backward + self.n_current + self.n_forward + self.n_exogenous

    @property
    def n_full_columns(self) -> int:
        """Number of columns of the full ``[t-1 | t | t+1 | exogenous]`` Jacobian."""
        return 3 * self.n_endogenous + self.n_exogenous


def build_indices(
    n_exogenous: int,
    forward: Sequence[int] | Array,
    current: Sequence[int] | Array,
    backward: Sequence[int] | Array,
    static: Sequence[int] | Array,
) -> Indices:
    """Classify endogenous variables and derive the solver index maps.

    Parameters
    ----------
    n_exogenous : int
        Number of current exogenous variables (shocks).
    forward : Sequence[int]
        0-based positions of the variables appearing at ``t+1``.
    current : Sequence[int]
        0-based positions of the variables appearing at ``t``.
    backward : Sequence[int]
        0-based positions of the variables appearing at ``t-1``.
    static : Sequence[int]
        0-based positions of the variables appearing only at ``t``.

    Returns
    -------
    Indices
        The frozen index model.

    Raises
    ------
    IllPosedClassificationError
        If the role vectors are empty, contain negative or duplicated
        positions, leave a variable unclassified, or declare as static a
        variable that is not purely contemporaneous (or fail to declare
        one that is).
    """
    if n_exogenous < 0:
        raise IllPosedClassificationError(f"n_exogenous must be >= 0, got {n_exogenous}")

    forward_v = _index_vector(forward, "forward")
    current_v = _index_vector(current, "current")
    backward_v = _index_vector(backward, "backward")
    static_v = _index_vector(static, "static")

    if forward_v.size + current_v.size + backward_v.size == 0:
        raise IllPosedClassificationError(
            "At least one of the forward, current or backward index sets must be non-empty."
        )

    n_endogenous = int(max(v.max(initial=-1) for v in (forward_v, current_v, backward_v))) + 1

    forward_set = set(forward_v.tolist())
    current_set = set(current_v.tolist())
    backward_set = set(backward_v.tolist())
    static_set = set(static_v.tolist())

    unclassified = sorted(set(range(n_endogenous)) - forward_set - current_set - backward_set)
    if unclassified:
        raise IllPosedClassificationError(
            f"Endogenous variables {unclassified} appear in none of the forward, current "
            "or backward index sets."
        )
    if not static_set <= current_set:
        raise IllPosedClassificationError(
            f"Static variables {sorted(static_set - current_set)} are not current variables."
        )
    if static_set & (forward_set | backward_set):
        raise IllPosedClassificationError(
            f"Static variables {sorted(static_set & (forward_set | backward_set))} "
            "also appear with a lead or a lag."
        )
    undeclared = sorted(current_set - forward_set - backward_set - static_set)
    if undeclared:
        raise IllPosedClassificationError(
            f"Variables {undeclared} appear only in the current period but are not declared static."
        )

    n_forward = forward_v.size
    n_current = current_v.size
    n_backward = backward_v.size

    forward_pos = {v: i for i, v in enumerate(forward_v.tolist())}
    current_pos = {v: i for i, v in enumerate(current_v.tolist())}
    backward_pos = {v: i for i, v in enumerate(backward_v.tolist())}

    both = [v for v in forward_v.tolist() if v in backward_set]
    purely_forward = [v for v in forward_v.tolist() if v not in backward_set]
    non_backward = sorted(static_set | set(purely_forward))
    dynamic = [v for v in range(n_endogenous) if v not in static_set]
    current_dynamic = [v for v in current_v.tolist() if v not in static_set]

    current_in_dynamic = [i for i, v in enumerate(dynamic) if v in current_set]
    forward_in_dynamic = [i for i, v in enumerate(dynamic) if v in forward_set]
    backward_in_dynamic = [i for i, v in enumerate(dynamic) if v in backward_set]
    current_in_dynamic_jacobian = [
        n_backward + current_pos[v] for v in dynamic if v in current_set
    ]
    current_in_static_jacobian = [n_backward + current_pos[v] for v in static_v.tolist()]

    exogenous = n_backward + n_current + n_forward + np.arange(n_exogenous)

    # current derivatives of backward variables multiply y_backward(t) in D
    backward_current = [v for v in backward_v.tolist() if v in current_set]
    d_columns = ColumnMap(
        pencil=_frozen(
            [backward_pos[v] for v in backward_current]
            + [n_backward + i for i in range(n_forward)]
        ),
        jacobian=_frozen(
            [n_backward + current_pos[v] for v in backward_current]
            + [n_backward + n_current + i for i in range(n_forward)]
        ),
    )

    # current derivatives of purely forward variables multiply y_forward(t) in E
    forward_current = [v for v in purely_forward if v in current_set]
    e_columns = ColumnMap(
        pencil=_frozen(
            list(range(n_backward)) + [n_backward + forward_pos[v] for v in forward_current]
        ),
        jacobian=_frozen(
            list(range(n_backward)) + [n_backward + current_pos[v] for v in forward_current]
        ),
    )

    return Indices(
        current=current_v,
        forward=forward_v,
        purely_forward=_frozen(purely_forward),
        backward=backward_v,
        both=_frozen(both),
        non_backward=_frozen(non_backward),
        static=static_v,
        dynamic=_frozen(dynamic),
        current_dynamic=_frozen(current_dynamic),
        current_in_dynamic=_frozen(current_in_dynamic),
        forward_in_dynamic=_frozen(forward_in_dynamic),
        backward_in_dynamic=_frozen(backward_in_dynamic),
        current_in_dynamic_jacobian=_frozen(current_in_dynamic_jacobian),
        current_in_static_jacobian=_frozen(current_in_static_jacobian),
        purely_forward_in_forward=_frozen([forward_pos[v] for v in purely_forward]),
        exogenous=_frozen(exogenous),
        n_endogenous=n_endogenous,
        D_columns=d_columns,
        E_columns=e_columns,
        UD_columns=_frozen([backward_pos[v] for v in both]),
        UE_columns=_frozen([n_backward + forward_pos[v] for v in both]),
    )


def build_indices_from_incidence(lead_lag_incidence: Array, n_exogenous: int) -> Indices:
    """Build :class:`Indices` from a lead-lag incidence matrix.

    Parameters
    ----------
    lead_lag_incidence : Array, shape (3, n_endogenous)
        Rows correspond to the lag, the current period and the lead.  A
        nonzero entry marks that the variable of that column appears in
        that period.
    n_exogenous : int
        Number of current exogenous variables.

    Returns
    -------
    Indices
        Index model with backward, current and forward variables in
        ascending order and static variables defined as the current
        variables with neither a lag nor a lead.
    """
    lli = np.asarray(lead_lag_incidence)
    if lli.ndim != 2 or lli.shape[0] != 3:
        raise IllPosedClassificationError(
            f"Lead-lag incidence must have shape (3, n_endogenous), got {lli.shape}"
        )
    appears = lli != 0
    backward = np.flatnonzero(appears[0])
    current = np.flatnonzero(appears[1])
    forward = np.flatnonzero(appears[2])
    static = np.flatnonzero(appears[1] & ~appears[0] & ~appears[2])
    return build_indices(n_exogenous, forward, current, backward, static)


def compact_jacobian(full_jacobian: Array | sparse.spmatrix, ids: Indices) -> Array:
    """Select the compact Jacobian columns from a full Jacobian.

    The full Jacobian has one column per endogenous variable and period,
    ``[y(t-1) | y(t) | y(t+1) | u(t)]``.  The compact Jacobian keeps only
    the columns of the variables that actually appear in each period, in
    the order of ``ids.backward``, ``ids.current`` and ``ids.forward``.
    """
    full = full_jacobian.toarray() if sparse.issparse(full_jacobian) else np.asarray(full_jacobian, dtype=float)
    n = ids.n_endogenous
    if full.shape != (n, ids.n_full_columns):
        raise ValueError(
            f"Expected a full Jacobian of shape {(n, ids.n_full_columns)}, got {full.shape}"
        )
    return np.hstack(
        [
            full[:, ids.backward],
            full[:, n + ids.current],
            full[:, 2 * n + ids.forward],
            full[:, 3 * n :],
        ]
    )
