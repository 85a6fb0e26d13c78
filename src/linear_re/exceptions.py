"""Exception hierarchy for linear_re.

Every failure of the index model or of a solve is reported as a distinct
exception type so callers can tell an ill-posed variable classification
apart from a Blanchard-Kahn violation, a singular linear system or a
cyclic-reduction run that did not converge.  All of them derive from
:class:`LinearREError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .qz import BKDiagnostics


class LinearREError(Exception):
    """Base exception for all linear_re errors."""


class IllPosedClassificationError(LinearREError, ValueError):
    """Raised when the forward/current/backward/static index sets are inconsistent."""


class BlanchardKahnError(LinearREError, RuntimeError):
    """Raised when the model has no unique stable solution.

    The number of stable generalised eigenvalues of the reduced pencil must
    equal the number of backward-looking variables.  Too many stable roots
    means indeterminacy, too few means that no stable solution exists.

    Attributes
    ----------
    diagnostics : BKDiagnostics
        Full diagnostic information including eigenvalues.
    reason : str
        One of ``"indeterminacy"``, ``"no_stable_equilibrium"``, or
        ``"rank_failure"``.
    stable_count : int
        Number of stable eigenvalues found.
    expected_stable : int
        Number of stable eigenvalues required (equal to ``n_backward``).
    eigenvalues : Array
        The generalised eigenvalues of the pencil.
    """

    def __init__(self, diagnostics: BKDiagnostics):
        self.diagnostics = diagnostics
        self.reason = diagnostics.reason
        self.stable_count = diagnostics.stable_count
        self.expected_stable = diagnostics.expected_stable
        self.eigenvalues = diagnostics.eigenvalues
        super().__init__(
            "Blanchard-Kahn condition failed: "
            f"reason={self.reason}, stable={self.stable_count}, expected={self.expected_stable}."
        )


class SingularSystemError(LinearREError, np.linalg.LinAlgError):
    """Raised when a linear system of the solution is numerically singular."""

    def __init__(self, matrix_name: str, pivot: float | None = None):
        self.matrix_name = matrix_name
        self.pivot = pivot
        msg = f"Matrix '{matrix_name}' is singular or ill-conditioned"
        if pivot is not None:
            msg += f" (smallest pivot: {pivot:.2e})"
        super().__init__(msg)


class CyclicReductionError(LinearREError, RuntimeError):
    """Raised when cyclic reduction fails to reach the requested tolerance."""

    def __init__(self, iterations: int, crit: float):
        self.iterations = iterations
        self.crit = crit
        super().__init__(
            f"Cyclic reduction did not converge after {iterations} iterations "
            f"(convergence criterion {crit:.2e})."
        )
