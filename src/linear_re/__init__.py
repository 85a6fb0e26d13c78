"""linear_re — First-order solution of linear rational-expectations models.

This package computes the decision rule of a linear difference equation
with backward-looking, current and forward-looking terms under the
rational-expectations closure.  Two interchangeable solvers share the same
index model and results container:

* a dense solver that eliminates static variables by QR decomposition and
  solves the reduced matrix pencil with the ordered generalized Schur (QZ)
  decomposition;
* a sparse solver that solves the quadratic matrix equation
  ``a X^2 + b X + c = 0`` by cyclic reduction.

Key references:
    Blanchard and Kahn (1980), Econometrica 48(5).
    Klein (2000), JEDC 24(10).
    Villemot (2011), Dynare Working Papers 2.
    Bini, Latouche and Meini (2005), Numerical Methods for Structured
    Markov Chains.
"""

from .cyclic_reduction import CyclicReductionSolver
from .exceptions import (
    BlanchardKahnError,
    CyclicReductionError,
    IllPosedClassificationError,
    LinearREError,
    SingularSystemError,
)
from .indices import (
    ColumnMap,
    Indices,
    build_indices,
    build_indices_from_incidence,
    compact_jacobian,
)
from .options import CROptions, GSOptions, LinearRationalExpectationsOptions
from .qz import BKDiagnostics, GeneralizedSchurSolver
from .results import LinearRationalExpectationsResults, fill_results
from .serialization import load_results, save_results
from .solver import LinearRationalExpectationsWorkspace, make_workspace, solve
from .solver_dense import LinearGSWorkspace, solve_dense
from .solver_sparse import LinearCRWorkspace, solve_sparse
from .variance import (
    autocorrelation,
    autocovariance,
    compute_variance,
    correlation,
    is_stationary,
    variance_decomposition,
)
from .version import __version__

__all__ = [
    "__version__",
    "BKDiagnostics",
    "BlanchardKahnError",
    "CROptions",
    "ColumnMap",
    "CyclicReductionError",
    "CyclicReductionSolver",
    "GSOptions",
    "GeneralizedSchurSolver",
    "IllPosedClassificationError",
    "Indices",
    "LinearCRWorkspace",
    "LinearGSWorkspace",
    "LinearREError",
    "LinearRationalExpectationsOptions",
    "LinearRationalExpectationsResults",
    "LinearRationalExpectationsWorkspace",
    "SingularSystemError",
    "build_indices",
    "build_indices_from_incidence",
    "compact_jacobian",
    "fill_results",
    "make_workspace",
    "solve",
    "solve_dense",
    "solve_sparse",
    "compute_variance",
    "autocovariance",
    "autocorrelation",
    "correlation",
    "variance_decomposition",
    "is_stationary",
    "save_results",
    "load_results",
]
