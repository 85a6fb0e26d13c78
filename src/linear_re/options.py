"""Solver options for the generalized Schur and cyclic reduction paths."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CROptions:
    """Options of the cyclic reduction solver used with sparse Jacobians.

    Attributes
    ----------
    max_iterations : int
        Maximum number of cyclic reduction steps before giving up.
    tolerance : float
        Convergence threshold on the 1-norm of the reduced coefficient
        matrices.
    """

    max_iterations: int = 100
    tolerance: float = 1e-8

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if not self.tolerance > 0.0:
            raise ValueError(f"tolerance must be > 0, got {self.tolerance}")


@dataclass(frozen=True)
class GSOptions:
    """Options of the generalized Schur solver used with dense Jacobians.

    Attributes
    ----------
    criterium : float
        Generalised eigenvalues with modulus below ``criterium`` are
        classified as stable.  The default sits just above one so that
        near unit roots are considered stable.
    """

    criterium: float = 1.0 + 1e-6

    def __post_init__(self) -> None:
        if not self.criterium > 0.0:
            raise ValueError(f"criterium must be > 0, got {self.criterium}")


@dataclass(frozen=True)
class LinearRationalExpectationsOptions:
    """Holds both :class:`CROptions` and :class:`GSOptions`."""

    cyclic_reduction: CROptions = field(default_factory=CROptions)
    generalized_schur: GSOptions = field(default_factory=GSOptions)
