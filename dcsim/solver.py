from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
import warnings
import numpy as np

from .errors import IllConditioned, IllConditionedWarning, SingularSystem

Array = np.ndarray

logger = logging.getLogger(__name__)

_POLICIES = ("raise", "warn")


@dataclass
class SolverConfig:
    """
    Configuration parameters for the dense linear solver.

    Attributes:
        cond_limit: Largest condition number accepted before the system is
            reported as ill-conditioned (default: 1e12).
        ill_conditioned: What to do above cond_limit: "raise" an
            IllConditioned error or "warn" and return the solution anyway
            (default: "raise").
        rank_tol: Singular value threshold used for the rank test. None uses
            numpy's default, S.max() * n * eps.
    """
    cond_limit: float = 1e12
    ill_conditioned: str = "raise"
    rank_tol: float | None = None

    def __post_init__(self) -> None:
        if self.ill_conditioned not in _POLICIES:
            raise ValueError(
                f"ill_conditioned must be one of {_POLICIES}, got {self.ill_conditioned!r}."
            )
        if not self.cond_limit > 0:
            raise ValueError("cond_limit must be positive.")


class LinearSolver(ABC):
    """
    Solves A x = b for a square A, reporting singular systems explicitly.
    """

    @abstractmethod
    def solve(self, A: Array, b: Array) -> Array:
        """
        Return x such that A x = b.

        Raises:
            SingularSystem: A has no unique solution.
            IllConditioned: The result would be numerically unreliable.
        """


class DenseSolver(LinearSolver):
    """
    numpy-backed LAPACK solve guarded by a rank test and a condition check.
    """

    def __init__(self, config: SolverConfig | None = None) -> None:
        self.config = config or SolverConfig()

    def solve(self, A: Array, b: Array) -> Array:
        A = np.asarray(A, dtype=float)
        b = np.asarray(b, dtype=float)
        if A.ndim != 2 or A.shape[0] != A.shape[1]:
            raise ValueError(f"Coefficient matrix must be square, got shape {A.shape}.")
        n = A.shape[0]
        if b.shape != (n,):
            raise ValueError(f"Right-hand side must have shape ({n},), got {b.shape}.")
        if n == 0:
            return np.zeros(0)

        rank = int(np.linalg.matrix_rank(A, tol=self.config.rank_tol))
        if rank < n:
            raise SingularSystem(
                f"System matrix is singular (rank {rank} < {n}).", rank=rank, size=n
            )

        cond = float(np.linalg.cond(A))
        if not np.isfinite(cond) or cond > self.config.cond_limit:
            msg = f"System matrix is ill-conditioned (cond={cond:.2e}, limit {self.config.cond_limit:.0e})."
            if self.config.ill_conditioned == "raise":
                raise IllConditioned(msg, cond=cond)
            logger.warning(msg)
            warnings.warn(msg, IllConditionedWarning, stacklevel=2)

        try:
            x = np.linalg.solve(A, b)
        except np.linalg.LinAlgError as exc:
            raise SingularSystem(f"System matrix is singular: {exc}", rank=rank, size=n) from exc
        logger.debug("Solved %dx%d system (cond=%.2e).", n, n, cond)
        return x
