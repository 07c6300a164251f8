"""Exceptions raised while building or solving a circuit."""


class CircuitError(Exception):
    """Base class for every error raised by dcsim."""


class InvalidTopology(CircuitError, ValueError):
    """Raised when the circuit description itself is invalid."""


class SingularSystem(CircuitError, RuntimeError):
    """Raised when the MNA matrix has no unique solution."""

    def __init__(self, message: str, rank: int | None = None, size: int | None = None) -> None:
        super().__init__(message)
        self.rank = rank
        self.size = size


class IllConditioned(CircuitError, RuntimeError):
    """Raised when the MNA matrix is too ill-conditioned to trust the result."""

    def __init__(self, message: str, cond: float) -> None:
        super().__init__(message)
        self.cond = cond


class CircuitBusy(CircuitError, RuntimeError):
    """Raised when a circuit is mutated or solved while a solve is in flight."""


class IllConditionedWarning(RuntimeWarning):
    pass
