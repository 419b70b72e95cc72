"""
Computation failure taxonomy.

Validation problems (bad user input) are reported as field errors by the
reactive core and never raised. The exceptions here are the other family:
inputs that passed validation but have no meaningful answer in an engine's
domain. The reactive core treats any ComputeError as "unable to compute"
(result cleared, validity untouched).
"""


class ComputeError(Exception):
    """Base class for engine-domain computation failures."""

    kind: str = "compute_error"


class YTMNonConvergence(ComputeError):
    """
    Newton-Raphson did not reach the price tolerance within the iteration cap.

    Distinct from an extreme but valid yield: a 0% or 50% YTM is returned
    normally, this is raised only when there is no answer.
    """

    kind = "ytm_non_convergence"

    def __init__(self, message: str, iterations: int, last_yield_pct: float, price_error: float):
        super().__init__(message)
        self.iterations = iterations
        self.last_yield_pct = last_yield_pct
        self.price_error = price_error


class PortfolioDomainError(ComputeError):
    """Holdings or correlations that admit no risk aggregation (e.g. zero total value)."""

    kind = "portfolio_domain_error"
