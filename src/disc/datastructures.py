"""Data structures for discretization configuration and run results.

Structure:
- DiscretizationParameters: Input configuration (logged to MLflow at start)
- Metrics: Output results (logged to MLflow at end)
- TimeSeries: Per time step history
- DofStore: Per-dof storage of the element context
"""

from dataclasses import dataclass, asdict, field
from typing import List

import pandas as pd


NUMERIC_DIFFERENCE_METHODS = ("forward", "backward", "central")


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class DiscretizationParameters:
    """Settings shared by the model, the element contexts and the linearizer."""

    history_size: int = 2  # number of time levels kept by the time discretization
    require_center_gradients: bool = False
    enable_intensive_quantity_cache: bool = True
    enable_thermodynamic_hints: bool = False
    numeric_difference_method: str = "forward"
    base_epsilon: float = 1e-8
    newton_tolerance: float = 1e-8
    newton_max_iterations: int = 10
    max_time_step_divisions: int = 4
    linear_solver: str = "bicgstab"  # "bicgstab" (AMG preconditioned) or "direct"
    linear_solver_tol: float = 1e-10
    time_step_size: float = 1.0
    end_time: float = 1.0

    def __post_init__(self):
        if self.history_size < 1:
            raise ValueError(f"history_size must be at least 1, got {self.history_size}")
        if self.numeric_difference_method not in NUMERIC_DIFFERENCE_METHODS:
            raise ValueError(
                f"Unknown numeric_difference_method '{self.numeric_difference_method}', "
                f"expected one of {NUMERIC_DIFFERENCE_METHODS}"
            )

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        return asdict(self)


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Simulation metrics - output results computed during/after a run."""

    time_steps: int = 0
    newton_iterations: int = 0
    time_step_failures: int = 0
    converged: bool = False
    final_residual: float = float("inf")
    wall_time_seconds: float = 0.0
    cache_hits: int = 0
    cache_misses: int = 0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        return {k: float(v) for k, v in asdict(self).items()}


@dataclass
class TimeSeries:
    """History with one value per completed time step."""

    time: List[float] = field(default_factory=list)
    time_step_size: List[float] = field(default_factory=list)
    newton_iterations: List[int] = field(default_factory=list)
    residual: List[float] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per time step."""
        return pd.DataFrame(asdict(self))


# ========================================================
# Element context storage
# ========================================================


@dataclass
class DofStore:
    """Per-dof state of an element context, one slot per history level."""

    intensive_quantities: list
    primary_vars: list
    thermodynamic_hint: list

    @classmethod
    def allocate(cls, history_size: int):
        return cls(
            intensive_quantities=[None] * history_size,
            primary_vars=[None] * history_size,
            thermodynamic_hint=[None] * history_size,
        )
