"""Cell-centered finite volume discretization core.

Hierarchy:
----------
Simulator (time loop, Newton)
├── FvBaseModel (solution history + IntensiveQuantityCache)
└── Linearizer (global assembly)
    └── LocalLinearizer (numerical Jacobian)
        └── ElementContext (per-element quantities, evaluation point)
            ├── CellCenteredStencil
            └── TwoPointGradientCalculator
"""

from .cache import IntensiveQuantityCache
from .datastructures import DiscretizationParameters, Metrics, TimeSeries
from .element_context import ElementContext, EvalPoint
from .gradient_calculator import TwoPointGradientCalculator
from .linearizer import Linearizer
from .local_linearizer import LocalLinearizer
from .local_residual import FvBaseLocalResidual
from .model import FvBaseModel
from .problem import FvBaseProblem
from .quantities import IntensiveQuantities, ExtensiveQuantities
from .simulator import Simulator, NewtonConvergenceError
from .stencil import CellCenteredStencil

__all__ = [
    "CellCenteredStencil",
    "DiscretizationParameters",
    "ElementContext",
    "EvalPoint",
    "ExtensiveQuantities",
    "FvBaseLocalResidual",
    "FvBaseModel",
    "FvBaseProblem",
    "IntensiveQuantities",
    "IntensiveQuantityCache",
    "Linearizer",
    "LocalLinearizer",
    "Metrics",
    "NewtonConvergenceError",
    "Simulator",
    "TimeSeries",
    "TwoPointGradientCalculator",
]
