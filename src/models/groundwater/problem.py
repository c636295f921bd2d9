"""Single-phase groundwater flow in a confined aquifer.

Primary variable is the water pressure [Pa]. Boundary conditions and wells
are given in terms of hydraulic head [m] and pumping rates [m^3/s], the way
they are usually reported in the field:

- ``sources``: list of ``(x, y, q)``, a positive ``q`` injects water
- ``boundary_conditions``: per side (``top``, ``bottom``, ``left``,
  ``right``) a list of segments ``(from, to, neumann, value)``. ``value`` is
  a head for Dirichlet segments and an inflow velocity [m/s] for Neumann
  segments. Boundary parts not covered by a segment are no-flow.
- ``lenses``: list of ``(x_min, x_max, y_min, y_max, conductivity)`` that
  override the background hydraulic conductivity.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from disc.problem import FvBaseProblem
from meshing import create_structured_mesh_2d, TOP, BOTTOM, LEFT, RIGHT
from models.fluid_state import FluidState, H2ON2FluidSystem
from models.rate_vector import BlackOilRateVector, EquationIndices

from .local_residual import GroundwaterLocalResidual
from .quantities import GroundwaterExtensiveQuantities, GroundwaterIntensiveQuantities

log = logging.getLogger(__name__)

GRAVITY = 9.81

SIDE_NAMES = {"top": TOP, "bottom": BOTTOM, "left": LEFT, "right": RIGHT}


@dataclass
class PointSource:
    x: float
    y: float
    q: float  # m^3/s
    cell: int = -1


@dataclass
class BoundarySegment:
    start: float
    end: float
    neumann: bool
    value: float

    def contains(self, coordinate) -> bool:
        return self.start < coordinate < self.end


@dataclass
class Lens:
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    conductivity: float  # m/s

    def contains(self, pos) -> bool:
        return self.x_min <= pos[0] <= self.x_max and self.y_min <= pos[1] <= self.y_max


class GroundwaterProblem(FvBaseProblem):
    """Steady or transient groundwater flow on a structured 2-D mesh.

    Parameters
    ----------
    nx, ny : int
        Number of cells.
    Lx, Ly : float
        Domain size [m].
    depth : float
        Aquifer thickness [m], point source rates are distributed over it.
    conductivity : float
        Background hydraulic conductivity [m/s].
    specific_storage : float
        Specific storage [1/m]. Zero gives a steady state problem.
    initial_head : float
        Initial hydraulic head [m] everywhere.
    """

    intensive_quantities_class = GroundwaterIntensiveQuantities
    extensive_quantities_class = GroundwaterExtensiveQuantities
    num_eq = 1
    name = "groundwater"

    fluid_system = H2ON2FluidSystem
    phase_idx = H2ON2FluidSystem.liquid_phase_idx
    equation_indices = EquationIndices(num_components=1)

    def __init__(
        self,
        nx=20,
        ny=20,
        Lx=1.0,
        Ly=1.0,
        depth=1.0,
        conductivity=1e-5,
        specific_storage=0.0,
        initial_head=0.0,
        density=1000.0,
        viscosity=1e-3,
        temperature=283.15,
        lenses=(),
        sources=(),
        boundary_conditions=None,
    ):
        super().__init__(create_structured_mesh_2d(nx, ny, Lx, Ly))
        self.nx, self.ny = nx, ny
        self.Lx, self.Ly = Lx, Ly
        self.depth = depth
        self.conductivity = conductivity
        self.specific_storage = specific_storage
        self.initial_head = initial_head
        self.density = density
        self.viscosity = viscosity
        self.temperature = temperature

        self.lenses = [Lens(*map(float, lens)) for lens in lenses]
        self.sources = [self._locate_source(*map(float, s)) for s in sources]
        self.boundary_segments = {side: [] for side in SIDE_NAMES.values()}
        for side_name, segments in (boundary_conditions or {}).items():
            if side_name not in SIDE_NAMES:
                raise ValueError(f"Unknown boundary side '{side_name}', expected one of {list(SIDE_NAMES)}")
            for start, end, neumann, value in segments:
                self.boundary_segments[SIDE_NAMES[side_name]].append(
                    BoundarySegment(float(start), float(end), bool(neumann), float(value))
                )

        self._local_residual = GroundwaterLocalResidual()
        log.info(
            f"Groundwater problem on {nx}x{ny} cells: {len(self.sources)} sources, "
            f"{len(self.lenses)} lenses"
        )

    def _locate_source(self, x, y, q):
        i = min(max(int(np.floor(x * self.nx / self.Lx)), 0), self.nx - 1)
        j = min(max(int(np.floor(y * self.ny / self.Ly)), 0), self.ny - 1)
        return PointSource(x, y, q, cell=i * self.ny + j)

    # --- FvBaseProblem ---

    def initial_solution(self):
        p0 = self.head_to_pressure(self.initial_head)
        return np.full((self.mesh.n_cells, self.num_eq), p0)

    def local_residual(self):
        return self._local_residual

    # --- material and fluid ---

    def hydraulic_conductivity(self, pos) -> float:
        # later lenses win where they overlap
        conductivity = self.conductivity
        for lens in self.lenses:
            if lens.contains(pos):
                conductivity = lens.conductivity
        return conductivity

    def intrinsic_permeability(self, pos) -> float:
        """Permeability [m^2] corresponding to the hydraulic conductivity at ``pos``."""
        return self.hydraulic_conductivity(pos) * self.viscosity / (self.density * GRAVITY)

    def fluid_state(self, pressure) -> FluidState:
        return FluidState.single_phase(
            pressure,
            self.density,
            self.viscosity,
            self.fluid_system.molar_mass(self.fluid_system.H2O_idx),
            temperature=self.temperature,
        )

    def head_to_pressure(self, head):
        return np.asarray(head) * self.density * GRAVITY

    def pressure_to_head(self, pressure):
        return np.asarray(pressure) / (self.density * GRAVITY)

    # --- boundary conditions ---

    def boundary_segment(self, face) -> Optional[BoundarySegment]:
        """Return the segment covering a boundary face, or None (no-flow)."""
        side = face.boundary_side
        coordinate = face.center[1] if side in (LEFT, RIGHT) else face.center[0]
        for segment in self.boundary_segments[side]:
            if segment.contains(coordinate):
                return segment
        return None

    def dirichlet_pressure(self, segment) -> float:
        return segment.value * self.density * GRAVITY

    def neumann_flux(self, segment) -> float:
        """Outward mass flux [kg/(m^2 s)] of a Neumann segment."""
        return segment.value * self.density * (-1)

    # --- sources ---

    def source(self, context, dof_idx, time_idx):
        """Mass source rate per volume [kg/(m^3 s)] of a dof."""
        rate = BlackOilRateVector(self.fluid_system, self.equation_indices)
        global_idx = context.global_space_index(dof_idx, time_idx)
        q = sum(s.q for s in self.sources if s.cell == global_idx)
        if q != 0.0:
            volume = context.dof_total_volume(dof_idx, time_idx)
            iq = context.intensive_quantities(dof_idx, time_idx)
            rate.set_volumetric_rate(iq.fluid_state, self.phase_idx, q / volume / self.depth)
        return rate
