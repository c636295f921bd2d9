"""Element context: per-element cache of primary variables and quantities.

An element context is bound to one element at a time. It stores, for every
local degree of freedom of the element's stencil and every history level, the
primary variables and the intensive quantities, and for every interior face
of the stencil the extensive quantities of the current time level.

Numerical differentiation works on top of this:

    context.save_intensive_quantities(dof_idx)
    context.update_intensive_quantities(perturbed_priVars, dof_idx, 0)
    ...evaluate residual...
    context.restore_intensive_quantities(dof_idx)

While a dof is saved, ``eval_point_intensive_quantities`` returns the
unperturbed bundle for it, so residual code does not need to know whether a
perturbation is active. The same holds for the extensive quantities after
``save_extensive_quantities``.

Index checks raise ``IndexError`` and state violations raise ``RuntimeError``;
both are programming errors and are not meant to be caught. Contexts are not
thread safe; use one instance per worker.
"""

import logging
from enum import Enum

import numpy as np

from .datastructures import DofStore
from .gradient_calculator import TwoPointGradientCalculator

log = logging.getLogger(__name__)


class EvalPoint(Enum):
    """Which extensive quantities are used as evaluation point."""

    LIVE = "live"
    SAVED = "saved"


class ElementContext:
    """Stores the quantities of all degrees of freedom of an element.

    Parameters
    ----------
    simulator : Simulator
        Provides ``model`` and ``problem``.
    """

    def __init__(self, simulator):
        self._simulator = simulator
        self.params = simulator.model.params
        self.history_size = self.params.history_size

        self._stencil = self.model.create_stencil()
        self._gradient_calculator = TwoPointGradientCalculator()

        self._element = None
        self._dof_vars = []

        self._dof_idx_saved = None
        self._intensive_quantities_saved = None
        self._primary_vars_saved = None

        self._extensive_quantities = []
        self._extensive_quantities_saved = []
        self._extensive_eval_point = EvalPoint.LIVE

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def update_all(self, element):
        """Construct all intensive and extensive quantities of an element from scratch."""
        self.update_stencil(element)
        self.update_all_intensive_quantities()
        self.update_all_extensive_quantities()

    def update_stencil(self, element):
        """Bind the context to ``element`` and resize the per-dof/per-face storage."""
        self._element = element

        # the center gradients are expensive and most models do not need them
        self._stencil.update(element)
        if self.params.require_center_gradients:
            self._stencil.update_center_gradients()

        num_dof = self._stencil.num_dof()
        if len(self._dof_vars) > num_dof:
            del self._dof_vars[num_dof:]
        while len(self._dof_vars) < num_dof:
            self._dof_vars.append(DofStore.allocate(self.history_size))

        num_faces = self._stencil.num_interior_faces()
        if len(self._extensive_quantities) > num_faces:
            del self._extensive_quantities[num_faces:]
        while len(self._extensive_quantities) < num_faces:
            self._extensive_quantities.append(self.model.create_extensive_quantities())

        self._dof_idx_saved = None
        self._intensive_quantities_saved = None
        self._primary_vars_saved = None
        self._extensive_quantities_saved = []
        self._extensive_eval_point = EvalPoint.LIVE

    def update_stencil_topology(self, element):
        """Update the topological part of the stencil, but nothing else.

        Afterwards only topology queries (``num_dof``, ``global_space_index``)
        refer to ``element``. Geometry queries raise ``RuntimeError`` and the
        stored quantities still belong to the previous element until
        ``update_stencil`` or ``update_all`` is called.
        """
        self._element = element
        self._stencil.update_topology(element)

    # ------------------------------------------------------------------
    # Intensive quantities
    # ------------------------------------------------------------------

    def update_all_intensive_quantities(self):
        """Compute the intensive quantities of all dofs for all history levels."""
        for time_idx in range(self.history_size):
            self.update_intensive_quantities_at(time_idx)
        self._dof_idx_saved = None
        self._intensive_quantities_saved = None
        self._primary_vars_saved = None

    def update_intensive_quantities_at(self, time_idx):
        """Compute the intensive quantities of all dofs for a single history level."""
        self._check_bound()
        self._check_time_idx(time_idx)
        model = self.model
        global_solution = model.solution(time_idx)

        num_dof = self.num_dof(time_idx)
        for dof_idx in range(num_dof):
            global_idx = self.global_space_index(dof_idx, time_idx)
            dof_vars = self._dof_vars[dof_idx]
            dof_vars.thermodynamic_hint[time_idx] = model.thermodynamic_hint(global_idx, time_idx)

            cached = model.cached_intensive_quantities(global_idx, time_idx)
            if cached is not None:
                dof_vars.primary_vars[time_idx] = np.array(global_solution[global_idx], dtype=np.float64)
                dof_vars.intensive_quantities[time_idx] = cached.copy()
            else:
                self._update_single_intensive_quantities(global_solution[global_idx], dof_idx, time_idx)
                model.update_cached_intensive_quantities(
                    dof_vars.intensive_quantities[time_idx], global_idx, time_idx
                )

        self.update_intensive_quantity_gradients(time_idx)

    def update_intensive_quantities(self, primary_vars, dof_idx, time_idx):
        """Recompute the intensive quantities of one dof from ``primary_vars``.

        The model-wide cache is bypassed. Since gradients of the other dofs
        may depend on the changed dof, the gradient pass is rerun for the
        whole time level.
        """
        self._check_dof_idx(dof_idx, time_idx)
        self._update_single_intensive_quantities(primary_vars, dof_idx, time_idx)
        self.update_intensive_quantity_gradients(time_idx)

    def update_intensive_quantity_gradients(self, time_idx):
        """Rerun the gradient pass for every dof of a time level."""
        self._check_time_idx(time_idx)
        for dof_idx in range(self.num_dof(time_idx)):
            self._dof_vars[dof_idx].intensive_quantities[time_idx].update_scv_gradients(
                self, dof_idx, time_idx
            )

    def _update_single_intensive_quantities(self, primary_vars, dof_idx, time_idx):
        dof_vars = self._dof_vars[dof_idx]
        dof_vars.primary_vars[time_idx] = np.array(primary_vars, dtype=np.float64)
        intensive_quantities = self.model.create_intensive_quantities()
        dof_vars.intensive_quantities[time_idx] = intensive_quantities
        intensive_quantities.update(self, dof_idx, time_idx)

    def save_intensive_quantities(self, dof_idx):
        """Remember the level 0 state of one dof as evaluation point."""
        self._check_dof_idx(dof_idx, 0)
        if self._dof_idx_saved is not None:
            raise RuntimeError(
                f"Cannot save dof {dof_idx}: dof {self._dof_idx_saved} is still saved"
            )
        dof_vars = self._dof_vars[dof_idx]
        self._dof_idx_saved = dof_idx
        self._intensive_quantities_saved = dof_vars.intensive_quantities[0].copy()
        self._primary_vars_saved = dof_vars.primary_vars[0].copy()

    def restore_intensive_quantities(self, dof_idx):
        """Put the state saved by ``save_intensive_quantities`` back in place."""
        self._check_dof_idx(dof_idx, 0)
        if self._dof_idx_saved != dof_idx:
            raise RuntimeError(
                f"Cannot restore dof {dof_idx}: saved dof is {self._dof_idx_saved}"
            )
        dof_vars = self._dof_vars[dof_idx]
        dof_vars.primary_vars[0] = self._primary_vars_saved
        dof_vars.intensive_quantities[0] = self._intensive_quantities_saved
        self._dof_idx_saved = None
        self._intensive_quantities_saved = None
        self._primary_vars_saved = None

    @property
    def saved_dof_idx(self):
        return self._dof_idx_saved

    # ------------------------------------------------------------------
    # Extensive quantities
    # ------------------------------------------------------------------

    def update_all_extensive_quantities(self):
        """Compute the extensive quantities of all interior faces."""
        self.update_extensive_quantities(0)

    def update_extensive_quantities(self, time_idx):
        """Compute the extensive quantities of all interior faces for one level.

        Only one set of extensive quantities is stored; the evaluation point
        selected by ``save/restore_extensive_quantities`` is left alone.
        """
        self._check_bound()
        self._check_time_idx(time_idx)
        self._gradient_calculator.prepare(self, time_idx)
        for face_idx in range(self.num_interior_faces(time_idx)):
            self._extensive_quantities[face_idx].update(self, face_idx, time_idx)

    def save_extensive_quantities(self):
        """Copy the current extensive quantities and use them as evaluation point."""
        self._extensive_quantities_saved = [eq.copy() for eq in self._extensive_quantities]
        self._extensive_eval_point = EvalPoint.SAVED

    def restore_extensive_quantities(self):
        """Use the live extensive quantities as evaluation point again. No copy is made."""
        self._extensive_eval_point = EvalPoint.LIVE

    @property
    def extensive_eval_point(self) -> EvalPoint:
        return self._extensive_eval_point

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def intensive_quantities(self, dof_idx, time_idx):
        """Intensive quantities of a dof; ``time_idx`` 0 is the current solution,
        1 the previous time step, 2 the one before, etc."""
        self._check_dof_idx(dof_idx, time_idx)
        return self._dof_vars[dof_idx].intensive_quantities[time_idx]

    def eval_point_intensive_quantities(self, dof_idx, time_idx):
        """Intensive quantities at the evaluation point.

        For the saved dof at level 0 this is the unperturbed bundle, for
        everything else the live one.
        """
        if time_idx != 0:
            return self.intensive_quantities(dof_idx, time_idx)
        self._check_dof_idx(dof_idx, 0)
        if self._dof_idx_saved == dof_idx:
            return self._intensive_quantities_saved
        return self._dof_vars[dof_idx].intensive_quantities[0]

    def primary_vars(self, dof_idx, time_idx):
        self._check_dof_idx(dof_idx, time_idx)
        return self._dof_vars[dof_idx].primary_vars[time_idx]

    def thermodynamic_hint(self, dof_idx, time_idx):
        self._check_dof_idx(dof_idx, time_idx)
        return self._dof_vars[dof_idx].thermodynamic_hint[time_idx]

    def extensive_quantities(self, face_idx, time_idx):
        self._check_face_idx(face_idx, time_idx)
        return self._extensive_quantities[face_idx]

    def eval_point_extensive_quantities(self, face_idx, time_idx):
        self._check_face_idx(face_idx, time_idx)
        if time_idx != 0 or self._extensive_eval_point is EvalPoint.LIVE:
            return self._extensive_quantities[face_idx]
        return self._extensive_quantities_saved[face_idx]

    def global_space_index(self, dof_idx, time_idx) -> int:
        self._check_bound()
        self._check_time_idx(time_idx)
        if not 0 <= dof_idx < self._stencil.num_dof():
            raise IndexError(f"dof_idx {dof_idx} out of range [0, {self._stencil.num_dof()})")
        return self._stencil.global_space_index(dof_idx)

    def pos(self, dof_idx, time_idx):
        """Position of a local dof in global coordinates."""
        self._check_dof_idx(dof_idx, time_idx)
        return self._stencil.sub_control_volume(dof_idx).global_pos

    def dof_total_volume(self, dof_idx, time_idx) -> float:
        return self.model.dof_total_volume(self.global_space_index(dof_idx, time_idx))

    def on_boundary(self) -> bool:
        """Whether the current element has faces on the domain boundary."""
        self._check_bound()
        return self._stencil.num_boundary_faces() > 0

    def num_dof(self, time_idx) -> int:
        return self.stencil(time_idx).num_dof()

    def num_primary_dof(self, time_idx) -> int:
        return self.stencil(time_idx).num_primary_dof()

    def num_interior_faces(self, time_idx) -> int:
        return self.stencil(time_idx).num_interior_faces()

    def num_boundary_faces(self, time_idx) -> int:
        return self.stencil(time_idx).num_boundary_faces()

    def stencil(self, time_idx):
        self._check_time_idx(time_idx)
        return self._stencil

    @property
    def element(self):
        return self._element

    @property
    def simulator(self):
        return self._simulator

    @property
    def model(self):
        return self._simulator.model

    @property
    def problem(self):
        return self._simulator.problem

    @property
    def gradient_calculator(self):
        return self._gradient_calculator

    # ------------------------------------------------------------------
    # Precondition checks
    # ------------------------------------------------------------------

    def _check_bound(self):
        if self._element is None:
            raise RuntimeError("Element context is not bound to an element")

    def _check_time_idx(self, time_idx):
        if not 0 <= time_idx < self.history_size:
            raise IndexError(f"time_idx {time_idx} out of range [0, {self.history_size})")

    def _check_dof_idx(self, dof_idx, time_idx):
        self._check_bound()
        self._check_time_idx(time_idx)
        if not 0 <= dof_idx < len(self._dof_vars):
            raise IndexError(f"dof_idx {dof_idx} out of range [0, {len(self._dof_vars)})")

    def _check_face_idx(self, face_idx, time_idx):
        self._check_bound()
        self._check_time_idx(time_idx)
        if not 0 <= face_idx < len(self._extensive_quantities):
            raise IndexError(
                f"face_idx {face_idx} out of range [0, {len(self._extensive_quantities)})"
            )
