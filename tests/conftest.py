"""Pytest configuration and fixtures for the finite volume core tests."""

import queue
import sys
import threading
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ========================================================
# Problems and simulators
# ========================================================


@pytest.fixture
def groundwater_params():
    """Parameters of a small steady groundwater problem with a lens and a well."""
    return {
        "nx": 4,
        "ny": 3,
        "Lx": 4.0,
        "Ly": 3.0,
        "conductivity": 1e-4,
        "initial_head": 5.0,
        "lenses": [[1.0, 2.0, 0.0, 3.0, 1e-5]],
        "sources": [[2.5, 1.5, 1e-4]],
        "boundary_conditions": {
            "left": [[0.0, 3.0, 0, 6.0]],
            "right": [[0.0, 3.0, 0, 4.0]],
        },
    }


@pytest.fixture
def groundwater_problem(groundwater_params):
    from models.groundwater import GroundwaterProblem

    return GroundwaterProblem(**groundwater_params)


@pytest.fixture
def make_simulator(groundwater_problem):
    """Factory for simulators of the small groundwater problem.

    The initial head is perturbed per cell so that neighboring dofs differ.
    """
    from disc import Simulator

    def make(**kwargs):
        kwargs.setdefault("linear_solver", "direct")
        simulator = Simulator(groundwater_problem, **kwargs)
        n = simulator.model.num_dof
        pressure = simulator.model.solution(0)[:, 0] + 100.0 * np.arange(n)
        for time_idx in range(simulator.model.history_size):
            simulator.model.solution(time_idx)[:, 0] = pressure - 10.0 * time_idx
        simulator.model.intensive_quantity_cache.clear()
        return simulator

    return make


# ========================================================
# In-process communicator
# ========================================================


class LoopbackRequest:
    def Wait(self):
        pass


class LoopbackComm:
    """Communicator for ranks running as threads of one process.

    Implements the subset of the mpi4py buffer interface used by
    ``MpiBuffer``. Messages between two ranks with the same tag arrive in
    the order they were sent.
    """

    def __init__(self, rank, size, mailboxes, lock):
        self._rank = rank
        self._size = size
        self._mailboxes = mailboxes
        self._lock = lock

    def _mailbox(self, source, dest, tag):
        with self._lock:
            return self._mailboxes.setdefault((source, dest, tag), queue.Queue())

    def Get_rank(self):
        return self._rank

    def Get_size(self):
        return self._size

    def Isend(self, buf, dest, tag=0):
        self._mailbox(self._rank, dest, tag).put(np.array(buf, copy=True))
        return LoopbackRequest()

    def Recv(self, buf, source, tag=0):
        data = self._mailbox(source, self._rank, tag).get(timeout=10)
        buf[...] = data.reshape(buf.shape)


@pytest.fixture
def run_on_ranks():
    """Run ``fn(comm)`` on ``num_ranks`` threads and return the results by rank."""

    def run(num_ranks, fn):
        mailboxes = {}
        lock = threading.Lock()
        results = [None] * num_ranks
        errors = []

        def target(rank):
            try:
                results[rank] = fn(LoopbackComm(rank, num_ranks, mailboxes, lock))
            except Exception as exc:  # re-raised in the test thread
                errors.append(exc)

        threads = [threading.Thread(target=target, args=(r,)) for r in range(num_ranks)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        if errors:
            raise errors[0]
        return results

    return run
