"""Tests for the overlapping block vector on in-process ranks."""

import io

import numpy as np
import pytest

from linear import Overlap, OverlappingBlockVector

SHARED = 5


def three_rank_overlap(rank, comm, border=False):
    """Six domestic indices per rank, index 5 is owned by rank 0.

    Rank 0 sends index 5 to ranks 1 and 2, which send nothing back and do
    not talk to each other. With ``border`` index 5 borders rank 0 on rank 1.
    """
    master_ranks = [rank] * 6
    master_ranks[SHARED] = 0
    if rank == 0:
        return Overlap(
            rank=0,
            domestic_to_global=range(6),
            num_native=6,
            master_ranks=master_ranks,
            foreign_overlap={1: [SHARED], 2: [SHARED]},
            comm=comm,
        )
    return Overlap(
        rank=rank,
        domestic_to_global=range(6),
        num_native=5,
        master_ranks=master_ranks,
        foreign_overlap={0: []},
        border={0: [SHARED]} if border and rank == 1 else None,
        comm=comm,
    )


INITIAL = {0: 10.0, 1: 1.0, 2: 3.0}


def run_policy(run_on_ranks, policy, border=False):
    def fn(comm):
        rank = comm.Get_rank()
        vector = OverlappingBlockVector(three_rank_overlap(rank, comm, border))
        vector[SHARED] = INITIAL[rank]
        getattr(vector, policy)()
        return float(vector[SHARED][0])

    return run_on_ranks(3, fn)


class TestSyncPolicies:
    """Rank 0 holds 10, rank 1 starts at 1 and rank 2 at 3."""

    def test_sync_takes_master_value(self, run_on_ranks):
        assert run_policy(run_on_ranks, "sync") == [10.0, 10.0, 10.0]

    def test_sync_add_adds_received_values(self, run_on_ranks):
        assert run_policy(run_on_ranks, "sync_add") == [10.0, 11.0, 13.0]

    def test_sync_add_border_adds_on_border(self, run_on_ranks):
        assert run_policy(run_on_ranks, "sync_add_border", border=True) == [10.0, 11.0, 10.0]

    def test_sync_add_border_overwrites_off_border(self, run_on_ranks):
        assert run_policy(run_on_ranks, "sync_add_border") == [10.0, 10.0, 10.0]

    def test_assign_zero_fills_copies(self, run_on_ranks):
        def fn(comm):
            rank = comm.Get_rank()
            overlap = three_rank_overlap(rank, comm)
            vector = OverlappingBlockVector(overlap)
            vector[:] = -1.0
            native = np.full(overlap.num_native(), 10.0 * (rank + 1))
            vector.assign(native)
            return vector.values[:, 0].copy()

        results = run_on_ranks(3, fn)
        assert np.array_equal(results[1], [20.0] * 5 + [10.0])
        assert np.array_equal(results[2], [30.0] * 5 + [10.0])

    def test_assign_without_peers_zero_fills_copies(self, run_on_ranks):
        def fn(comm):
            overlap = Overlap(0, range(3), 2, [0, 0, 1], {}, comm=comm)
            vector = OverlappingBlockVector(overlap)
            vector[:] = -1.0
            vector.assign([1.0, 2.0])
            return vector.values[:, 0].copy()

        (values,) = run_on_ranks(1, fn)
        assert values.tolist() == [1.0, 2.0, 0.0]


class TestIndexLists:
    def test_index_lists_are_stable(self, run_on_ranks):
        def fn(comm):
            rank = comm.Get_rank()
            vector = OverlappingBlockVector(three_rank_overlap(rank, comm))
            peers = vector.overlap.peer_set()
            before = {p: (vector.send_indices(p).copy(), vector.receive_indices(p).copy()) for p in peers}
            for step in range(3):
                vector[:] = step + rank
                vector.sync()
                vector.sync_add()
                vector.sync_add_border()
            for p in peers:
                assert np.array_equal(vector.send_indices(p), before[p][0])
                assert np.array_equal(vector.receive_indices(p), before[p][1])
                assert not vector.send_indices(p).flags.writeable
                assert not vector.receive_indices(p).flags.writeable
            return {p: before[p][1].tolist() for p in peers}

        results = run_on_ranks(3, fn)
        assert results[0] == {1: [], 2: []}
        assert results[1] == {0: [SHARED]}
        assert results[2] == {0: [SHARED]}


class TestSinglePartition:
    @pytest.fixture
    def overlap(self):
        return lambda comm: Overlap(
            rank=0,
            domestic_to_global=range(4),
            num_native=4,
            master_ranks=[0] * 4,
            foreign_overlap={},
            comm=comm,
        )

    def test_round_trip(self, run_on_ranks, overlap):
        native = np.arange(8.0).reshape(4, 2)

        def fn(comm):
            vector = OverlappingBlockVector(overlap(comm), block_size=2)
            vector.assign(native)
            return vector.assign_to()

        (result,) = run_on_ranks(1, fn)
        assert np.array_equal(result, native)

    def test_assign_to_existing_array(self, run_on_ranks, overlap):
        def fn(comm):
            vector = OverlappingBlockVector(overlap(comm))
            vector.assign_add_border([1.0, 2.0, 3.0, 4.0])
            out = np.empty((4, 1))
            returned = vector.assign_to(out)
            return returned is out, out[:, 0].tolist()

        ((same, values),) = run_on_ranks(1, fn)
        assert same
        assert values == [1.0, 2.0, 3.0, 4.0]

    def test_copy_is_independent(self, run_on_ranks, overlap):
        def fn(comm):
            vector = OverlappingBlockVector(overlap(comm))
            vector[:] = 1.0
            other = vector.copy()
            other[0] = 5.0
            other.sync()
            return vector[0][0], other[0][0]

        ((first, copied),) = run_on_ranks(1, fn)
        assert (first, copied) == (1.0, 5.0)

    def test_print_marks_copies(self, run_on_ranks):
        def fn(comm):
            overlap = Overlap(0, range(3), 2, [0, 0, 1], {}, comm=comm)
            vector = OverlappingBlockVector(overlap)
            out = io.StringIO()
            vector.print(out)
            return out.getvalue()

        (text,) = run_on_ranks(1, fn)
        lines = text.splitlines()
        assert lines[0].startswith("row 0 :")
        assert lines[2].startswith("row 2*:")
