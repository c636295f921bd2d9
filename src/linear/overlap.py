"""Index overlap of a partitioned mesh.

Every rank works on its *domestic* indices: the *native* ones it owns,
numbered first, followed by copies of indices owned by other ranks. Each
domestic index also has a *global* index which is the same on all ranks.
"""

import logging

import numpy as np

log = logging.getLogger(__name__)


class Overlap:
    """Maps between domestic, native and global indices of one rank.

    Parameters
    ----------
    rank : int
        Rank of this process.
    domestic_to_global : array_like
        Global index of every domestic index.
    num_native : int
        Number of native indices; they are domestic indices ``0..num_native-1``.
    master_ranks : array_like
        Owning rank of every domestic index.
    foreign_overlap : dict
        ``{peer_rank: [domestic indices sent to peer_rank]}``. Indices are
        received in the order the peer sends them.
    border : dict, optional
        ``{peer_rank: domestic indices bordering peer_rank}``.
    comm : communicator, optional
        Borrowed by the vectors built on this overlap.
    """

    def __init__(self, rank, domestic_to_global, num_native, master_ranks, foreign_overlap, border=None, comm=None):
        self.rank = rank
        self.comm = comm
        self._domestic_to_global = np.asarray(domestic_to_global, dtype=np.int64)
        self._master_ranks = np.asarray(master_ranks, dtype=np.int64)
        self._num_native = int(num_native)

        num_domestic = self._domestic_to_global.shape[0]
        if self._master_ranks.shape[0] != num_domestic:
            raise ValueError(
                f"Got {self._master_ranks.shape[0]} master ranks for {num_domestic} domestic indices"
            )
        if not 0 <= self._num_native <= num_domestic:
            raise ValueError(f"num_native={num_native} not in [0, {num_domestic}]")

        self._global_to_domestic = {int(g): d for d, g in enumerate(self._domestic_to_global)}
        if len(self._global_to_domestic) != num_domestic:
            raise ValueError("Global indices of the domestic indices are not unique")

        self._foreign_overlap = {}
        for peer_rank, indices in foreign_overlap.items():
            if peer_rank == rank:
                raise ValueError(f"Rank {rank} cannot be its own peer")
            indices = np.asarray(indices, dtype=np.int64)
            if np.any(indices < 0) or np.any(indices >= num_domestic):
                raise ValueError(f"Foreign overlap with rank {peer_rank} has invalid domestic indices")
            self._foreign_overlap[int(peer_rank)] = indices

        self._border = {int(p): frozenset(int(i) for i in idx) for p, idx in (border or {}).items()}
        self._peer_set = tuple(sorted(self._foreign_overlap))

    def num_domestic(self) -> int:
        return self._domestic_to_global.shape[0]

    def num_native(self) -> int:
        return self._num_native

    def domestic_to_native(self, domestic_idx) -> int:
        return domestic_idx if domestic_idx < self._num_native else -1

    def native_to_domestic(self, native_idx) -> int:
        return native_idx if 0 <= native_idx < self._num_native else -1

    def domestic_to_global(self, domestic_idx) -> int:
        return int(self._domestic_to_global[domestic_idx])

    def global_to_domestic(self, global_idx) -> int:
        """Domestic index of a global index, -1 if this rank does not know it."""
        return self._global_to_domestic.get(int(global_idx), -1)

    def peer_set(self):
        """Ranks this rank exchanges data with, in ascending order."""
        return self._peer_set

    def master_rank(self, domestic_idx) -> int:
        return int(self._master_ranks[domestic_idx])

    def is_local(self, domestic_idx) -> bool:
        return domestic_idx < self._num_native

    def is_border_with(self, domestic_idx, peer_rank) -> bool:
        return domestic_idx in self._border.get(peer_rank, ())

    def foreign_overlap_size(self, peer_rank) -> int:
        return self._foreign_overlap[peer_rank].shape[0]

    def foreign_overlap_offset_to_domestic_idx(self, peer_rank, offset) -> int:
        return int(self._foreign_overlap[peer_rank][offset])


def build_overlap(adjacency, partition, rank, comm=None):
    """Build the overlap of ``rank`` for an element partition with one layer of copies.

    Parameters
    ----------
    adjacency : scipy.sparse matrix
        Symmetric cell adjacency of the global mesh (e.g.
        ``MeshData2D.cell_adjacency()``).
    partition : array_like
        Owning rank of every global cell.
    rank : int
        Rank to build the overlap for.
    comm : communicator, optional
        Stored on the overlap.

    Returns
    -------
    Overlap
        Domestic indices are the owned cells followed by all foreign cells
        adjacent to an owned cell. The foreign overlap with a peer holds the
        owned cells the peer has a copy of. An index is on the border with a
        peer if one of the two ranks owns it and it is adjacent to a cell of
        the other.
    """
    adjacency = adjacency.tocsr()
    partition = np.asarray(partition, dtype=np.int64)
    n_cells = partition.shape[0]
    if adjacency.shape != (n_cells, n_cells):
        raise ValueError(f"Adjacency of shape {adjacency.shape} does not match {n_cells} cells")

    def neighbors(cell):
        return adjacency.indices[adjacency.indptr[cell]:adjacency.indptr[cell + 1]]

    def domestic_cells(r):
        owned = np.flatnonzero(partition == r)
        halo = set()
        for cell in owned:
            halo.update(int(n) for n in neighbors(cell) if partition[n] != r)
        return [int(c) for c in owned], sorted(halo)

    native, halo = domestic_cells(rank)
    domestic_to_global = native + halo
    global_to_domestic = {g: d for d, g in enumerate(domestic_to_global)}
    domestic_set = set(domestic_to_global)

    foreign_overlap = {}
    border = {}
    for peer_rank in np.unique(partition):
        peer_rank = int(peer_rank)
        if peer_rank == rank:
            continue
        peer_native, peer_halo = domestic_cells(peer_rank)
        peer_domestic = set(peer_native + peer_halo)
        # only owned indices are sent, copies of a third rank's cells never are
        sent = [g for g in native if g in peer_domestic]
        received = [g for g in peer_native if g in domestic_set]
        if not sent and not received:
            continue
        foreign_overlap[peer_rank] = [global_to_domestic[g] for g in sent]

        border_indices = []
        for g in sorted(sent + received):
            other = peer_rank if partition[g] == rank else rank
            if any(partition[n] == other for n in neighbors(g)):
                border_indices.append(global_to_domestic[g])
        border[peer_rank] = border_indices

    log.debug(
        f"Rank {rank}: {len(native)} native, {len(halo)} copied indices, peers {sorted(foreign_overlap)}"
    )
    return Overlap(
        rank=rank,
        domestic_to_global=domestic_to_global,
        num_native=len(native),
        master_ranks=[int(partition[g]) for g in domestic_to_global],
        foreign_overlap=foreign_overlap,
        border=border,
        comm=comm,
    )
