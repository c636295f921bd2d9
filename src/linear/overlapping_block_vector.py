"""Block vector over the domestic indices of a rank, synchronized with its peers."""

import logging
import sys
from dataclasses import dataclass

import numpy as np

from .mpi_buffer import INDEX_COUNT_TAG, INDEX_TAG, VALUES_TAG, MpiBuffer, default_communicator

log = logging.getLogger(__name__)


@dataclass
class PeerBuffers:
    """Everything exchanged with one peer rank.

    The index arrays hold domestic indices and are read-only; they are built
    once when the vector is constructed.
    """

    peer_rank: int
    send_indices: np.ndarray
    recv_indices: np.ndarray
    send_values: MpiBuffer
    recv_values: MpiBuffer


class OverlappingBlockVector:
    """Vector with one block of values per domestic index.

    Synchronization (``sync``, ``sync_add``, ``sync_add_border``) sends the
    values of the shared indices to every peer and receives theirs. It blocks
    until all peers took part; there are no timeouts, so a peer that never
    calls the same synchronization hangs this rank.

    Parameters
    ----------
    overlap : Overlap
        Borrowed; must outlive the vector.
    block_size : int
        Number of values per index.
    comm : communicator, optional
        Defaults to ``overlap.comm`` and then to ``MPI.COMM_WORLD``.
    """

    def __init__(self, overlap, block_size=1, comm=None):
        if comm is None:
            comm = overlap.comm if overlap.comm is not None else default_communicator()
        self.overlap = overlap
        self.block_size = block_size
        self.comm = comm
        self.values = np.zeros((overlap.num_domestic(), block_size))
        self._peer_buffers = self._create_buffers()

    @classmethod
    def _from_buffers(cls, other):
        vector = cls.__new__(cls)
        vector.overlap = other.overlap
        vector.block_size = other.block_size
        vector.comm = other.comm
        vector.values = other.values.copy()
        vector._peer_buffers = {
            peer: PeerBuffers(
                peer_rank=peer,
                send_indices=buffers.send_indices,
                recv_indices=buffers.recv_indices,
                send_values=MpiBuffer(len(buffers.send_indices), other.comm, block_size=other.block_size),
                recv_values=MpiBuffer(len(buffers.recv_indices), other.comm, block_size=other.block_size),
            )
            for peer, buffers in other._peer_buffers.items()
        }
        return vector

    def _create_buffers(self):
        overlap = self.overlap
        comm = self.comm
        peers = overlap.peer_set()

        count_send = {}
        index_send = {}
        # send the global indices of everything shared with a peer
        for peer in peers:
            num_entries = overlap.foreign_overlap_size(peer)
            count_send[peer] = MpiBuffer(1, comm, dtype=np.int64)
            count_send[peer][0] = num_entries
            index_send[peer] = MpiBuffer(num_entries, comm, dtype=np.int64)
            for i in range(num_entries):
                dom_idx = overlap.foreign_overlap_offset_to_domestic_idx(peer, i)
                index_send[peer][i] = overlap.domestic_to_global(dom_idx)
            count_send[peer].send(peer, tag=INDEX_COUNT_TAG)
            index_send[peer].send(peer, tag=INDEX_TAG)

        recv_indices = {}
        for peer in peers:
            count = MpiBuffer(1, comm, dtype=np.int64)
            count.receive(peer, tag=INDEX_COUNT_TAG)
            indices = MpiBuffer(int(count[0]), comm, dtype=np.int64)
            indices.receive(peer, tag=INDEX_TAG)
            recv_indices[peer] = np.array(
                [overlap.global_to_domestic(g) for g in indices.data], dtype=np.int64
            )

        peer_buffers = {}
        for peer in peers:
            count_send[peer].wait()
            index_send[peer].wait()
            send_indices = np.array(
                [overlap.global_to_domestic(g) for g in index_send[peer].data], dtype=np.int64
            )
            send_indices.setflags(write=False)
            recv_indices[peer].setflags(write=False)
            if np.any(recv_indices[peer] < 0):
                raise ValueError(f"Rank {peer} sent indices which are unknown on rank {overlap.rank}")
            peer_buffers[peer] = PeerBuffers(
                peer_rank=peer,
                send_indices=send_indices,
                recv_indices=recv_indices[peer],
                send_values=MpiBuffer(len(send_indices), comm, block_size=self.block_size),
                recv_values=MpiBuffer(len(recv_indices[peer]), comm, block_size=self.block_size),
            )
            log.debug(
                f"Rank {overlap.rank}: sending {len(send_indices)} and receiving "
                f"{len(recv_indices[peer])} values from rank {peer}"
            )

        missing = set(peers) - set(peer_buffers)
        if missing:
            raise ValueError(f"No buffers for peers {sorted(missing)}")
        return peer_buffers

    # --- array access ---

    def __len__(self):
        return self.values.shape[0]

    def __getitem__(self, idx):
        return self.values[idx]

    def __setitem__(self, idx, value):
        self.values[idx] = value

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self.values.copy()
        return self.values.astype(dtype)

    def copy(self):
        """Copy of the values which shares the (immutable) index lists."""
        return self._from_buffers(self)

    def send_indices(self, peer_rank):
        return self._peer_buffers[peer_rank].send_indices

    def receive_indices(self, peer_rank):
        return self._peer_buffers[peer_rank].recv_indices

    # --- native <-> domestic ---

    def _assign_native(self, native):
        overlap = self.overlap
        native = np.asarray(native, dtype=np.float64).reshape(overlap.num_native(), self.block_size)
        for dom_idx in range(overlap.num_domestic()):
            native_idx = overlap.domestic_to_native(dom_idx)
            if native_idx < 0:
                self.values[dom_idx] = 0.0
            else:
                self.values[dom_idx] = native[native_idx]

    def assign(self, native):
        """Set the native entries, then take all copies from their masters."""
        self._assign_native(native)
        self.sync()

    def assign_add_border(self, native):
        """Set the native entries, add up border entries, take the rest from their masters."""
        self._assign_native(native)
        self.sync_add_border()

    def assign_to(self, native=None):
        """Write the native entries into ``native`` (allocated if not given) and return it."""
        overlap = self.overlap
        if native is None:
            native = np.zeros((overlap.num_native(), self.block_size))
        for native_idx in range(overlap.num_native()):
            dom_idx = overlap.native_to_domestic(native_idx)
            if dom_idx < 0:
                native[native_idx] = 0.0
            else:
                native[native_idx] = self.values[dom_idx]
        return native

    # --- synchronization ---

    def sync(self):
        """Overwrite every copy with the value of its master rank."""
        self._exchange(self._receive_from_master)

    def sync_add(self):
        """Add the values received from every peer, regardless of the master.

        An index shared by more than two ranks receives every copy, so the
        sum double counts unless each peer sends it at most once.
        """
        self._exchange(self._receive_add)

    def sync_add_border(self):
        """Add values of border indices, overwrite all others with the received value."""
        self._exchange(self._receive_add_border)

    def _exchange(self, receive):
        peers = self.overlap.peer_set()
        for peer in peers:
            self._send_entries(peer)
        try:
            for peer in peers:
                receive(peer)
        finally:
            for peer in peers:
                self._peer_buffers[peer].send_values.wait()

    def _send_entries(self, peer_rank):
        buffers = self._peer_buffers[peer_rank]
        buffers.send_values.data[:] = self.values[buffers.send_indices]
        buffers.send_values.send(peer_rank, tag=VALUES_TAG)

    def _receive(self, peer_rank):
        buffers = self._peer_buffers[peer_rank]
        buffers.recv_values.receive(peer_rank, tag=VALUES_TAG)
        return buffers.recv_indices, buffers.recv_values.data

    def _receive_from_master(self, peer_rank):
        indices, values = self._receive(peer_rank)
        for j, dom_idx in enumerate(indices):
            if self.overlap.master_rank(dom_idx) == peer_rank:
                self.values[dom_idx] = values[j]

    def _receive_add(self, peer_rank):
        indices, values = self._receive(peer_rank)
        for j, dom_idx in enumerate(indices):
            self.values[dom_idx] += values[j]

    def _receive_add_border(self, peer_rank):
        indices, values = self._receive(peer_rank)
        for j, dom_idx in enumerate(indices):
            if self.overlap.is_border_with(dom_idx, peer_rank):
                self.values[dom_idx] += values[j]
            else:
                self.values[dom_idx] = values[j]

    def print(self, file=None):
        """Dump all rows, rows of copied indices are marked with ``*``."""
        file = file if file is not None else sys.stdout
        for i in range(len(self)):
            marker = " " if self.overlap.is_local(i) else "*"
            print(f"row {i}{marker}: {self.values[i]}", file=file, flush=True)
