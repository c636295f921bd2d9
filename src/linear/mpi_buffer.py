"""Fixed size message buffers for point-to-point communication."""

import numpy as np

# message tags, one per kind of message exchanged between two ranks
INDEX_COUNT_TAG = 101
INDEX_TAG = 102
VALUES_TAG = 103


def default_communicator():
    """Return ``MPI.COMM_WORLD``; mpi4py is only needed for parallel runs."""
    from mpi4py import MPI

    return MPI.COMM_WORLD


class MpiBuffer:
    """A numpy array that can be sent to and received from a peer rank.

    ``send`` is non-blocking and must be completed with ``wait`` before the
    buffer is modified again, ``receive`` blocks until the data arrived.

    Parameters
    ----------
    size : int
        Number of entries (rows).
    comm : communicator
        Any object with the mpi4py ``Isend``/``Recv`` buffer interface.
    dtype : numpy dtype
    block_size : int, optional
        If given, every entry is a row of ``block_size`` values.
    """

    def __init__(self, size, comm, dtype=np.float64, block_size=None):
        shape = (size,) if block_size is None else (size, block_size)
        self.data = np.zeros(shape, dtype=dtype)
        self.comm = comm
        self._request = None

    def __len__(self):
        return self.data.shape[0]

    def __getitem__(self, idx):
        return self.data[idx]

    def __setitem__(self, idx, value):
        self.data[idx] = value

    def send(self, peer_rank, tag=0):
        if self._request is not None:
            raise RuntimeError(f"Previous send to rank {peer_rank} was not waited for")
        self._request = self.comm.Isend(self.data, dest=peer_rank, tag=tag)

    def wait(self):
        if self._request is not None:
            self._request.Wait()
            self._request = None

    def receive(self, peer_rank, tag=0):
        self.comm.Recv(self.data, source=peer_rank, tag=tag)
