import logging
import threading
from typing import Iterable, NamedTuple, Union

import numpy as np
import pyarrow as pa

from algorithms.double_hashing import double_hash_indices
from data_structures.filter_config import FilterConfig

logger = logging.getLogger(__name__)

Keys = Union[Iterable[str], pa.Array, pa.ChunkedArray]


class QueryResult(NamedTuple):
    maybe_present: bool
    indices: tuple[int, ...]


class MembershipFilter:
    """Bloom-filter-style approximate membership tester over string keys.

    A fixed-size bit array plus num_hashes indices per key, derived by
    double hashing two 32-bit string hashes. Inserting a key sets the bits
    at its indices; querying reports a key as possibly present only when
    every one of its bits is set. There are no false negatives, and the
    false positive rate grows as bits fill up. Bits are never cleared, so
    the filter is strictly additive.

    The bit array is held in a numpy array and exported as Arrow data, so
    callers rendering the filter or processing keys in bulk never touch
    the hashing themselves.

    Attributes:
        config (FilterConfig): Immutable (size, num_hashes) pair.
        size (int): Number of cells in the bit array.
        num_hashes (int): Number of indices derived per key.
        insert_count (int): Number of keys inserted so far, repeats included.

    Example:
        >>> mf = MembershipFilter(size=100, num_hashes=3)
        >>> mf.insert("a")
        (97, 67, 37)
        >>> mf.query("a")
        QueryResult(maybe_present=True, indices=(97, 67, 37))
        >>> "b" in mf
        False

    """
    def __init__(self, size: int, num_hashes: int):
        self._config = FilterConfig(size, num_hashes)
        self._bits = np.zeros(self._config.size, dtype=np.uint8)
        self._lock = threading.Lock()
        self.insert_count = 0
        logger.debug("MembershipFilter created: size=%d, num_hashes=%d", self.size, self.num_hashes)

    @classmethod
    def from_config(cls, config: FilterConfig) -> "MembershipFilter":
        return cls(config.size, config.num_hashes)

    @classmethod
    def from_capacity(cls, capacity: int, error_rate: float) -> "MembershipFilter":
        """Build a filter sized for capacity keys at error_rate false positives"""
        return cls.from_config(FilterConfig.for_capacity(capacity, error_rate))

    @property
    def config(self) -> FilterConfig:
        return self._config

    @property
    def size(self) -> int:
        return self._config.size

    @property
    def num_hashes(self) -> int:
        return self._config.num_hashes

    def derive_indices(self, key: str) -> tuple[int, ...]:
        """Bit positions for key, num_hashes values in [0, size)"""
        return double_hash_indices(key, self.num_hashes, self.size)

    def insert(self, key: str) -> tuple[int, ...]:
        """Set the bits for key and return its indices"""
        indices = self.derive_indices(key)
        with self._lock:
            self._bits[list(indices)] = 1
            self.insert_count += 1
        return indices

    def query(self, key: str) -> QueryResult:
        """Check whether key might have been inserted.

        Stops at the first unset bit, which proves the key absent. When all
        bits are set the key is possibly present: it may be a false
        positive caused by other keys sharing those bits.

        Returns:
        QueryResult(maybe_present, indices) with the full index sequence
        """
        indices = self.derive_indices(key)
        for idx in indices:
            if not self._bits[idx]:
                return QueryResult(False, indices)
        return QueryResult(True, indices)

    def __contains__(self, key: str) -> bool:
        return self.query(key).maybe_present

    def insert_batch(self, keys: Keys) -> pa.Table:
        """Insert every key, or none of them if any key is invalid
        Returns:
        Arrow Table with columns: key, indices
        """
        keys = self._as_key_list(keys)
        indices = [self.derive_indices(key) for key in keys]
        with self._lock:
            for idx in indices:
                self._bits[list(idx)] = 1
            self.insert_count += len(indices)
        logger.debug("Inserted batch of %d keys", len(keys))
        return pa.table({
            'key': pa.array(keys, type=pa.string()),
            'indices': pa.array(indices, type=pa.list_(pa.int64())),
        })

    def query_batch(self, keys: Keys) -> pa.Table:
        """Query every key
        Returns:
        Arrow Table with columns: key, maybe_present, indices
        """
        keys = self._as_key_list(keys)
        results = [self.query(key) for key in keys]
        logger.debug("Queried batch of %d keys", len(keys))
        return pa.table({
            'key': pa.array(keys, type=pa.string()),
            'maybe_present': pa.array([r.maybe_present for r in results], type=pa.bool_()),
            'indices': pa.array([r.indices for r in results], type=pa.list_(pa.int64())),
        })

    def is_set(self, index: int) -> bool:
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
            raise TypeError(f"bit index must be an integer, not {type(index).__name__}")
        if not 0 <= index < self.size:
            raise IndexError(f"bit index {index} out of range for size {self.size}")
        return bool(self._bits[index])

    def bit_state(self) -> pa.BooleanArray:
        """Snapshot of every cell, True where the bit is set"""
        return pa.array(self._bits.astype(bool), type=pa.bool_())

    def set_bit_count(self) -> int:
        return int(np.count_nonzero(self._bits))

    def fill_ratio(self) -> float:
        return self.set_bit_count() / self.size

    def estimated_false_positive_rate(self) -> float:
        """Chance that a key never inserted is reported present, given the current fill"""
        return self.fill_ratio() ** self.num_hashes

    @staticmethod
    def _as_key_list(keys: Keys) -> list:
        if isinstance(keys, (pa.Array, pa.ChunkedArray)):
            return keys.to_pylist()
        return list(keys)

    def __repr__(self):
        return (f"MembershipFilter(size={self.size}, num_hashes={self.num_hashes}, "
                f"set_bits={self.set_bit_count()})")
