import math
from dataclasses import dataclass


class ConfigurationError(ValueError):
    """Raised when a filter is configured with an unusable size or hash count"""


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


@dataclass(frozen=True)
class FilterConfig:
    """Immutable sizing of a membership filter.

    Attributes:
        size (int): Number of cells in the bit array (>= 1).
        num_hashes (int): Number of indices derived per key (>= 1).

    Example:
        >>> FilterConfig(size=100, num_hashes=3)
        FilterConfig(size=100, num_hashes=3)
        >>> FilterConfig.for_capacity(1000, 0.01)
        FilterConfig(size=9586, num_hashes=7)

    """
    size: int
    num_hashes: int

    def __post_init__(self):
        if not _is_positive_int(self.size):
            raise ConfigurationError(f"size must be a positive integer, got {self.size!r}")
        if not _is_positive_int(self.num_hashes):
            raise ConfigurationError(
                f"num_hashes must be a positive integer, got {self.num_hashes!r}"
            )

    @classmethod
    def for_capacity(cls, capacity: int, error_rate: float) -> "FilterConfig":
        """Size a filter for capacity keys at the given false positive rate
        Args:
        capacity: Expected maximum number of keys
        error_rate: Acceptable false positive rate (0, 1)
        """
        if not _is_positive_int(capacity):
            raise ConfigurationError(f"capacity must be a positive integer, got {capacity!r}")
        if not 0 < error_rate < 1:
            raise ConfigurationError(f"error_rate must be in (0, 1), got {error_rate!r}")
        size = cls._calc_size(capacity, error_rate)
        return cls(size=size, num_hashes=cls._calc_hash_count(capacity, size))

    @staticmethod
    def _calc_size(n: int, p: float) -> int:
        return math.ceil(-(n * math.log(p)) / (math.log(2)**2))

    @staticmethod
    def _calc_hash_count(n: int, m: int) -> int:
        return max(1, round((m/n) * math.log(2)))
