import numpy as np

XOR_SEED = 0
ADD_SEED = 5381
MULTIPLIER = 33

_INT32_SPAN = 1 << 32
_INT32_MIN = 1 << 31


def wrap_int32(value: int) -> int:
    """Reduce an integer to signed 32-bit two's complement"""
    return ((value + _INT32_MIN) % _INT32_SPAN) - _INT32_MIN


def char_codes(key: str) -> np.ndarray:
    """UTF-16 code units of key, the character codes the hashes consume"""
    if not isinstance(key, str):
        raise TypeError(f"key must be str, not {type(key).__name__}")
    return np.frombuffer(key.encode('utf-16-le', 'surrogatepass'), dtype='<u2')


def xor_hash(key: str) -> int:
    """h = (h * 33) ^ code, seeded with 0"""
    h = XOR_SEED
    for code in char_codes(key).tolist():
        h = wrap_int32(h * MULTIPLIER) ^ code
    return abs(h)


def add_hash(key: str) -> int:
    """h = (h * 33) + code, seeded with 5381 (djb2)"""
    h = ADD_SEED
    for code in char_codes(key).tolist():
        h = wrap_int32(h * MULTIPLIER + code)
    return abs(h)


def double_hash_indices(key: str, num_hashes: int, size: int) -> tuple[int, ...]:
    """Simulate num_hashes hash functions from two base hashes.

    Kirsch-Mitzenmacher double hashing: the i-th index is
    (h1 + i * h2) mod size. Both base hashes wrap to signed 32 bits after
    every step, so the indices of a key are reproducible across platforms.

    Args:
    key: String to hash
    num_hashes: Number of indices to derive
    size: Length of the bit array the indices address
    Returns:
    Tuple of num_hashes integers in [0, size)
    """
    h1 = xor_hash(key)
    h2 = add_hash(key)
    return tuple((h1 + i * h2) % size for i in range(num_hashes))
