"""
Stable string hashing for picking placeholder images.

Python's built-in hash() is randomized per process, so placeholder seeds use a
31-multiplier rolling hash over UTF-16 code units instead. The same place name
always maps to the same filler image.
"""

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _to_int32(value: int) -> int:
    value &= _INT32_MASK
    return value - 0x100000000 if value & _INT32_SIGN else value


def seed_hash(text: str) -> int:
    """Return a non-negative 32-bit hash of ``text`` (0 for the empty string)."""
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = _to_int32(h * 31 + code_unit)
    return abs(h)
