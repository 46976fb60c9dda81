from __future__ import annotations

KILOBYTE = 1000


def bytes_to_kbytes(size: int) -> float:
    """Convert a byte count to kilobytes (1 kB = 1000 bytes), rounded to two decimals."""

    return round(size / KILOBYTE, 2)
