from __future__ import annotations

import pytest

from upload_variants.utils.file import bytes_to_kbytes


@pytest.mark.parametrize(
    "size, expected",
    [(0, 0.0), (1000, 1.0), (1024, 1.02), (1536, 1.54), (999_999, 1000.0), (12_346, 12.35)],
)
def test_bytes_to_kbytes_uses_decimal_kilobytes(size: int, expected: float) -> None:
    assert bytes_to_kbytes(size) == expected


def test_bytes_to_kbytes_is_monotonic() -> None:
    sizes = range(0, 50_000, 137)
    converted = [bytes_to_kbytes(size) for size in sizes]

    assert converted == sorted(converted)
