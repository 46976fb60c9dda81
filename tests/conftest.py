from __future__ import annotations

from io import BytesIO
from typing import Callable

import pytest
from PIL import Image, ImageDraw

from upload_variants.models import SourceFile


def render_image(size: tuple[int, int], fmt: str = "PNG", mode: str = "RGB", **save_kwargs) -> bytes:
    image = Image.new(mode, size, "white")
    draw = ImageDraw.Draw(image)
    width, height = size
    draw.rectangle([width // 4, height // 4, width * 3 // 4, height * 3 // 4], fill="red" if mode == "RGB" else 128)
    output = BytesIO()
    image.save(output, fmt, **save_kwargs)
    return output.getvalue()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    return render_image


@pytest.fixture
def make_source() -> Callable[..., SourceFile]:
    def factory(
        size: tuple[int, int],
        fmt: str = "PNG",
        name: str = "photo.png",
        path: str | None = None,
        **save_kwargs,
    ) -> SourceFile:
        return SourceFile(
            buffer=render_image(size, fmt, **save_kwargs),
            name=name,
            hash="abc123",
            path=path,
        )

    return factory
