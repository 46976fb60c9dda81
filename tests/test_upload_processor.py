from __future__ import annotations

import pytest

from upload_variants.image_processing.upload import UploadProcessor
from upload_variants.settings import StaticSettingsProvider, UploadSettings


def _processor(**settings) -> UploadProcessor:
    return UploadProcessor(settings_provider=StaticSettingsProvider(UploadSettings(**settings)))


@pytest.mark.asyncio
async def test_process_collects_thumbnail_and_breakpoints(make_source) -> None:
    source = make_source((1200, 800))
    processed = await _processor(responsive_dimensions=True, size_optimization=True).process(source)

    assert list(processed.formats) == ["thumbnail", "large", "medium", "small"]
    assert processed.formats["large"].width == 1000
    assert processed.info is not None
    assert len(processed.file.buffer) <= len(source.buffer)
    assert processed.file.name == source.name
    assert processed.file.hash == source.hash


@pytest.mark.asyncio
async def test_process_with_defaults_only_makes_thumbnail(make_source) -> None:
    source = make_source((1200, 800))
    processed = await _processor().process(source)

    assert list(processed.formats) == ["thumbnail"]
    assert processed.info is None
    assert processed.file.buffer is source.buffer


@pytest.mark.asyncio
async def test_process_honours_custom_breakpoints(make_source) -> None:
    source = make_source((640, 480))
    processed = await _processor(responsive_dimensions=True, breakpoints={"half": 320, "huge": 4000}).process(
        source
    )

    assert sorted(processed.formats) == ["half", "thumbnail"]
    assert (processed.formats["half"].width, processed.formats["half"].height) == (320, 240)


@pytest.mark.asyncio
async def test_process_unsupported_format_yields_nothing(make_source) -> None:
    source = make_source((1200, 800), fmt="GIF", name="loop.gif")
    processed = await _processor(responsive_dimensions=True, size_optimization=True).process(source)

    assert processed.formats == {}
    assert processed.info is None
    assert processed.file == source
