from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import List, Mapping, Optional

from ..errors import CodecError
from ..models import (
    Dimensions,
    ImageInfo,
    Metadata,
    OptimizedImage,
    Outcome,
    ResizeSpec,
    ResponsiveVariant,
    SourceFile,
    VariantDescriptor,
)
from ..settings import DEFAULT_BREAKPOINTS
from ..utils.file import bytes_to_kbytes
from .engine import CodecEngine, PillowCodecEngine

logger = logging.getLogger(__name__)

PROCESSABLE_FORMATS: frozenset[str] = frozenset({"jpeg", "png", "webp", "tiff"})


@dataclass(slots=True)
class ThumbnailConfig:
    max_width: int = 245
    max_height: int = 156
    prefix: str = "thumbnail"


@dataclass(slots=True)
class OutputConfig:
    format: str = "webp"
    quality: int = 80
    ext: str = ".webp"
    mime: str = "image/webp"


@dataclass(slots=True)
class OptimizeOptions:
    size_optimization: bool = False
    auto_orientation: bool = False


def variant_name(name: str, ext: str, prefix: Optional[str] = None) -> str:
    """Swap the extension of *name* for *ext* and optionally prefix it with ``<prefix>_``."""

    original = PurePosixPath(name)
    renamed = str(original.with_suffix(ext)) if original.name else f"{name}{ext}"
    return f"{prefix}_{renamed}" if prefix else renamed


def breakpoint_smaller_than(breakpoint: int, dimensions: Dimensions) -> bool:
    """True when resizing to *breakpoint* would shrink at least one axis."""

    width, height = dimensions.width, dimensions.height
    return (width is not None and breakpoint < width) or (height is not None and breakpoint < height)


class VariantGenerator:
    """Derives thumbnails, WebP copies and responsive formats from uploaded images."""

    def __init__(
        self,
        engine: CodecEngine | None = None,
        thumbnail: ThumbnailConfig | None = None,
        output: OutputConfig | None = None,
    ) -> None:
        self.engine = engine or PillowCodecEngine()
        self.thumbnail = thumbnail or ThumbnailConfig()
        self.output = output or OutputConfig()

    async def get_metadata(self, buffer: bytes) -> Metadata:
        try:
            return await self.engine.probe(buffer)
        except CodecError:
            logger.debug("Metadata probe failed", exc_info=True)
            return Metadata()

    async def get_dimensions(self, buffer: bytes) -> Dimensions:
        metadata = await self.get_metadata(buffer)
        return Dimensions(width=metadata.width, height=metadata.height)

    async def can_be_processed(self, buffer: bytes) -> bool:
        return _is_processable(await self.get_metadata(buffer))

    async def resize_to(self, buffer: bytes, spec: ResizeSpec) -> Optional[bytes]:
        try:
            return await self.engine.resize(buffer, spec)
        except CodecError:
            logger.debug("Resize to %sx%s failed", spec.max_width, spec.max_height, exc_info=True)
            return None

    async def thumbnail_outcome(self, file: SourceFile) -> Outcome:
        if not await self.can_be_processed(file.buffer):
            return Outcome.skipped()

        dimensions = await self.get_dimensions(file.buffer)
        config = self.thumbnail
        if not _exceeds(dimensions, config.max_width, config.max_height):
            logger.debug("%s already fits thumbnail bounds", file.name)
            return Outcome.no_variant()

        spec = ResizeSpec(max_width=config.max_width, max_height=config.max_height)
        descriptor = await self._derive(file, spec, config.prefix)
        return Outcome.variant(descriptor) if descriptor else Outcome.no_variant()

    async def generate_thumbnail(self, file: SourceFile) -> Optional[VariantDescriptor]:
        return (await self.thumbnail_outcome(file)).descriptor

    async def webp_outcome(self, file: SourceFile) -> Outcome:
        if not await self.can_be_processed(file.buffer):
            return Outcome.skipped()

        encoded = await self._encode_output(file.buffer)
        if encoded is None:
            return Outcome.no_variant()
        return Outcome.variant(await self._build_descriptor(file, encoded, prefix=None))

    async def generate_webp(self, file: SourceFile) -> Optional[VariantDescriptor]:
        return (await self.webp_outcome(file)).descriptor

    async def optimize(self, buffer: bytes, options: OptimizeOptions | None = None) -> OptimizedImage:
        """Re-encode *buffer* and keep whichever of the two encodings is smaller."""

        options = options or OptimizeOptions()
        if not options.size_optimization:
            return OptimizedImage(buffer=buffer)
        original = await self.get_metadata(buffer)
        if not _is_processable(original):
            return OptimizedImage(buffer=buffer)
        if original.is_animated:
            logger.debug("Not optimizing animated image with %s frames", original.pages)
            return OptimizedImage(buffer=buffer)

        try:
            source = buffer
            if options.auto_orientation:
                source = await self.engine.normalize_orientation(buffer)
            encoded = await self.engine.reencode(source)
            output = buffer if len(buffer) < len(encoded) else encoded
            metadata = await self.engine.probe(output)
        except CodecError:
            logger.debug("Optimization failed, keeping original buffer", exc_info=True)
            return OptimizedImage(buffer=buffer)

        logger.debug("Optimized %s bytes down to %s bytes", len(buffer), len(output))
        info = ImageInfo(width=metadata.width, height=metadata.height, size=bytes_to_kbytes(len(output)))
        return OptimizedImage(buffer=output, info=info)

    async def generate_responsive_formats(
        self,
        file: SourceFile,
        breakpoints: Mapping[str, int] | None = None,
        responsive_dimensions: bool = False,
    ) -> List[ResponsiveVariant]:
        if not responsive_dimensions:
            return []
        if not await self.can_be_processed(file.buffer):
            return []

        breakpoints = DEFAULT_BREAKPOINTS if breakpoints is None else breakpoints
        original = await self.get_dimensions(file.buffer)
        planned = [
            (key, size) for key, size in breakpoints.items() if breakpoint_smaller_than(size, original)
        ]
        results = await asyncio.gather(
            *(self._generate_breakpoint(file, key, size) for key, size in planned)
        )
        return [variant for variant in results if variant is not None]

    async def _generate_breakpoint(self, file: SourceFile, key: str, breakpoint: int) -> Optional[ResponsiveVariant]:
        descriptor = await self._derive(file, ResizeSpec(max_width=breakpoint, max_height=breakpoint), key)
        if descriptor is None:
            return None
        return ResponsiveVariant(key=key, file=descriptor)

    async def _derive(self, file: SourceFile, spec: ResizeSpec, prefix: str) -> Optional[VariantDescriptor]:
        resized = await self.resize_to(file.buffer, spec)
        if resized is None:
            return None
        encoded = await self._encode_output(resized)
        if encoded is None:
            return None
        descriptor = await self._build_descriptor(file, encoded, prefix=prefix)
        logger.info("Generated %s (%sx%s)", descriptor.name, descriptor.width, descriptor.height)
        return descriptor

    async def _encode_output(self, buffer: bytes) -> Optional[bytes]:
        try:
            return await self.engine.reencode(buffer, format=self.output.format, quality=self.output.quality)
        except CodecError:
            logger.debug("Re-encoding to %s failed", self.output.format, exc_info=True)
            return None

    async def _build_descriptor(self, file: SourceFile, buffer: bytes, prefix: Optional[str]) -> VariantDescriptor:
        metadata = await self.get_metadata(buffer)
        size = metadata.size if metadata.size is not None else len(buffer)
        return VariantDescriptor(
            name=variant_name(file.name, self.output.ext, prefix),
            hash=f"{prefix}_{file.hash}" if prefix else file.hash,
            ext=self.output.ext,
            mime=self.output.mime,
            width=metadata.width,
            height=metadata.height,
            size=bytes_to_kbytes(size),
            buffer=buffer,
            path=file.path,
        )


def _is_processable(metadata: Metadata) -> bool:
    return metadata.format is not None and metadata.format in PROCESSABLE_FORMATS


def _exceeds(dimensions: Dimensions, max_width: int, max_height: int) -> bool:
    width, height = dimensions.width, dimensions.height
    return (width is not None and width > max_width) or (height is not None and height > max_height)
