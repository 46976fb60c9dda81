from __future__ import annotations

import dataclasses
import logging
from typing import Optional, Tuple

from ..models import ImageInfo, ProcessedUpload, SourceFile
from ..settings import SettingsProvider, StaticSettingsProvider, UploadSettings
from .pipeline import OptimizeOptions, VariantGenerator

logger = logging.getLogger(__name__)


class UploadProcessor:
    """Runs every derived-image step an upload goes through, using one settings snapshot."""

    def __init__(
        self,
        generator: VariantGenerator | None = None,
        settings_provider: SettingsProvider | None = None,
    ) -> None:
        self.generator = generator or VariantGenerator()
        self.settings_provider = settings_provider or StaticSettingsProvider()

    async def enhance(
        self, file: SourceFile, settings: UploadSettings | None = None
    ) -> Tuple[SourceFile, Optional[ImageInfo]]:
        settings = settings or await self.settings_provider.get_settings()
        optimized = await self.generator.optimize(
            file.buffer,
            OptimizeOptions(
                size_optimization=settings.size_optimization,
                auto_orientation=settings.auto_orientation,
            ),
        )
        return dataclasses.replace(file, buffer=optimized.buffer), optimized.info

    async def process(self, file: SourceFile) -> ProcessedUpload:
        settings = await self.settings_provider.get_settings()
        optimized, info = await self.enhance(file, settings)
        result = ProcessedUpload(file=optimized, info=info)

        thumbnail = await self.generator.generate_thumbnail(optimized)
        if thumbnail is not None:
            result.formats["thumbnail"] = thumbnail

        responsive = await self.generator.generate_responsive_formats(
            optimized,
            settings.breakpoints,
            settings.responsive_dimensions,
        )
        for variant in responsive:
            result.formats[variant.key] = variant.file

        logger.info("Processed %s with %s derived format(s)", file.name, len(result.formats))
        return result
