from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import SettingsError, SourceLoadError
from ..image_processing.pipeline import VariantGenerator
from ..image_processing.upload import UploadProcessor
from ..media.loader import SourceLoader
from ..models import VariantDescriptor
from ..settings import EnvSettingsProvider, StaticSettingsProvider, UploadSettings, parse_breakpoints

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate derived image formats for uploads")
    parser.add_argument("inputs", nargs="+", help="Image files or http(s) URLs to process")
    parser.add_argument(
        "--output", type=Path, default=None, help="Directory to write the generated variants to"
    )
    parser.add_argument(
        "--responsive",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Generate responsive breakpoint formats (defaults to UPLOAD_RESPONSIVE_DIMENSIONS)",
    )
    parser.add_argument(
        "--optimize",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Recompress the original when that makes it smaller",
    )
    parser.add_argument(
        "--auto-orient",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Apply EXIF orientation before recompressing",
    )
    parser.add_argument(
        "--breakpoints", default=None, help="Comma separated label=pixels pairs, e.g. large=1000,small=500"
    )
    parser.add_argument("--webp", action="store_true", help="Also emit a full-size WebP copy")
    parser.add_argument("--env-file", type=Path, default=Path(".env"), help="Settings file to read")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def resolve_settings(args: argparse.Namespace) -> UploadSettings:
    """Environment settings, overridden by whatever was passed on the command line."""

    settings = await EnvSettingsProvider(env_file=args.env_file).get_settings()
    overrides = {}
    if args.responsive is not None:
        overrides["responsive_dimensions"] = args.responsive
    if args.optimize is not None:
        overrides["size_optimization"] = args.optimize
    if args.auto_orient is not None:
        overrides["auto_orientation"] = args.auto_orient
    if args.breakpoints:
        overrides["breakpoints"] = parse_breakpoints(args.breakpoints)
    return dataclasses.replace(settings, **overrides)


async def run(args: argparse.Namespace) -> List[VariantDescriptor]:
    settings = await resolve_settings(args)
    generator = VariantGenerator()
    processor = UploadProcessor(generator=generator, settings_provider=StaticSettingsProvider(settings))
    sources = await SourceLoader().load_many(args.inputs)

    written: List[VariantDescriptor] = []
    for source in sources:
        processed = await processor.process(source)
        if processed.info is not None:
            logger.info("Optimized %s to %s kB", source.name, processed.info.size)
        variants = list(processed.formats.values())
        if args.webp:
            webp = await generator.generate_webp(processed.file)
            if webp is not None:
                variants.append(webp)
        if not variants:
            logger.info("No derived formats for %s", source.name)
        for variant in variants:
            logger.info("%s: %sx%s, %s kB", variant.name, variant.width, variant.height, variant.size)
            if args.output is not None:
                _store_variant(args.output, variant)
            written.append(variant)
    return written


def _store_variant(output_dir: Path, variant: VariantDescriptor) -> Path:
    target = output_dir / variant.name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(variant.buffer)
    logger.debug("Stored %s", target)
    return target


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        asyncio.run(run(args))
    except SettingsError as exc:
        logger.error("Invalid settings: %s", exc)
        raise SystemExit(1) from exc
    except SourceLoadError as exc:
        logger.error("Failed to load input: %s", exc)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
