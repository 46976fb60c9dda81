from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import Any, Dict, Optional, Protocol

from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import CodecError
from ..models import Metadata, ResizeSpec

logger = logging.getLogger(__name__)

_CODEC_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError)

# Pillow reports some JPEG files by their container name.
_FORMAT_ALIASES = {"mpo": "jpeg"}

_ORIENTATION_TAG = 0x0112


class CodecEngine(Protocol):
    """The image codec the variant generator delegates to. Failures raise :class:`CodecError`."""

    async def probe(self, buffer: bytes) -> Metadata: ...

    async def resize(self, buffer: bytes, spec: ResizeSpec) -> bytes: ...

    async def reencode(self, buffer: bytes, format: Optional[str] = None, quality: int = 80) -> bytes: ...

    async def normalize_orientation(self, buffer: bytes) -> bytes: ...


class PillowCodecEngine:
    """:class:`CodecEngine` backed by Pillow; blocking work runs in a worker thread."""

    def __init__(self, orientation_quality: int = 95) -> None:
        self.orientation_quality = orientation_quality

    async def probe(self, buffer: bytes) -> Metadata:
        return await asyncio.to_thread(self._probe, buffer)

    async def resize(self, buffer: bytes, spec: ResizeSpec) -> bytes:
        return await asyncio.to_thread(self._resize, buffer, spec)

    async def reencode(self, buffer: bytes, format: Optional[str] = None, quality: int = 80) -> bytes:
        return await asyncio.to_thread(self._reencode, buffer, format, quality)

    async def normalize_orientation(self, buffer: bytes) -> bytes:
        return await asyncio.to_thread(self._normalize_orientation, buffer)

    def _probe(self, buffer: bytes) -> Metadata:
        try:
            with Image.open(BytesIO(buffer)) as image:
                width, height = image.size
                fmt = (image.format or "").lower() or None
                pages = getattr(image, "n_frames", 1)
        except _CODEC_ERRORS as exc:
            raise CodecError(f"Unable to read image metadata: {exc}") from exc
        if fmt is not None:
            fmt = _FORMAT_ALIASES.get(fmt, fmt)
        return Metadata(format=fmt, width=width, height=height, size=len(buffer), pages=pages)

    def _resize(self, buffer: bytes, spec: ResizeSpec) -> bytes:
        if spec.fit != "inside":
            raise CodecError(f"Unsupported fit mode {spec.fit!r}")
        try:
            with Image.open(BytesIO(buffer)) as image:
                fmt = image.format
                info = dict(image.info)
                image.load()
                resized = image.copy()
            logger.debug("Resizing %sx%s image to fit %sx%s", *resized.size, spec.max_width, spec.max_height)
            # thumbnail() keeps the aspect ratio and never enlarges.
            resized.thumbnail((spec.max_width, spec.max_height), Image.Resampling.LANCZOS)
            return self._save(resized, fmt, self._metadata_kwargs(info), quality=80)
        except _CODEC_ERRORS as exc:
            raise CodecError(f"Unable to resize image: {exc}") from exc

    def _reencode(self, buffer: bytes, format: Optional[str], quality: int) -> bytes:
        try:
            with Image.open(BytesIO(buffer)) as image:
                source_format = image.format
                icc_profile = image.info.get("icc_profile")
                image.load()
                working = image.copy()
            # EXIF is dropped on re-encode, the colour profile is kept.
            kwargs = {"icc_profile": icc_profile} if icc_profile else {}
            return self._save(working, format or source_format, kwargs, quality=quality)
        except _CODEC_ERRORS as exc:
            raise CodecError(f"Unable to re-encode image: {exc}") from exc

    def _normalize_orientation(self, buffer: bytes) -> bytes:
        try:
            with Image.open(BytesIO(buffer)) as image:
                orientation = image.getexif().get(_ORIENTATION_TAG, 1)
                if orientation == 1:
                    return buffer
                fmt = image.format
                info = dict(image.info)
                image.load()
                transposed = ImageOps.exif_transpose(image)
            kwargs = self._metadata_kwargs(info)
            # exif_transpose resets the orientation tag on the image it returns.
            exif = transposed.getexif()
            if exif:
                kwargs["exif"] = exif.tobytes()
            else:
                kwargs.pop("exif", None)
            logger.debug("Applied EXIF orientation %s", orientation)
            return self._save(transposed, fmt, kwargs, quality=self.orientation_quality)
        except _CODEC_ERRORS as exc:
            raise CodecError(f"Unable to normalize orientation: {exc}") from exc

    @staticmethod
    def _metadata_kwargs(info: Dict[str, Any]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        if info.get("exif"):
            kwargs["exif"] = info["exif"]
        if info.get("icc_profile"):
            kwargs["icc_profile"] = info["icc_profile"]
        return kwargs

    @staticmethod
    def _save(image: Image.Image, fmt: Optional[str], kwargs: Dict[str, Any], quality: int) -> bytes:
        if not fmt:
            raise CodecError("Unable to determine output format")
        fmt = fmt.upper()
        if fmt == "MPO":
            fmt = "JPEG"

        params = dict(kwargs)
        if fmt == "JPEG":
            if image.mode not in ("RGB", "L", "CMYK"):
                image = image.convert("RGB")
            params.update(quality=quality, optimize=True)
        elif fmt == "WEBP":
            if image.mode not in ("RGB", "RGBA"):
                has_alpha = image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info
                image = image.convert("RGBA" if has_alpha else "RGB")
            params.update(quality=quality)
        elif fmt == "PNG":
            params.update(optimize=True)
        elif fmt == "TIFF":
            params.pop("exif", None)

        output = BytesIO()
        image.save(output, fmt, **params)
        return output.getvalue()
