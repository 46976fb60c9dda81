from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True, slots=True)
class SourceFile:
    """An uploaded file as handed over by the upload pipeline."""

    buffer: bytes
    name: str
    hash: str
    path: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Metadata:
    """Codec-level facts about a buffer. Every field is absent when probing fails."""

    format: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    size: Optional[int] = None
    pages: Optional[int] = None

    @property
    def is_animated(self) -> bool:
        return self.pages is not None and self.pages > 1


@dataclass(frozen=True, slots=True)
class Dimensions:
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ResizeSpec:
    """Bounds an image must fit inside, preserving its aspect ratio."""

    max_width: int
    max_height: int
    fit: str = "inside"


@dataclass(frozen=True, slots=True)
class VariantDescriptor:
    """A derived file ready to be persisted next to its source. ``size`` is in kB."""

    name: str
    hash: str
    ext: str
    mime: str
    width: Optional[int]
    height: Optional[int]
    size: Optional[float]
    buffer: bytes = field(repr=False)
    path: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ResponsiveVariant:
    key: str
    file: VariantDescriptor


class OutcomeKind(str, enum.Enum):
    SKIPPED = "skipped"
    NO_VARIANT = "no_variant"
    VARIANT = "variant"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of one derived-variant computation."""

    kind: OutcomeKind
    descriptor: Optional[VariantDescriptor] = None

    @classmethod
    def skipped(cls) -> "Outcome":
        return cls(OutcomeKind.SKIPPED)

    @classmethod
    def no_variant(cls) -> "Outcome":
        return cls(OutcomeKind.NO_VARIANT)

    @classmethod
    def variant(cls, descriptor: VariantDescriptor) -> "Outcome":
        return cls(OutcomeKind.VARIANT, descriptor)


@dataclass(frozen=True, slots=True)
class ImageInfo:
    width: Optional[int]
    height: Optional[int]
    size: float


@dataclass(frozen=True, slots=True)
class OptimizedImage:
    buffer: bytes = field(repr=False)
    info: Optional[ImageInfo] = None


@dataclass(slots=True)
class ProcessedUpload:
    """The optimized source plus every derived format keyed by label."""

    file: SourceFile
    info: Optional[ImageInfo] = None
    formats: Dict[str, VariantDescriptor] = field(default_factory=dict)
