from .errors import CodecError, SettingsError, SourceLoadError, UploadVariantsError
from .image_processing.engine import CodecEngine, PillowCodecEngine
from .image_processing.pipeline import (
    PROCESSABLE_FORMATS,
    OptimizeOptions,
    OutputConfig,
    ThumbnailConfig,
    VariantGenerator,
)
from .image_processing.upload import UploadProcessor
from .media.loader import SourceLoader
from .models import (
    Dimensions,
    ImageInfo,
    Metadata,
    OptimizedImage,
    Outcome,
    OutcomeKind,
    ProcessedUpload,
    ResizeSpec,
    ResponsiveVariant,
    SourceFile,
    VariantDescriptor,
)
from .settings import (
    DEFAULT_BREAKPOINTS,
    EnvSettingsProvider,
    SettingsProvider,
    StaticSettingsProvider,
    UploadSettings,
)
from .utils.file import bytes_to_kbytes

__all__ = [
    "CodecEngine",
    "CodecError",
    "DEFAULT_BREAKPOINTS",
    "Dimensions",
    "EnvSettingsProvider",
    "ImageInfo",
    "Metadata",
    "OptimizeOptions",
    "OptimizedImage",
    "Outcome",
    "OutcomeKind",
    "OutputConfig",
    "PROCESSABLE_FORMATS",
    "PillowCodecEngine",
    "ProcessedUpload",
    "ResizeSpec",
    "ResponsiveVariant",
    "SettingsError",
    "SettingsProvider",
    "SourceFile",
    "SourceLoadError",
    "SourceLoader",
    "StaticSettingsProvider",
    "ThumbnailConfig",
    "UploadProcessor",
    "UploadSettings",
    "UploadVariantsError",
    "VariantDescriptor",
    "VariantGenerator",
    "bytes_to_kbytes",
]
