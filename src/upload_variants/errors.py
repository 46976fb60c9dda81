from __future__ import annotations


class UploadVariantsError(Exception):
    """Base class for errors raised by this package."""


class CodecError(UploadVariantsError):
    """The image codec could not read or write a buffer."""


class SourceLoadError(UploadVariantsError):
    """A source file could not be read from disk or fetched over HTTP."""


class SettingsError(UploadVariantsError, ValueError):
    """Upload settings are malformed."""
