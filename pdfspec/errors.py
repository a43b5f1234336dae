"""Exceptions raised by a render session."""


class PdfSpecError(Exception):
    """Base class for every error raised while rendering a document."""


class SpecError(PdfSpecError, ValueError):
    """The document specification root is malformed."""


class AssetError(PdfSpecError):
    """An embedded asset (image) cannot be read or decoded."""

    def __init__(self, src, reason):
        self.src = src
        self.reason = reason
        super().__init__(f"Cannot load image {_describe(src)}: {reason}")


class OutputError(PdfSpecError):
    """The finished document could not be written out."""


def _describe(src):
    if isinstance(src, (bytes, bytearray)):
        return f"<{len(src)} bytes>"
    s = str(src)
    return s if len(s) <= 80 else s[:77] + "..."
