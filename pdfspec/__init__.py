"""Render declarative document specifications into paginated PDFs."""
from pdfspec.engine import PageNumberStamp, PdfEngine, render
from pdfspec.errors import AssetError, OutputError, PdfSpecError, SpecError
from pdfspec.layout import Cursor
from pdfspec.spec import DocumentSpec, Kind
from pdfspec.surface import Surface

__all__ = [
    "AssetError",
    "Cursor",
    "DocumentSpec",
    "Kind",
    "OutputError",
    "PageNumberStamp",
    "PdfEngine",
    "PdfSpecError",
    "SpecError",
    "Surface",
    "render",
]

__version__ = "1.0.0"
