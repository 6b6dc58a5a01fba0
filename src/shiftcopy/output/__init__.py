"""Output generation for copy previews (text, PDF)."""

from shiftcopy.output.pdf_generator import PDFGenerator
from shiftcopy.output.preview_generator import PreviewGenerator

__all__ = [
    "PDFGenerator",
    "PreviewGenerator",
]
