"""Output generation for scheduling runs (text, PDF)."""

from dispensehelper.output.pdf_generator import PDFGenerator
from dispensehelper.output.report_generator import ReportGenerator

__all__ = [
    "PDFGenerator",
    "ReportGenerator",
]
