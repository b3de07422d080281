from __future__ import annotations  # Feedback report package exports

from .generator import generate_report
from .models import Report, RubricScore
from .pdf import render_report_pdf

__all__ = ["Report", "RubricScore", "generate_report", "render_report_pdf"]
