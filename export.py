"""
Trace exporters: JSON dump and a PDF step-by-step walkthrough.

Both work on a finished step list, so any trace (any family) can be
exported.  The PDF needs ReportLab; without it ``PDFExporter.export``
raises ``ExportError`` with install instructions.
"""

import json
import logging
from datetime import datetime

from structures import AlgoVizError
from trace_model import format_snapshot
from tracers import count_comparisons, count_swaps

# ─── ReportLab: PDF generation for full step walkthrough ────────
try:
    from reportlab.lib.pagesizes import A4, landscape
    from reportlab.lib.utils import simpleSplit
    from reportlab.pdfgen import canvas as pdf_canvas
    HAS_REPORTLAB = True
except ImportError:
    HAS_REPORTLAB = False

logger = logging.getLogger(__name__)


class ExportError(AlgoVizError):
    """Export could not be written."""


def trace_to_dict(steps, title=""):
    return {
        "title":       title,
        "generated":   datetime.now().isoformat(timespec="seconds"),
        "total_steps": len(steps),
        "comparisons": count_comparisons(steps),
        "swaps":       count_swaps(steps),
        "steps":       [s.to_dict() for s in steps],
    }


def export_json(steps, filename, title=""):
    """
    Write ``steps`` as a JSON document.

    Raises:
        ExportError: the file could not be written.
    """
    try:
        with open(filename, "w", encoding="utf-8") as f:
            json.dump(trace_to_dict(steps, title), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise ExportError(f"Could not write {filename}: {e}") from e
    logger.info("Exported %d steps to %s", len(steps), filename)


def _aux_line(step):
    if step.aux is None:
        return ""
    if step.aux.kind == "distances":
        body = ", ".join(f"{k}={'∞' if v == float('inf') else v}"
                         for k, v in step.aux.items)
    else:
        body = ", ".join(str(v) for v in step.aux.items)
    return f"{step.aux.kind.capitalize()}: [{body}]"


# ═════════════════════════════════════════════════════════════════
#  PDF EXPORTER
#
#  Landscape A4: a title page, one page per step (description,
#  action, pseudocode line, snapshot, side channel) and a summary
#  page with aggregate statistics.
# ═════════════════════════════════════════════════════════════════
class PDFExporter:
    """
    Export a trace as a landscape-A4 PDF document.

    Attributes:
        title (str)       : Shown on the title page.
        code  (list|None) : Pseudocode lines; the highlighted line of
                            each step is printed when available.
    """

    def __init__(self, title="Algorithm Walkthrough", code=None):
        self.title = title
        self.code  = code or []

    def export(self, steps, filename):
        """
        Generate a PDF file from the step list.

        Raises:
            ExportError: ReportLab missing or the file cannot be written.
        """
        if not HAS_REPORTLAB:
            raise ExportError("ReportLab required.\npip install reportlab")

        try:
            pw, ph = landscape(A4)
            c = pdf_canvas.Canvas(filename, pagesize=landscape(A4))

            # ── Title page ──
            c.setFont("Helvetica-Bold", 28)
            c.drawCentredString(pw / 2, ph - 100, _pdf_text(self.title))
            c.setFont("Helvetica", 16)
            c.drawCentredString(pw / 2, ph - 140, "Step-by-Step Walkthrough")
            c.setFont("Helvetica", 12)
            c.drawCentredString(pw / 2, ph - 180,
                f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
            c.drawCentredString(pw / 2, ph - 200, f"Total Steps: {len(steps)}")
            c.showPage()

            # ── One page per step ──
            for i, st in enumerate(steps):
                c.setFont("Helvetica-Bold", 14)
                c.drawString(30, ph - 30, f"Step {i + 1} of {len(steps)}")

                c.setFont("Helvetica", 12)
                y = ph - 60
                lines = [f"Action: {st.action}", st.description]
                if st.highlight is not None and st.highlight < len(self.code):
                    lines.append(f"Code: {self.code[st.highlight].strip()}")
                for line in lines:
                    c.drawString(30, y, _pdf_text(line))
                    y -= 20

                c.setFont("Courier", 10)
                for line in simpleSplit(_pdf_text(format_snapshot(st)),
                                        "Courier", 10, pw - 60):
                    c.drawString(30, y, line)
                    y -= 14
                aux = _aux_line(st)
                if aux:
                    c.drawString(30, y - 6, _pdf_text(aux))
                c.showPage()

            # ── Summary ──
            c.setFont("Helvetica-Bold", 20)
            c.drawCentredString(pw / 2, ph - 100, "Summary")
            c.setFont("Helvetica", 12)
            y = ph - 150
            for line in [f"Total Steps: {len(steps)}",
                         f"Comparisons: {count_comparisons(steps)}",
                         f"Swaps: {count_swaps(steps)}"]:
                c.drawString(100, y, line)
                y -= 22
            c.showPage()
            c.save()
        except OSError as e:
            raise ExportError(f"Could not write {filename}: {e}") from e
        logger.info("Exported %d-step PDF walkthrough to %s", len(steps), filename)


def _pdf_text(text):
    # The built-in PDF fonts only cover Latin-1.
    text = text.replace("→", "->").replace("∞", "inf")
    return text.encode("latin-1", "ignore").decode("latin-1").strip()
