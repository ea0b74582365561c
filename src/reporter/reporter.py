"""Report generation orchestration for a single run."""

from __future__ import annotations

import logging
from pathlib import Path

from src.errors import ReportWriteError
from src.models.visual_result import RunReport

from .html_report import generate_html_report
from .json_report import generate_json_report

logger = logging.getLogger(__name__)

JSON_REPORT_NAME = "visual-regression-report.json"
HTML_REPORT_NAME = "visual-regression-report.html"


class RunReporter:
    """Writes a run's JSON and HTML reports into its results directory."""

    def __init__(self, output_dir: Path, report_formats: list[str] | None = None):
        self.output_dir = output_dir
        self.report_formats = report_formats or ["html", "json"]

    def write(self, report: RunReport) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ReportWriteError(self.output_dir, str(e)) from e
        generated = {}
        logger.debug("Report output directory: %s", self.output_dir)

        if "json" in self.report_formats:
            path = self.output_dir / JSON_REPORT_NAME
            generate_json_report(report, path)
            generated["json"] = str(path)
            logger.info("JSON report: %s", path)

        if "html" in self.report_formats:
            path = self.output_dir / HTML_REPORT_NAME
            generate_html_report(report, path)
            generated["html"] = str(path)
            logger.info("HTML report: %s", path)

        return generated
