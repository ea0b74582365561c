"""HTML report generator — produces a self-contained visual regression report for one run."""

from __future__ import annotations

import base64
import html
import logging
from pathlib import Path

from src.errors import ReportWriteError
from src.models.visual_result import RunReport, ScreenEntry, ScreenStatus

from .json_report import format_match

logger = logging.getLogger(__name__)

_BADGES = {
    ScreenStatus.PASSED: ("pass", "PASSED"),
    ScreenStatus.FAILED: ("fail", "FAILED"),
    ScreenStatus.MISSING_BASELINE: ("missing", "MISSING BASELINE"),
    ScreenStatus.MISSING_CAPTURE: ("missing", "NOT CAPTURED"),
    ScreenStatus.ERROR: ("error", "ERROR"),
}


def _embed_image(path: str) -> str:
    """Read an image file and return a base64 data URI, or empty string on failure."""
    try:
        p = Path(path)
        if not p.exists() or p.stat().st_size == 0:
            return ""
        with open(p, "rb") as f:
            data = base64.b64encode(f.read()).decode()
        suffix = p.suffix.lower()
        mime = "image/png" if suffix == ".png" else "image/jpeg" if suffix in (".jpg", ".jpeg") else "image/webp"
        return f"data:{mime};base64,{data}"
    except OSError as e:
        logger.warning("Could not embed image %s: %s", path, e)
        return ""


def _badge(status: ScreenStatus) -> str:
    css, label = _BADGES[status]
    return f'<span class="badge {css}">{label}</span>'


def _format_average(report: RunReport) -> str:
    avg = report.average_match
    return "N/A" if avg is None else f"{avg:.1f}%"


def _build_screen_card(entry: ScreenEntry) -> str:
    """Build an HTML card for a single screen comparison."""
    result = entry.result
    diff_count = result.diff_pixel_count if result else entry.recorded_diff_pixels
    diff_pixels = "&mdash;" if diff_count is None else f"{diff_count:,}"
    total_pixels = f"{result.total_pixel_count:,}" if result else "&mdash;"

    card = f'''
    <div class="screen-card status-{entry.status.value}">
      <div class="screen-header">
        <div class="screen-title">{html.escape(entry.name)}</div>
        {_badge(entry.status)}
      </div>
      <div class="screen-details">
        <div class="detail-item"><div class="detail-value">{format_match(entry.match)}</div><div class="detail-label">Match</div></div>
        <div class="detail-item"><div class="detail-value">{diff_pixels}</div><div class="detail-label">Diff Pixels</div></div>
        <div class="detail-item"><div class="detail-value">{total_pixels}</div><div class="detail-label">Total Pixels</div></div>
      </div>'''

    if entry.error:
        card += f'<div class="failure-banner">{html.escape(entry.error)}</div>'

    if result and result.comparison_image_path:
        data_uri = _embed_image(result.comparison_image_path)
        if data_uri:
            card += f'''
      <div class="comparison-image">
        <img src="{data_uri}" alt="Comparison for {html.escape(entry.name)}" onclick="this.classList.toggle('zoomed')"/>
      </div>'''

    card += '</div>'
    return card


def generate_html_report(report: RunReport, output_path: Path) -> None:
    """Generate a self-contained HTML report; images are inlined so nothing is fetched at view time."""
    device = report.device_name or report.device_id
    cards = "".join(_build_screen_card(s) for s in report.screens)
    if not report.screens:
        cards = '<p class="empty">No screens were compared in this run.</p>'

    report_html = f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Visual Regression Report &mdash; {html.escape(device)}</title>
<style>
  :root {{ --pass: #22c55e; --fail: #ef4444; --missing: #eab308; --error: #f97316; --bg: #f8fafc; --card: white; --border: #e2e8f0; --text: #1e293b; --muted: #64748b; --accent: #6366f1; }}
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: var(--bg); color: var(--text); line-height: 1.6; padding: 1.5rem; }}
  .container {{ max-width: 1400px; margin: 0 auto; }}
  h1 {{ font-size: 1.8rem; margin-bottom: 0.3rem; }}
  h2 {{ font-size: 1.1rem; margin-bottom: 0.8rem; }}
  .meta {{ color: var(--muted); margin-bottom: 1.5rem; font-size: 0.9rem; }}
  .summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 0.8rem; margin-bottom: 1.5rem; }}
  .stat {{ background: var(--card); border-radius: 8px; padding: 1rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); text-align: center; }}
  .stat .value {{ font-size: 1.8rem; font-weight: 700; color: var(--accent); }}
  .stat .label {{ font-size: 0.8rem; color: var(--muted); }}
  .stat.pass .value {{ color: var(--pass); }}
  .stat.fail .value {{ color: var(--fail); }}
  .badge {{ display: inline-block; padding: 0.15rem 0.7rem; border-radius: 9999px; font-size: 0.75rem; font-weight: 600; white-space: nowrap; }}
  .badge.pass {{ background: #dcfce7; color: #166534; }}
  .badge.fail {{ background: #fecaca; color: #991b1b; }}
  .badge.missing {{ background: #fef9c3; color: #854d0e; }}
  .badge.error {{ background: #fed7aa; color: #9a3412; }}
  .screen-card {{ background: var(--card); border-radius: 8px; margin-bottom: 0.8rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); overflow: hidden; border-left: 4px solid var(--muted); }}
  .screen-card.status-passed {{ border-left-color: var(--pass); }}
  .screen-card.status-failed {{ border-left-color: var(--fail); }}
  .screen-card.status-missing_baseline, .screen-card.status-missing_capture {{ border-left-color: var(--missing); }}
  .screen-card.status-error {{ border-left-color: var(--error); }}
  .screen-header {{ display: flex; justify-content: space-between; align-items: center; padding: 0.7rem 1rem; background: #f8fafc; }}
  .screen-title {{ font-size: 1.05rem; font-weight: 600; }}
  .screen-details {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(130px, 1fr)); gap: 0.6rem; padding: 0.8rem 1rem; }}
  .detail-item {{ text-align: center; }}
  .detail-value {{ font-size: 1.3rem; font-weight: 700; color: var(--accent); }}
  .detail-label {{ font-size: 0.8rem; color: var(--muted); }}
  .failure-banner {{ background: #fef2f2; border: 1px solid #fecaca; color: #991b1b; border-radius: 6px; padding: 0.6rem 0.8rem; margin: 0 1rem 0.8rem 1rem; font-size: 0.88rem; }}
  .comparison-image {{ padding: 0 1rem 1rem 1rem; }}
  .comparison-image img {{ width: 100%; border-radius: 6px; border: 1px solid var(--border); cursor: pointer; }}
  .comparison-image img.zoomed {{ position: fixed; top: 5%; left: 5%; width: 90%; height: 90%; object-fit: contain; z-index: 1000; background: rgba(0,0,0,0.85); border: none; border-radius: 8px; padding: 1rem; }}
  .empty {{ color: var(--muted); font-style: italic; }}
</style>
</head>
<body>
<div class="container">
  <h1>Visual Regression Report</h1>
  <p class="meta">Device: {html.escape(device)} &middot; API {html.escape(report.api_level)} &middot; {html.escape(report.timestamp)} &middot; Duration: {report.duration_seconds}s</p>

  <div class="summary">
    <div class="stat"><div class="value">{report.total_screens}</div><div class="label">Total Screens</div></div>
    <div class="stat pass"><div class="value">{report.passed_count}</div><div class="label">Passed</div></div>
    <div class="stat fail"><div class="value">{report.failed_count}</div><div class="label">Failed</div></div>
    <div class="stat"><div class="value">{_format_average(report)}</div><div class="label">Average Match</div></div>
  </div>

  <h2>Screen Comparisons</h2>
  <div id="screen-list">
    {cards}
  </div>
</div>
</body>
</html>'''

    try:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(report_html)
    except OSError as e:
        raise ReportWriteError(output_path, str(e)) from e
