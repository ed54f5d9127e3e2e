"""
================================================================================
Allure Report Utilities
================================================================================

Attachment helpers for UI failures and post-run report generation.

Features:
- Typed attachment helpers (text, HTML, PNG)
- Failure context bundle: URL, window, page source, screenshot
- Engine diagnostics: locator health and interaction fallback reports
- Result summary and `allure generate` wrapper for the test runner

================================================================================
"""

import json
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import allure
from loguru import logger


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_text(text: str, name: str = "Text"):
    allure.attach(text, name=name, attachment_type=allure.attachment_type.TEXT)


def attach_html(html: str, name: str = "HTML"):
    allure.attach(html, name=name, attachment_type=allure.attachment_type.HTML)


def attach_png(png: bytes, name: str = "Screenshot"):
    allure.attach(png, name=name, attachment_type=allure.attachment_type.PNG)


def attach_page_state(
    url: str,
    window_handle: Optional[str] = None,
    page_source: Optional[str] = None,
    screenshot: Optional[bytes] = None,
):
    """
    Attach what the browser showed when something went wrong.

    Args:
        url: Current URL of the active window
        window_handle: Active window handle
        page_source: Serialized DOM of the active window
        screenshot: PNG bytes of the active window
    """
    with allure.step("🧭 Page state"):
        location = url if window_handle is None else f"{url}\nwindow: {window_handle}"
        attach_text(location, name="🔗 Current URL")
        if screenshot:
            attach_png(screenshot, name="📸 Screenshot")
        if page_source:
            attach_html(page_source, name="📄 Page Source")


def attach_engine_reports(locator_report: str, interaction_report: str):
    """Attach the locator-health and interaction-fallback reports."""
    with allure.step("🩺 Engine diagnostics"):
        attach_text(locator_report, name="Locator Health")
        attach_text(interaction_report, name="Interaction Fallbacks")


# ================================================================================
# Report Processing
# ================================================================================

@dataclass
class TestResultSummary:
    """Summary of test execution results."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    broken: int = 0
    skipped: int = 0
    duration_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def pass_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "broken": self.broken,
            "skipped": self.skipped,
            "pass_rate": f"{self.pass_rate:.2f}%",
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }


def summarize_results(results_dir: Path) -> TestResultSummary:
    """
    Count statuses across `*-result.json` files of an allure-results directory.

    Unreadable result files are skipped with a warning.
    """
    summary = TestResultSummary()
    results: List[Dict[str, Any]] = []
    for result_file in Path(results_dir).glob("*-result.json"):
        try:
            results.append(json.loads(result_file.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to parse {result_file}: {e}")

    summary.total = len(results)
    for result in results:
        status = result.get("status", "unknown")
        if status in ("passed", "failed", "broken", "skipped"):
            setattr(summary, status, getattr(summary, status) + 1)
        summary.duration_ms += result.get("stop", 0) - result.get("start", 0)
    return summary


def generate_allure_report(results_dir: str, output_dir: Optional[str] = None) -> bool:
    """
    Run `allure generate` and log a summary.

    Returns:
        True if the report was generated
    """
    results_path = Path(results_dir)
    report_path = Path(output_dir) if output_dir else results_path.parent / "allure-report"
    cmd = ["allure", "generate", str(results_path), "-o", str(report_path), "--clean"]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        logger.error("Allure command not found. Install allure-commandline.")
        return False

    if result.returncode != 0:
        logger.error(f"Report generation failed: {result.stderr}")
        return False

    summary = summarize_results(results_path)
    logger.info(f"Report generated at {report_path}")
    logger.info(
        f"Total {summary.total} | ✅ {summary.passed} | ❌ {summary.failed} | "
        f"⚠️ {summary.broken} | ⏭️ {summary.skipped} | pass rate {summary.pass_rate:.2f}%"
    )
    return True
