"""Parse the markdown QA report into summary and per-section test results."""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

SECTION_NAMES: tuple[str, ...] = ("Backend API Tests", "Frontend E2E Tests")

_SUMMARY_PATTERNS: dict[str, re.Pattern[str]] = {
    "total": re.compile(r"- \*\*Total Tests:\*\* (\d+)"),
    "passed": re.compile(r"- \*\*Passed:\*\* (\d+)"),
    "failed": re.compile(r"- \*\*Failed:\*\* (\d+)"),
    "skipped": re.compile(r"- \*\*Skipped:\*\* (\d+)"),
}
_PASS_RATE_RE = re.compile(r"- \*\*Pass Rate:\*\* ([\d.]+)%")

# Status -> heading marker used in the report
_STATUS_HEADINGS: tuple[tuple[str, str], ...] = (
    ("failed", "### ❌ Failed Tests"),
    ("passed", "### ✅ Passed Tests"),
    ("skipped", "### ⏭️ Skipped Tests"),
)
_ITEM_RE = re.compile(r"\d+\. \*\*(.*?)\*\*")


def _section_body(content: str, name: str) -> str | None:
    match = re.search(
        rf"^## {re.escape(name)}\n\n(.*?)(?=^## |\Z)", content, re.DOTALL | re.MULTILINE
    )
    return match.group(1) if match else None


def extract_tests(section: str) -> list[dict]:
    """Return ``{name, status}`` items for every test listed in *section*."""
    tests: list[dict] = []
    for status, heading in _STATUS_HEADINGS:
        match = re.search(
            rf"{re.escape(heading)}.*?\n\n(.*?)(?=^### |\Z)", section, re.DOTALL | re.MULTILINE
        )
        if not match:
            continue
        for item in _ITEM_RE.finditer(match.group(1)):
            tests.append({"name": item.group(1), "status": status})
    return tests


def summarize_section(name: str, tests: list[dict]) -> dict:
    return {
        "name": name,
        "tests": tests,
        "passed": sum(1 for t in tests if t["status"] == "passed"),
        "failed": sum(1 for t in tests if t["status"] == "failed"),
        "skipped": sum(1 for t in tests if t["status"] == "skipped"),
    }


def parse_qa_report_text(content: str) -> dict:
    summary: dict = {}
    for key, pattern in _SUMMARY_PATTERNS.items():
        match = pattern.search(content)
        summary[key] = int(match.group(1)) if match else 0
    rate = _PASS_RATE_RE.search(content)
    summary["passRate"] = rate.group(1) if rate else "0"

    sections: list[dict] = []
    for name in SECTION_NAMES:
        body = _section_body(content, name)
        if body is not None:
            sections.append(summarize_section(name, extract_tests(body)))

    return {"summary": summary, "sections": sections}


def parse_qa_report(path: Path) -> dict | None:
    """Parse the QA report at *path*.

    Returns ``None`` if the file does not exist or cannot be read.
    """
    if not path.is_file():
        return None
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Error parsing QA report %s: %s", path, exc)
        return None
    return parse_qa_report_text(content)
