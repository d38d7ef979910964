from __future__ import annotations

import html
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from hercules_bridge.core.errors import CollectionError
from hercules_bridge.core.security import slugify_name

PROOFS_DIR = "proofs"
SYNTHETIC_SCREENSHOTS_DIR = "screenshots"
LOGS_DIR = "logs"

# (base relative to output dir, subdirectory, extension)
SCREENSHOT_SOURCES = ((PROOFS_DIR, "screenshots", ".png"), ("", SYNTHETIC_SCREENSHOTS_DIR, ".png"))
VIDEO_SOURCES = ((PROOFS_DIR, "videos", ".webm"),)
LOG_SOURCES = (("", LOGS_DIR, ".log"),)
NETWORK_LOG_SOURCES = ((PROOFS_DIR, "network_logs", ".json"),)


@dataclass
class CollectedArtifacts:
    screenshots: list[str] = field(default_factory=list)
    videos: list[str] = field(default_factory=list)
    logs: list[str] = field(default_factory=list)
    network_logs: list[str] = field(default_factory=list)
    junit_xml: str = ""
    html_report: str = ""

    def has_output(self) -> bool:
        return bool(self.screenshots or self.videos or self.logs or self.junit_xml or self.html_report)


def report_stem(test_case_name: str) -> str:
    return f"{slugify_name(test_case_name)}_result"


def junit_xml_path(output_dir: Path, test_case_name: str) -> Path:
    return output_dir / f"{report_stem(test_case_name)}.xml"


def html_report_path(output_dir: Path, test_case_name: str) -> Path:
    return output_dir / f"{report_stem(test_case_name)}.html"


def collect_files(base_dir: Path, sub_dir: str, extension: str) -> list[str]:
    target = base_dir / sub_dir if sub_dir else base_dir
    if not target.is_dir():
        return []
    return sorted(str(path) for path in target.iterdir() if path.is_file() and path.name.endswith(extension))


def _collect(output_dir: Path, sources: tuple[tuple[str, str, str], ...]) -> list[str]:
    found: list[str] = []
    for base, sub_dir, extension in sources:
        found.extend(collect_files(output_dir / base if base else output_dir, sub_dir, extension))
    return found


def collect_artifacts(output_dir: Path, test_case_name: str) -> CollectedArtifacts:
    """Scan the runner's output layout. Read-only; safe to call repeatedly."""
    try:
        junit = junit_xml_path(output_dir, test_case_name)
        report = html_report_path(output_dir, test_case_name)
        return CollectedArtifacts(
            screenshots=_collect(output_dir, SCREENSHOT_SOURCES),
            videos=_collect(output_dir, VIDEO_SOURCES),
            logs=_collect(output_dir, LOG_SOURCES),
            network_logs=_collect(output_dir, NETWORK_LOG_SOURCES),
            junit_xml=str(junit) if junit.is_file() else "",
            html_report=str(report) if report.is_file() else "",
        )
    except OSError as exc:
        raise CollectionError(f"Failed to collect artifacts from {output_dir}: {exc}") from exc


def render_junit_xml(test_case_name: str, execution_time_ms: int) -> str:
    seconds = f"{execution_time_ms / 1000:g}"
    suites = ET.Element("testsuites")
    suite = ET.SubElement(
        suites,
        "testsuite",
        name=test_case_name,
        tests="1",
        failures="0",
        errors="0",
        time=seconds,
    )
    ET.SubElement(suite, "testcase", name="test_scenario", time=seconds, status="passed")
    ET.indent(suites)
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(suites, encoding="unicode") + "\n"


def render_html_report(test_case_name: str, execution_time_ms: int) -> str:
    name = html.escape(test_case_name)
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        f"<head><title>Test Report - {name}</title></head>\n"
        "<body>\n"
        f"  <h1>Test Report: {name}</h1>\n"
        "  <p>Status: Passed</p>\n"
        f"  <p>Execution Time: {execution_time_ms}ms</p>\n"
        "  <p>This is a mock report for testing purposes.</p>\n"
        "</body>\n"
        "</html>\n"
    )
