"""
Pytest Configuration and Fixtures

This module provides:
- A timestamped plain-text result report per run
- Shared fixtures: temporary pins directory, stores, catalog, fetcher
- Credential fixtures that isolate tests from the developer's .env
"""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import Mock

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tests.test_config import CONFIG, TEST_CATEGORIES, TEST_DATA


# =============================================================================
# TEST RESULT FILE CONFIGURATION
# =============================================================================

RESULTS_DIR = PROJECT_ROOT / "test_results"


def get_result_filename() -> str:
    """Generate timestamped result filename."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"test_results_{timestamp}.txt"


# =============================================================================
# PYTEST HOOKS FOR CUSTOM OUTPUT
# =============================================================================

class TestResultCollector:
    """Collects test results for the report file."""

    __test__ = False

    def __init__(self):
        self.results: List[Dict[str, Any]] = []
        self.start_time: datetime = None
        self.end_time: datetime = None
        self.categories: Dict[str, List[Dict]] = {}

    def add_result(self, nodeid: str, outcome: str, duration: float, message: str = ""):
        category = self._extract_category(nodeid)
        result = {
            "nodeid": nodeid,
            "name": nodeid.split("::")[-1].replace("test_", "").replace("_", " ").title(),
            "category": category,
            "outcome": outcome,
            "duration": duration,
            "message": message,
        }
        self.results.append(result)
        self.categories.setdefault(category, []).append(result)

    def _extract_category(self, nodeid: str) -> str:
        """tests/test_system_idempotency.py::TestX::test_y -> system_idempotency"""
        filename = nodeid.split("::")[0].split("/")[-1]
        return filename.replace("test_", "", 1).replace(".py", "")

    def get_summary(self) -> Dict[str, int]:
        return {
            "total": len(self.results),
            "passed": sum(1 for r in self.results if r["outcome"] == "passed"),
            "failed": sum(1 for r in self.results if r["outcome"] == "failed"),
            "skipped": sum(1 for r in self.results if r["outcome"] == "skipped"),
        }


_collector = TestResultCollector()


def pytest_configure(config):
    """Register custom markers and start the collector."""
    for marker, info in TEST_CATEGORIES.items():
        config.addinivalue_line("markers", f"{marker}: {info['description']}")
    _collector.start_time = datetime.now()


def pytest_runtest_logreport(report):
    """Record the outcome of each test call."""
    if report.when == "call":
        _collector.add_result(
            nodeid=report.nodeid,
            outcome=report.outcome,
            duration=report.duration,
            message=str(report.longrepr) if report.longrepr else "",
        )


def pytest_sessionfinish(session, exitstatus):
    """Write the report file after all tests complete."""
    _collector.end_time = datetime.now()
    if not _collector.results:
        return
    RESULTS_DIR.mkdir(exist_ok=True)
    filepath = RESULTS_DIR / get_result_filename()
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(generate_formatted_report(_collector))


def generate_formatted_report(collector: TestResultCollector) -> str:
    """Generate a formatted test report."""
    summary = collector.get_summary()
    lines = [
        "=" * 80,
        "PINFEED - TEST RESULTS REPORT",
        "=" * 80,
        f"Run Date:     {collector.start_time.strftime('%Y-%m-%d %H:%M:%S')}",
    ]
    if collector.end_time:
        duration = (collector.end_time - collector.start_time).total_seconds()
        lines.append(f"Duration:     {duration:.2f} seconds")
    lines.extend([
        "",
        f"Total Tests:  {summary['total']}",
        f"Passed:       {summary['passed']} ✓",
        f"Failed:       {summary['failed']} ✗",
        f"Skipped:      {summary['skipped']} ○",
        "",
    ])

    for category, results in sorted(collector.categories.items()):
        info = TEST_CATEGORIES.get(category.replace("system_", ""), {})
        lines.append(f"[{info.get('name', category.replace('_', ' ').title())}]")
        for protection in info.get("protects_against", []):
            lines.append(f"  protects against: {protection}")
        for result in results:
            status = "✓" if result["outcome"] == "passed" else "✗" if result["outcome"] == "failed" else "○"
            lines.append(f"  {status} {result['name']:<60} ({result['duration'] * 1000:.0f}ms)")
            if result["outcome"] == "failed" and result["message"]:
                for msg_line in result["message"].split("\n")[:3]:
                    if msg_line.strip():
                        lines.append(f"      └─ {msg_line[:70]}")
        lines.append("")

    lines.append("=" * 80)
    return "\n".join(lines)


# =============================================================================
# SHARED FIXTURES
# =============================================================================

@pytest.fixture
def no_credentials(monkeypatch):
    """Unset every source credential, in the environment and in config."""
    import pinfeed.config.config as config_module

    for key in config_module.CREDENTIAL_KEYS:
        monkeypatch.delenv(key, raising=False)
        monkeypatch.setattr(config_module, key, "")
    return monkeypatch


@pytest.fixture
def all_credentials(no_credentials):
    """Set dummy values for every source credential."""
    for keys in CONFIG["source_credentials"].values():
        for key in keys:
            no_credentials.setenv(key, f"test-{key.lower()}")
    return no_credentials


@pytest.fixture
def pins_dir(tmp_path):
    """A pins directory populated with the sample pin files."""
    directory = tmp_path / "pins"
    directory.mkdir()
    for name, content in TEST_DATA["pin_files"].items():
        (directory / name).write_text(content, encoding="utf-8")
    return directory


@pytest.fixture
def catalog_file(tmp_path):
    """A thumbnail catalog file with the sample entries."""
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(TEST_DATA["catalog"]), encoding="utf-8")
    return path


@pytest.fixture
def cache_file(tmp_path):
    """A metadata cache file with the sample entries."""
    path = tmp_path / "cache" / "opengraph-cache.json"
    path.parent.mkdir()
    path.write_text(json.dumps(TEST_DATA["cache"], indent=2), encoding="utf-8")
    return path


@pytest.fixture
def memory_store():
    """An empty in-memory metadata store."""
    from pinfeed.storage.json_cache import MemoryMetadataStore

    return MemoryMetadataStore()


@pytest.fixture
def mock_fetcher():
    """A fetcher that returns a page with an image for every URL."""
    from pinfeed.fetching.opengraph import OpenGraphData, OpenGraphFetcher

    fetcher = Mock(spec=OpenGraphFetcher)
    fetcher.name = "mock_fetcher"
    fetcher.fetch.side_effect = lambda url: OpenGraphData(
        title=f"Fetched {url}",
        description="Fetched description",
        image_url=f"{url.rstrip('/')}/og.jpg",
        site_name="Fetched Site",
    )
    return fetcher


@pytest.fixture
def pipeline_config(tmp_path, pins_dir, cache_file, catalog_file):
    """PipelineConfig pointing every path into tmp_path, with no fetch delay."""
    from pinfeed.pipeline import PipelineConfig

    return PipelineConfig(
        pins_dir=str(pins_dir),
        output_path=str(tmp_path / "out" / "pins-data.json"),
        cache_path=str(cache_file),
        catalog_path=str(catalog_file),
        fetch_delay=0.0,
    )
