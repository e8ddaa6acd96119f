"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides testing settings, a renderer bound to a per-test temp directory and
a patched asy subprocess.
"""

import os
import shutil
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

# Configure the environment before the package reads its settings
os.environ.setdefault("MCP_GEO_ENVIRONMENT", "testing")
os.environ.setdefault("MCP_GEO_LOG_LEVEL", "DEBUG")

from mcp_geo.config.settings import Settings
from pydantic_settings import SettingsConfigDict
from mcp_geo.core.rendering.asy_renderer import AsymptoteRenderer
from mcp_geo.mcp_server.server import AsyGeoMCPServer

from tests.utils.mocks import MockAsyExecutable


# Test settings override
class TestSettings(Settings):
    """Test-specific settings."""

    environment: str = "testing"
    debug: bool = True
    log_level: str = "DEBUG"

    model_config = SettingsConfigDict(env_file=".env.test", env_prefix="MCP_GEO_")


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Directory used by the renderer for request files."""
    path = tmp_path / "asy_work"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(work_dir: Path) -> TestSettings:
    """Test settings fixture."""
    return TestSettings(temp_path=work_dir)


@pytest.fixture
def renderer(test_settings: TestSettings) -> AsymptoteRenderer:
    """Renderer writing into the per-test work directory."""
    return AsymptoteRenderer(test_settings)


@pytest.fixture
def mcp_server(renderer: AsymptoteRenderer, test_settings: TestSettings) -> AsyGeoMCPServer:
    """MCP server wired to the test renderer."""
    with patch("mcp_geo.mcp_server.server.get_settings", return_value=test_settings):
        return AsyGeoMCPServer(renderer=renderer)


@pytest.fixture
def mock_asy() -> Generator[MockAsyExecutable, None, None]:
    """Successful asy run that writes the requested image."""
    executable = MockAsyExecutable()
    with patch(
        "mcp_geo.core.rendering.asy_renderer.asyncio.create_subprocess_exec", new=executable
    ):
        yield executable


@pytest.fixture
def patch_asy():
    """Factory fixture installing a configured MockAsyExecutable."""
    patchers = []

    def _install(**kwargs) -> MockAsyExecutable:
        executable = MockAsyExecutable(**kwargs)
        patcher = patch(
            "mcp_geo.core.rendering.asy_renderer.asyncio.create_subprocess_exec", new=executable
        )
        patcher.start()
        patchers.append(patcher)
        return executable

    yield _install

    for patcher in patchers:
        patcher.stop()


@pytest.fixture
def sample_asy_code() -> str:
    """A small triangle with labelled vertices."""
    return (
        "size(100);\n"
        "pair A=(0,0), B=(1,0), C=(0.5,0.8);\n"
        "draw(A--B--C--cycle);\n"
        'label("$A$", A, SW); label("$B$", B, SE); label("$C$", C, N);\n'
    )


asy_available = shutil.which("asy") is not None


# Pytest configuration
def pytest_collection_modifyitems(config, items):
    """Add markers based on file paths and skip tests that need asy when it is missing."""
    skip_asy = pytest.mark.skip(reason="Asymptote (asy) is not installed")
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        if "requires_asy" in item.keywords and not asy_available:
            item.add_marker(skip_asy)
