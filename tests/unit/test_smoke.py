"""
Smoke tests to verify all runtime dependencies are installed correctly.

Run with: pytest tests/unit/test_smoke.py -v
"""

import sys


class TestPythonVersion:
    """Verify Python version requirements."""

    def test_python_311_or_higher(self) -> None:
        assert sys.version_info >= (3, 11), (
            f"Python 3.11+ required, "
            f"got {sys.version_info.major}.{sys.version_info.minor}"
        )


class TestDependencies:
    """Verify the libraries the engine is built on."""

    def test_pydantic_v2(self) -> None:
        """Payload models use the pydantic v2 API."""
        import pydantic

        major_version = int(pydantic.VERSION.split(".")[0])
        assert major_version >= 2, f"Pydantic v2 required, got {pydantic.VERSION}"

    def test_structlog_import(self) -> None:
        import structlog

        assert structlog.get_logger() is not None

    def test_prometheus_client_import(self) -> None:
        from prometheus_client import CollectorRegistry

        assert CollectorRegistry() is not None

    def test_cli_libraries_import(self) -> None:
        import rich
        import typer

        assert typer.Typer is not None
        assert rich is not None


class TestProject:
    """Verify the project package itself."""

    def test_version(self, project_version: str) -> None:
        assert project_version == "0.1.0"
