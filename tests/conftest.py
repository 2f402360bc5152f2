"""Shared pytest fixtures for depcheck tests."""

import json
from pathlib import Path

import pytest
import structlog


@pytest.fixture(autouse=True, scope="session")
def _route_structlog_to_stdlib():
    # structlog's default logger prints to stdout; send records through stdlib
    # logging so pytest captures them and CLI output stays clean
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_project(tmp_path: Path):
    """Build a project tree: ``make_project({"index.js": "..."}, package={...})``.

    *package* is written as package.json unless None. File keys are POSIX
    paths relative to the project root, written in order.
    """

    def _make(
        files: dict[str, str] | None = None,
        package: dict | None = None,
        name: str = "project",
    ) -> Path:
        root = tmp_path / name
        root.mkdir()
        if package is not None:
            (root / "package.json").write_text(json.dumps(package))
        for rel_path, content in (files or {}).items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _make


@pytest.fixture
def installed(tmp_path: Path):
    """Write ``node_modules/<name>/package.json`` under a project root."""

    def _install(root: Path, name: str, package: dict) -> Path:
        module_dir = root / "node_modules" / name
        module_dir.mkdir(parents=True)
        (module_dir / "package.json").write_text(json.dumps({"name": name, **package}))
        return module_dir

    return _install
