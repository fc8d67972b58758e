"""Pytest configuration and fixtures for Kiln tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from kiln import Displayable, Environment, Scalar


@pytest.fixture
def env():
    """Environment that displays scalars and displayable values."""
    return Environment(types={Displayable, Scalar})


@pytest.fixture
def env_debug():
    """Environment that raises on undefined or disallowed values."""
    return Environment(types={Displayable, Scalar}, debug=True)


@pytest.fixture
def write_template(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a template file under tmp_path and return its path."""

    def _write(source: str, name: str = "page.html") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8", newline="")
        return path

    return _write


def compile_source(env: Environment, source: str, **variables) -> str:
    """Compile source with ``variables`` as the compile-time variables."""
    return env.compile(source, variables=variables)
