"""Shared pytest fixtures for the reservoirstats suite."""

import logging
from pathlib import Path

import pytest

ARTIFACT_ROOT = Path(__file__).parent.parent / "test_output"


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """Top-level folder for artifacts (plots) that outlive the test run."""
    ARTIFACT_ROOT.mkdir(exist_ok=True)
    return ARTIFACT_ROOT


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """Per-test artifact folder: test_output/<module>/<test>/."""
    module = request.module.__name__.rsplit(".", 1)[-1]
    folder = test_output_root / module / request.node.name
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def _silence(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def reset_reservoirstats_logging():
    """Each test starts and ends with the package logger silent."""
    logger = logging.getLogger("reservoirstats")
    _silence(logger)
    yield
    _silence(logger)
