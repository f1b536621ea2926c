"""Fixtures for slide conversion integration tests.

These tests require a real slide file. They are skipped if none is available.

Test files can be provided via:
1. SLIDE_TEST_FILE environment variable pointing to a local slide
2. A slide placed in the ``data`` directory next to this file

The CMU-1-Small-Region.svs file (~2MB) is recommended for CI:
    https://openslide.cs.cmu.edu/download/openslide-testdata/Aperio/CMU-1-Small-Region.svs
"""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from mrxs2ometiff.source import SUPPORTED_EXTENSIONS

pytestmark = pytest.mark.integration


def get_test_slide_path() -> Path | None:
    """Get the path to a real slide test file.

    Returns:
        Path to the slide if available, None otherwise.
    """
    env_path = os.environ.get("SLIDE_TEST_FILE")
    if env_path:
        path = Path(env_path)
        if path.exists() and path.suffix.lower() in SUPPORTED_EXTENSIONS:
            return path

    test_data_dir = Path(__file__).parent / "data"
    if test_data_dir.exists():
        for pattern in ("*.mrxs", "*.svs"):
            for slide in sorted(test_data_dir.glob(pattern)):
                return slide

    return None


@pytest.fixture(scope="session")
def slide_test_file() -> Generator[Path, None, None]:
    """Provide path to a real slide test file.

    Skips the test if no test file is available.
    """
    path = get_test_slide_path()
    if path is None:
        pytest.skip(
            "No slide test file available. "
            "Set SLIDE_TEST_FILE environment variable or download test data. "
            "Example: curl -LO https://openslide.cs.cmu.edu/download/"
            "openslide-testdata/Aperio/CMU-1-Small-Region.svs"
        )
    yield path
