"""Pytest configuration for assayer tests."""
import sys
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest

from assayer.context import ScenarioContext
from assayer.settings import RunSettings


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at an empty scenario folder."""
    tests_dir = tmp_path / 'scenarios'
    tests_dir.mkdir()
    return RunSettings(
        output='text',
        environment='test',
        base_url='https://example.test/',
        tests_dir=str(tests_dir),
        timeout_ms=500,
    )


@pytest.fixture
def context(settings):
    """A fresh scenario context."""
    return ScenarioContext('Scenario under test', settings)
