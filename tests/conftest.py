import os
import sys

import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from watermark_eraser.models.engine_config import EngineConfig


@pytest.fixture
def config() -> EngineConfig:
    """Documented defaults, independent of any WM_* variables in the shell."""
    return EngineConfig()
