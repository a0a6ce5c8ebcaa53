import importlib
from pathlib import Path

import pytest

SCRIPTS = Path(__file__).resolve().parents[1] / "scripts"


@pytest.fixture
def load_script(monkeypatch):
    # a regular import, so spawned workers can unpickle script functions
    monkeypatch.syspath_prepend(str(SCRIPTS))
    return importlib.import_module
