import json

import pytest


@pytest.fixture
def read_db(tmp_path):
    """Parse jse-<name>.json from tmp_path as written on disk."""
    def _read(name: str):
        return json.loads((tmp_path / f"jse-{name}.json").read_text(encoding="utf-8"))
    return _read
