from __future__ import annotations

from pathlib import Path

import pytest

_TIMING_TEST_FILES = {
    "test_cancellation.py",
}


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))
        name = path.name

        if "property" in path.parts:
            item.add_marker(pytest.mark.property)
            item.add_marker(pytest.mark.slow)

        if name in _TIMING_TEST_FILES:
            item.add_marker(pytest.mark.timing)
