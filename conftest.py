import pytest

from bookshelf.library import Library
from bookshelf.ui_helpers import OUTPUT_MODE_ENV


@pytest.fixture
def data_file(tmp_path, request):
    # Each test gets its own data file
    return str(tmp_path / f"library_{request.node.name}.json")


@pytest.fixture
def lib(data_file):
    return Library(data_file=data_file)


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)
