import pytest

from catalog import CatalogStore
from ui_helpers import OUTPUT_MODE_ENV


@pytest.fixture
def store():
    # Every test gets its own freshly seeded catalog
    return CatalogStore(seed=True)


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)
