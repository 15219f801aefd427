import pytest

from limx.catalog import Catalog
from limx.config import Settings
from limx.engine import LimitEngine


@pytest.fixture(scope="session")
def catalog():
    return Catalog.from_file()


@pytest.fixture(scope="session")
def engine(catalog):
    return LimitEngine(catalog, Settings())
