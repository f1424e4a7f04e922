import pathlib
import site

import pytest
from pgenum.adapters import CodecRegistry

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def clear_codec_registry():
    """Clear the global codec registry before and after each test to ensure test isolation."""
    CodecRegistry.get_instance().clear()
    yield
    CodecRegistry.get_instance().clear()


pytest_plugins = [
    'tests.fixtures.enums',
    'tests.fixtures.mocks',
    'tests.fixtures.postgres',
]
