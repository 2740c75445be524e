import pytest

from batchstore import set_scheduler


@pytest.fixture(autouse=True)
def _default_scheduler():
    yield
    set_scheduler(None)
