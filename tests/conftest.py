import pytest
from fakes import RecordingSink


@pytest.fixture
def reporter():
    return RecordingSink()


@pytest.fixture
def observer():
    return RecordingSink()
