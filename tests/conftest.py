import pytest
from campusstore import create_store
from campusstore.config import TestingConfig


@pytest.fixture
def store(tmp_path):
    return create_store(TestingConfig, DATA_DIR=str(tmp_path / 'data'))
