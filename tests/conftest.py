import logging

import pytest

from tests.helpers import MemoryBlobStore
from traffic_stats.consolidate.dataset import TrafficDataset


@pytest.fixture
def logger():
    return logging.getLogger('tests.traffic_stats')


@pytest.fixture
def memory_store():
    return MemoryBlobStore()


@pytest.fixture
def dataset(memory_store, logger):
    return TrafficDataset(memory_store, logger)
