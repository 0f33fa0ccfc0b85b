import os, sys

import pytest
from fastapi.testclient import TestClient

# Make the shared builders importable from every test module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from support import LedgerHarness
from trustlend.api import create_app


@pytest.fixture
def harness():
    return LedgerHarness()


@pytest.fixture
def client(harness):
    return TestClient(create_app(harness.ledger))
