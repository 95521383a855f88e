"""
Pytest configuration and shared fakes for the Dispatch api walkthrough tests
"""
import sys
from pathlib import Path

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeResponse:
    """Stands in for requests.Response; records whether the body was read."""

    def __init__(self, status_code=200, body=None, raise_on_json=False):
        self.status_code = status_code
        self._body = body
        self._raise_on_json = raise_on_json
        self.json_calls = 0

    def json(self):
        self.json_calls += 1
        if self._raise_on_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._body


def ok(data):
    return FakeResponse(200, {"success": True, "data": data})


@pytest.fixture
def make_response():
    return FakeResponse


@pytest.fixture
def ok_response():
    return ok
