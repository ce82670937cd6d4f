"""
Shared fixtures for rpi-engine tests.
"""

import copy
import sys
import os
from types import SimpleNamespace

import pytest

# Ensure src/ and the repo root (ui/, batch_analyze.py) are importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from prompts import TOOL_NAME


# ---------------------------------------------------------------------------
# Wire-format fixtures
# ---------------------------------------------------------------------------

SAMPLE_WIRE = {
    "metrics": {"emo": 72.456, "spa": 65, "soc": 80.0},
    "weights": {"alpha": 0.4, "beta": 0.25, "gamma": 0.35},
    "rpiScore": 73.234,
    "summary": "Daily cafe visits turned into ties with harbor residents.",
    "trajectory": [
        {"period": "Week 1", "score": 35},
        {"period": "Week 2", "score": 48.5},
        {"period": "Week 3", "score": 66},
        {"period": "Week 4", "score": 82},
    ],
    "knowledgeGraph": {
        "nodes": [
            {"id": "n1", "label": "Corner Cafe", "type": "Place"},
            {"id": "n2", "label": "Mrs. Choi", "type": "Interaction"},
            {"id": "n3", "label": "Net mending", "type": "Activity"},
            {"id": "n4", "label": "Harbor", "type": "Place"},
        ],
        "edges": [
            {"source": "n1", "target": "n2", "strength": 0.9},
            {"source": "n3", "target": "n4", "strength": 0.75},
            {"source": "n2", "target": "n4", "strength": 0.4},
        ],
    },
    "criticalPeriod": "Week 3",
    "shapValue": {"emo": 12.3, "spa": -4.0, "soc": 8.5},
}


@pytest.fixture
def sample_wire():
    """Well-formed model answer (fresh copy per test)."""
    return copy.deepcopy(SAMPLE_WIRE)


@pytest.fixture
def sample_result(sample_wire):
    from parsers.response_parser import parse_analysis
    return parse_analysis(sample_wire)


@pytest.fixture
def sample_narrative():
    return (
        "[Week 1] Arrived in Gangneung. Walked the beach alone.\n"
        "[Week 3] The cafe owner introduced me to two fishermen.\n"
        "[Week 4] They asked if I would come back in autumn."
    )


# ---------------------------------------------------------------------------
# Fake Anthropic client
# ---------------------------------------------------------------------------

class FakeMessages:
    """Records create() kwargs; returns a canned response or raises."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def tool_response(payload):
    return SimpleNamespace(content=[
        SimpleNamespace(type="tool_use", name=TOOL_NAME, input=payload),
    ])


def text_response(text):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


@pytest.fixture
def make_client():
    """make_client(response=..., error=...) -> object with .messages.create."""
    def _make(response=None, error=None):
        return SimpleNamespace(messages=FakeMessages(response, error))
    return _make


@pytest.fixture
def tool_client(make_client, sample_wire):
    """Client whose reply is a tool_use block carrying the sample answer."""
    return make_client(tool_response(sample_wire))


@pytest.fixture
def make_tool_response():
    return tool_response


@pytest.fixture
def make_text_response():
    return text_response
