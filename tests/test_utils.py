"""
Tests for src/utils.py — stages, contribution helpers, report export.
"""

import sys, os, json
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from models import RPIWeights
from utils import (
    STAGE_STABLE, STAGE_POTENTIAL, STAGE_EARLY,
    rpi_stage, rpi_stage_short, weighted_composite, contribution_bar_width,
    format_contribution, dominant_factor, top_edges, trajectory_delta,
    format_report, report_to_json,
)


class TestRpiStage:
    def test_thresholds(self):
        assert rpi_stage(100) == STAGE_STABLE
        assert rpi_stage(80) == STAGE_STABLE
        assert rpi_stage(79.99) == STAGE_POTENTIAL
        assert rpi_stage(50) == STAGE_POTENTIAL
        assert rpi_stage(49.99) == STAGE_EARLY
        assert rpi_stage(0) == STAGE_EARLY

    def test_short_label(self):
        assert rpi_stage_short(85) == "CRITICAL POINT exceeded"
        assert rpi_stage_short(60) == "POTENTIAL"
        assert rpi_stage_short(10) == "EARLY STAGE"


class TestContributionHelpers:
    def test_weighted_composite(self, sample_result):
        assert weighted_composite(sample_result.metrics, sample_result.weights) == 73.23

    def test_bar_width(self):
        assert contribution_bar_width(12.3) == pytest.approx(24.6)
        assert contribution_bar_width(-10) == 20
        assert contribution_bar_width(80) == 100
        assert contribution_bar_width(0) == 0

    def test_format_contribution(self):
        assert format_contribution(12.3) == "+12.30"
        assert format_contribution(-4) == "-4.00"
        assert format_contribution(0) == "+0.00"

    def test_dominant_factor(self, sample_result):
        assert dominant_factor(sample_result.weights) == "emo"
        assert dominant_factor(RPIWeights(0.2, 0.2, 0.6)) == "soc"

    def test_dominant_factor_tie(self):
        assert dominant_factor(RPIWeights(0.3, 0.3, 0.3)) == "emo"

    def test_top_edges(self, sample_result):
        edges = top_edges(sample_result.knowledge_graph, 2)
        assert [e.strength for e in edges] == [0.9, 0.75]

    def test_top_edges_default_limit(self, sample_result):
        assert len(top_edges(sample_result.knowledge_graph)) == 3

    def test_trajectory_delta(self, sample_result):
        assert trajectory_delta(sample_result) == 47

    def test_trajectory_delta_short(self, sample_result):
        sample_result.trajectory = sample_result.trajectory[:1]
        assert trajectory_delta(sample_result) is None


class TestFormatReport:
    def test_sections(self, sample_result):
        text = format_report(sample_result, text="diary", session_id="abc")
        assert "RPI SCORE: 73.23" in text
        assert "Session: abc" in text
        assert "Corner Cafe -> Mrs. Choi: 90%" in text
        assert "Critical period: Week 3" in text
        assert "CONSISTENCY WARNINGS" not in text

    def test_warnings_section(self, sample_result):
        sample_result.warnings = ["Attention weights sum to 1.20, expected 1.00"]
        text = format_report(sample_result)
        assert "CONSISTENCY WARNINGS (1)" in text

    def test_empty_graph(self, sample_result):
        sample_result.knowledge_graph.nodes = []
        sample_result.knowledge_graph.edges = []
        sample_result.trajectory = []
        text = format_report(sample_result)
        assert "No graph returned." in text
        assert "No trajectory returned." in text


class TestReportToJson:
    def test_structure(self, sample_result):
        data = json.loads(report_to_json(sample_result, text="t", session_id="s1", model="claude-test"))
        assert data["session_id"] == "s1"
        assert data["result"]["rpiScore"] == 73.23
        assert data["stage"] == STAGE_POTENTIAL
        assert data["weighted_composite"] == 73.23
        assert data["metadata"]["model"] == "claude-test"

    def test_non_ascii_kept(self, sample_result):
        raw = report_to_json(sample_result, text="강릉 한달살기")
        assert "강릉 한달살기" in raw
