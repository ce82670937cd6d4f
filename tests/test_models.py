"""
Tests for src/models.py — vocabulary, wire-format decoding, errors.
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from models import (
    MetricKey, NodeType, METRIC_LABELS, WEIGHT_FOR_METRIC, REQUIRED_KEYS,
    RPIMetrics, RPIWeights, KnowledgeGraph, AnalysisResult, HistoryItem,
    AnalysisError, DEFAULT_USER_MESSAGE,
)


class TestVocabulary:
    def test_three_metrics(self):
        assert {k.value for k in MetricKey} == {"emo", "spa", "soc"}

    def test_node_types(self):
        assert {t.value for t in NodeType} == {"Place", "Activity", "Interaction"}

    def test_every_metric_has_label_and_weight(self):
        for key in MetricKey:
            assert key.value in METRIC_LABELS
            assert key.value in WEIGHT_FOR_METRIC

    def test_weight_pairing(self):
        assert WEIGHT_FOR_METRIC == {"emo": "alpha", "spa": "beta", "soc": "gamma"}

    def test_required_keys_are_wire_names(self):
        assert "rpiScore" in REQUIRED_KEYS
        assert "knowledgeGraph" in REQUIRED_KEYS
        assert len(REQUIRED_KEYS) == 8


class TestMetricsAndWeights:
    def test_metrics_from_dict(self):
        m = RPIMetrics.from_dict({"emo": 10, "spa": 20.5, "soc": 30})
        assert m.as_dict() == {"emo": 10, "spa": 20.5, "soc": 30}

    def test_metrics_reject_string(self):
        with pytest.raises(TypeError, match="metrics.spa"):
            RPIMetrics.from_dict({"emo": 10, "spa": "high", "soc": 30})

    def test_metrics_reject_bool(self):
        with pytest.raises(TypeError):
            RPIMetrics.from_dict({"emo": True, "spa": 1, "soc": 1})

    def test_metrics_reject_missing(self):
        with pytest.raises(TypeError, match="metrics.soc"):
            RPIMetrics.from_dict({"emo": 1, "spa": 1})

    def test_metrics_must_be_object(self):
        with pytest.raises(TypeError):
            RPIMetrics.from_dict([1, 2, 3])

    def test_weights_for_metric(self):
        w = RPIWeights(alpha=0.5, beta=0.3, gamma=0.2)
        assert w.for_metric("emo") == 0.5
        assert w.for_metric("spa") == 0.3
        assert w.for_metric("soc") == 0.2

    def test_weights_total(self):
        w = RPIWeights(alpha=0.5, beta=0.3, gamma=0.2)
        assert w.total == pytest.approx(1.0)


class TestKnowledgeGraph:
    def test_from_dict(self, sample_wire):
        g = KnowledgeGraph.from_dict(sample_wire["knowledgeGraph"])
        assert len(g.nodes) == 4
        assert len(g.edges) == 3
        assert g.nodes[1].type == "Interaction"

    def test_bad_node_type(self):
        with pytest.raises(ValueError, match="Place/Activity/Interaction"):
            KnowledgeGraph.from_dict({"nodes": [{"id": "x", "label": "X", "type": "Person"}], "edges": []})

    def test_missing_lists_default_empty(self):
        g = KnowledgeGraph.from_dict({})
        assert g.nodes == [] and g.edges == []

    def test_node_label_lookup(self, sample_result):
        assert sample_result.knowledge_graph.node_label("n2") == "Mrs. Choi"

    def test_node_label_falls_back_to_id(self, sample_result):
        assert sample_result.knowledge_graph.node_label("n99") == "n99"


class TestAnalysisResult:
    def test_from_dict(self, sample_wire):
        r = AnalysisResult.from_dict(sample_wire)
        assert r.rpi_score == 73.234
        assert r.critical_period == "Week 3"
        assert [p.period for p in r.trajectory] == ["Week 1", "Week 2", "Week 3", "Week 4"]
        assert r.warnings == []

    def test_missing_keys_listed(self, sample_wire):
        del sample_wire["rpiScore"]
        del sample_wire["shapValue"]
        with pytest.raises(KeyError) as exc:
            AnalysisResult.from_dict(sample_wire)
        assert "rpiScore" in str(exc.value)
        assert "shapValue" in str(exc.value)

    def test_summary_must_be_string(self, sample_wire):
        sample_wire["summary"] = 5
        with pytest.raises(TypeError):
            AnalysisResult.from_dict(sample_wire)

    def test_trajectory_must_be_array(self, sample_wire):
        sample_wire["trajectory"] = {"Week 1": 10}
        with pytest.raises(TypeError):
            AnalysisResult.from_dict(sample_wire)

    def test_to_dict_matches_wire(self, sample_wire):
        r = AnalysisResult.from_dict(sample_wire)
        r.warnings = ["something"]
        out = r.to_dict()
        assert out == sample_wire
        assert "warnings" not in out

    def test_contribution_defaults_to_zero(self, sample_wire):
        sample_wire["shapValue"] = {"emo": 3.5}
        r = AnalysisResult.from_dict(sample_wire)
        assert r.contribution("emo") == 3.5
        assert r.contribution("soc") == 0.0


class TestHistoryItem:
    def test_defaults(self, sample_result):
        item = HistoryItem(id="abc123xyz", timestamp=1, text="t", result=sample_result)
        assert item.model is None


class TestAnalysisError:
    def test_default_message(self):
        e = AnalysisError()
        assert e.user_message == DEFAULT_USER_MESSAGE
        assert e.cause is None
        assert str(e) == DEFAULT_USER_MESSAGE

    def test_cause_is_str(self):
        e = AnalysisError(cause="bad json")
        assert str(e) == "bad json"
        assert e.user_message == DEFAULT_USER_MESSAGE
