"""
Tests for src/parsers/response_parser.py — fence stripping, rounding,
schema errors and consistency warnings.
"""

import sys, os, json
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from models import AnalysisError, DEFAULT_USER_MESSAGE
from parsers.response_parser import (
    strip_code_fences, round_numeric_leaves, parse_payload, parse_analysis, check_consistency,
)


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_surrounding_whitespace(self):
        assert strip_code_fences('  \n```json\n{"a": 1}\n```\n  ') == '{"a": 1}'

    def test_fence_embedded_in_prose(self):
        text = 'Here is the analysis:\n```json\n{"a": 1}\n```\nLet me know.'
        assert strip_code_fences(text) == '{"a": 1}'

    def test_prose_around_object(self):
        assert strip_code_fences('Result: {"a": {"b": 2}} done') == '{"a": {"b": 2}}'

    def test_trailing_prose(self):
        assert strip_code_fences('{"a": 1}\nHope this helps') == '{"a": 1}'

    def test_plain_json_unchanged(self):
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'

    def test_no_object(self):
        assert strip_code_fences("  nothing here ") == "nothing here"

    def test_leading_fence_followed_by_prose(self):
        text = '```json\n{"a": 1}\n```\nLet me know if you need more.'
        assert strip_code_fences(text) == '{"a": 1}'

    def test_unclosed_leading_fence(self):
        assert strip_code_fences('```json\n{"a": 1}') == '{"a": 1}'


class TestRoundNumericLeaves:
    def test_nested(self):
        data = {"a": 1.23456, "b": [2.345678, 3], "c": {"d": 0.005001}, "e": "x"}
        assert round_numeric_leaves(data) == {"a": 1.23, "b": [2.35, 3], "c": {"d": 0.01}, "e": "x"}

    def test_bools_preserved(self):
        out = round_numeric_leaves({"flag": True, "n": None})
        assert out["flag"] is True
        assert out["n"] is None

    def test_custom_decimals(self):
        assert round_numeric_leaves([1.23456], decimals=3) == [1.235]


class TestParsePayload:
    def test_dict_passthrough(self):
        d = {"a": 1}
        assert parse_payload(d) is d

    def test_fenced_string(self):
        assert parse_payload('```json\n{"a": 1}\n```') == {"a": 1}

    def test_empty_string(self):
        with pytest.raises(AnalysisError, match="empty"):
            parse_payload("   ")

    def test_invalid_json(self):
        with pytest.raises(AnalysisError) as exc:
            parse_payload("{not json}")
        assert "not valid JSON" in exc.value.cause
        assert exc.value.user_message == DEFAULT_USER_MESSAGE

    def test_array_rejected(self):
        with pytest.raises(AnalysisError, match="object"):
            parse_payload("[1, 2]")

    def test_unsupported_type(self):
        with pytest.raises(AnalysisError, match="int"):
            parse_payload(42)


class TestParseAnalysis:
    def test_fenced_reply_with_trailing_prose(self, sample_wire):
        raw = "```json\n" + json.dumps(sample_wire) + "\n```\nLet me know if you need more."
        r = parse_analysis(raw)
        assert r.rpi_score == 73.23
        assert r.shap_value["soc"] == 8.5

    def test_fenced_text_reply(self, sample_wire):
        raw = "```json\n" + json.dumps(sample_wire) + "\n```"
        r = parse_analysis(raw)
        assert r.metrics.emo == 72.46
        assert r.rpi_score == 73.23
        assert r.knowledge_graph.edges[0].strength == 0.9

    def test_tool_dict_reply(self, sample_wire):
        r = parse_analysis(sample_wire, decimals=1)
        assert r.metrics.emo == 72.5

    def test_missing_key_becomes_analysis_error(self, sample_wire):
        del sample_wire["rpiScore"]
        with pytest.raises(AnalysisError) as exc:
            parse_analysis(sample_wire)
        assert exc.value.user_message == DEFAULT_USER_MESSAGE
        assert "rpiScore" in exc.value.cause

    def test_bad_node_type_becomes_analysis_error(self, sample_wire):
        sample_wire["knowledgeGraph"]["nodes"][0]["type"] = "Person"
        with pytest.raises(AnalysisError):
            parse_analysis(sample_wire)

    def test_string_number_becomes_analysis_error(self, sample_wire):
        sample_wire["metrics"]["emo"] = "72"
        with pytest.raises(AnalysisError):
            parse_analysis(sample_wire)


class TestCheckConsistency:
    def test_clean_result(self, sample_result):
        assert check_consistency(sample_result) == []

    def test_weight_sum(self, sample_wire):
        sample_wire["weights"] = {"alpha": 0.5, "beta": 0.4, "gamma": 0.3}
        warnings = check_consistency(parse_analysis(sample_wire))
        assert any("sum to 1.20" in w for w in warnings)

    def test_weight_sum_within_tolerance(self, sample_wire):
        sample_wire["weights"] = {"alpha": 0.42, "beta": 0.25, "gamma": 0.35}
        warnings = check_consistency(parse_analysis(sample_wire), weight_tolerance=0.05)
        assert not any("sum to" in w for w in warnings)

    def test_metric_out_of_range(self, sample_wire):
        sample_wire["metrics"]["soc"] = 120
        warnings = check_consistency(parse_analysis(sample_wire))
        assert any("soc" in w and "0-100" in w for w in warnings)

    def test_trajectory_out_of_range(self, sample_wire):
        sample_wire["trajectory"][0]["score"] = -5
        warnings = check_consistency(parse_analysis(sample_wire))
        assert any("Week 1" in w for w in warnings)

    def test_edge_strength_out_of_range(self, sample_wire):
        sample_wire["knowledgeGraph"]["edges"][0]["strength"] = 1.5
        warnings = check_consistency(parse_analysis(sample_wire))
        assert any("outside 0-1" in w for w in warnings)

    def test_unknown_edge_node(self, sample_wire):
        sample_wire["knowledgeGraph"]["edges"].append({"source": "n1", "target": "n9", "strength": 0.2})
        warnings = check_consistency(parse_analysis(sample_wire))
        assert any("unknown node(s): n9" in w for w in warnings)

    def test_edges_without_any_nodes(self, sample_wire):
        sample_wire["knowledgeGraph"]["nodes"] = []
        warnings = check_consistency(parse_analysis(sample_wire))
        unknown = [w for w in warnings if "unknown node(s)" in w]
        assert len(unknown) == 3
        assert "unknown node(s): n1, n2" in unknown[0]

    def test_rpi_deviation(self, sample_wire):
        sample_wire["rpiScore"] = 20
        warnings = check_consistency(parse_analysis(sample_wire))
        assert any("deviates" in w for w in warnings)

    def test_does_not_modify_result(self, sample_wire):
        sample_wire["rpiScore"] = 20
        r = parse_analysis(sample_wire)
        check_consistency(r)
        assert r.rpi_score == 20
        assert r.warnings == []
