"""
RPI Engine — Response Parser
=============================
Turns the model's answer into an AnalysisResult.
Handles tool-use dicts, bare JSON text, and JSON wrapped in markdown fences.
Numbers are re-rounded; shape errors become AnalysisError.
"""

import json
import logging
import re

from models import AnalysisResult, AnalysisError, DEFAULT_USER_MESSAGE


logger = logging.getLogger(__name__)

_FENCE_BLOCK = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\n?(.*?)\n?[ \t]*```", re.DOTALL)
_LEADING_FENCE = re.compile(r"^```[ \t]*(?:json|JSON)?[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```$")


# ---------------------------------------------------------------------------
# String cleanup
# ---------------------------------------------------------------------------

def strip_code_fences(text: str) -> str:
    """
    Return the JSON body of a model reply.

    Order of attempts:
      1. Reply starts with a fence: the block's contents, ignoring any prose
         after the closing fence; an unclosed fence just loses its opening line
      2. Fenced block embedded in prose: take the first block's contents
      3. Otherwise: the outermost {...} span, or the stripped text unchanged
    """
    stripped = text.strip()

    if stripped.startswith("```"):
        match = _FENCE_BLOCK.match(stripped)
        if match:
            logger.debug("Extracted leading fenced block from model reply")
            return match.group(1).strip()
        body = _LEADING_FENCE.sub("", stripped, count=1)
        body = _TRAILING_FENCE.sub("", body, count=1)
        logger.debug("Stripped surrounding code fence from model reply")
        return body.strip()

    match = _FENCE_BLOCK.search(stripped)
    if match:
        logger.debug("Extracted fenced block embedded in model reply")
        return match.group(1).strip()

    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end <= start:
        return stripped
    if start > 0 or end < len(stripped) - 1:
        logger.debug("Trimmed prose around JSON object in model reply")
    return stripped[start:end + 1]


def round_numeric_leaves(obj, decimals: int = 2):
    """Recursively round every float leaf. Ints, bools, strings pass through."""
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        return round(obj, decimals)
    if isinstance(obj, dict):
        return {k: round_numeric_leaves(v, decimals) for k, v in obj.items()}
    if isinstance(obj, list):
        return [round_numeric_leaves(v, decimals) for v in obj]
    return obj


def parse_payload(raw) -> dict:
    """Accept a dict (tool input) or a string reply; return the decoded object."""
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        raise AnalysisError(cause=f"Unsupported reply type: {type(raw).__name__}")
    if not raw.strip():
        raise AnalysisError(cause="Model returned an empty reply")

    body = strip_code_fences(raw)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise AnalysisError(cause=f"Reply is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise AnalysisError(cause=f"Reply JSON must be an object, got {type(data).__name__}")
    return data


def parse_analysis(raw, decimals: int = 2) -> AnalysisResult:
    """Full repair pass: decode, round numeric leaves, build the result."""
    data = round_numeric_leaves(parse_payload(raw), decimals)
    logger.debug("Rounded numeric leaves to %d decimal places", decimals)
    try:
        return AnalysisResult.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise AnalysisError(DEFAULT_USER_MESSAGE, cause=f"Reply does not match the result schema: {exc}") from exc


# ---------------------------------------------------------------------------
# Consistency checks (reported, never enforced)
# ---------------------------------------------------------------------------

def check_consistency(result: AnalysisResult,
                      weight_tolerance: float = 0.05,
                      rpi_tolerance: float = 10.0) -> list[str]:
    """
    Compare the model's numbers against what the prompt asked for.

    Returns human-readable warnings. Does not modify the result.
    """
    warnings = []

    total = result.weights.total
    if abs(total - 1.0) > weight_tolerance:
        warnings.append(f"Attention weights sum to {total:.2f}, expected 1.00")

    for key, value in result.metrics.as_dict().items():
        if not 0 <= value <= 100:
            warnings.append(f"Metric {key} = {value} is outside 0-100")

    if not 0 <= result.rpi_score <= 100:
        warnings.append(f"RPI score {result.rpi_score} is outside 0-100")

    for point in result.trajectory:
        if not 0 <= point.score <= 100:
            warnings.append(f"Trajectory score for {point.period} = {point.score} is outside 0-100")

    node_ids = {n.id for n in result.knowledge_graph.nodes}
    for edge in result.knowledge_graph.edges:
        if not 0 <= edge.strength <= 1:
            warnings.append(f"Edge {edge.source} -> {edge.target} strength {edge.strength} is outside 0-1")
        unknown = [end for end in (edge.source, edge.target) if end not in node_ids]
        if unknown:
            warnings.append(f"Edge {edge.source} -> {edge.target} references unknown node(s): {', '.join(unknown)}")

    expected = sum(
        result.weights.for_metric(key) * value
        for key, value in result.metrics.as_dict().items()
    )
    if abs(expected - result.rpi_score) > rpi_tolerance:
        warnings.append(
            f"RPI score {result.rpi_score} deviates from the weighted composite {expected:.2f}"
        )

    for w in warnings:
        logger.warning("Consistency: %s", w)
    return warnings
