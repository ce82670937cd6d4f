"""
RPI Engine — Utilities
=======================
Stage classification, contribution formatting, graph helpers,
and text/JSON report export.
"""

import json
from datetime import datetime
from typing import Optional

from models import (
    AnalysisResult, KnowledgeGraph, RPIMetrics, RPIWeights,
    METRIC_LABELS, WEIGHT_FOR_METRIC,
)


# ---------------------------------------------------------------------------
# RPI Stage Classification
# ---------------------------------------------------------------------------

STAGE_STABLE = "CRITICAL POINT exceeded: stable settlement group"
STAGE_POTENTIAL = "POTENTIAL: promising relationship expansion group"
STAGE_EARLY = "EARLY STAGE: initial entry / drop-out risk"


def rpi_stage(score: float) -> str:
    """
    Bucket a 0-100 RPI into the three research stages:
      >= 80  stable settlement
      >= 50  expansion potential
      else   early stage / drop-out risk
    """
    if score >= 80:
        return STAGE_STABLE
    elif score >= 50:
        return STAGE_POTENTIAL
    else:
        return STAGE_EARLY


STAGES = (STAGE_STABLE, STAGE_POTENTIAL, STAGE_EARLY)


def short_stage(stage: str) -> str:
    """Text before the colon: 'POTENTIAL: ...' -> 'POTENTIAL'."""
    return stage.split(":")[0]


def rpi_stage_short(score: float) -> str:
    """First word(s) of the stage label, for compact cards and tables."""
    return short_stage(rpi_stage(score))


# ---------------------------------------------------------------------------
# Composite & Contribution Helpers
# ---------------------------------------------------------------------------

def weighted_composite(metrics: RPIMetrics, weights: RPIWeights) -> float:
    """alpha*emo + beta*spa + gamma*soc, rounded to two places."""
    total = sum(
        weights.for_metric(key) * value
        for key, value in metrics.as_dict().items()
    )
    return round(total, 2)


def contribution_bar_width(value: float) -> float:
    """Bar width in percent for a SHAP-labeled contribution: min(|v| * 2, 100)."""
    return min(abs(value) * 2, 100.0)


def format_contribution(value: float) -> str:
    """Signed two-decimal string: +12.30 / -4.00."""
    return f"{'+' if value >= 0 else ''}{value:.2f}"


def dominant_factor(weights: RPIWeights) -> str:
    """Metric key carrying the largest attention weight (ties resolve emo > spa > soc)."""
    return max(WEIGHT_FOR_METRIC, key=lambda k: weights.for_metric(k))


def top_edges(graph: KnowledgeGraph, limit: int = 8) -> list:
    """Strongest edges first, at most `limit`."""
    return sorted(graph.edges, key=lambda e: e.strength, reverse=True)[:limit]


def trajectory_delta(result: AnalysisResult) -> Optional[float]:
    """Last trajectory score minus first; None with fewer than two points."""
    if len(result.trajectory) < 2:
        return None
    return round(result.trajectory[-1].score - result.trajectory[0].score, 2)


# ---------------------------------------------------------------------------
# Formatting & Export
# ---------------------------------------------------------------------------

def format_report(result: AnalysisResult, text: str = "", session_id: str = "") -> str:
    """Format an analysis as readable text."""
    lines = []
    lines.append("=" * 70)
    lines.append("RELATIONAL POPULATION INDEX (RPI) REPORT")
    lines.append("Emotional | Spatial | Social indicators with self-attention weights")
    lines.append("=" * 70)
    if session_id:
        lines.append(f"Session: {session_id}")
    lines.append(f"Generated: {datetime.now().isoformat(timespec='seconds')}")
    if text:
        excerpt = " ".join(text.split())
        lines.append(f"Input excerpt: {excerpt[:120]}{'...' if len(excerpt) > 120 else ''}")
    lines.append("")

    lines.append("-" * 40)
    lines.append(f"RPI SCORE: {result.rpi_score}")
    lines.append("-" * 40)
    lines.append(f"  Stage: {rpi_stage(result.rpi_score)}")
    lines.append(f"  Summary: {result.summary}")
    lines.append("")

    lines.append("-" * 40)
    lines.append("BREAKDOWN (score x weight)")
    lines.append("-" * 40)
    for key, value in result.metrics.as_dict().items():
        weight = result.weights.for_metric(key)
        lines.append(
            f"  {METRIC_LABELS[key]:22s} X_{key}: {value:>6} x {weight:.2f}"
            f"  | contribution {format_contribution(result.contribution(key))}"
        )
    lines.append(f"  Weighted composite: {weighted_composite(result.metrics, result.weights)}")
    lines.append(f"  Dominant factor: {METRIC_LABELS[dominant_factor(result.weights)]}")
    lines.append("")

    lines.append("-" * 40)
    lines.append(f"SENTIMENT TRAJECTORY ({len(result.trajectory)} points)")
    lines.append("-" * 40)
    if result.trajectory:
        for p in result.trajectory:
            bar = "#" * int(max(0, min(p.score, 100)) / 5)
            lines.append(f"  {p.period:12s} {p.score:>6}  {bar}")
    else:
        lines.append("  No trajectory returned.")
    lines.append(f"  Critical period: {result.critical_period or 'N/A'}")
    lines.append("")

    graph = result.knowledge_graph
    lines.append("-" * 40)
    lines.append(f"ST-KG ({len(graph.nodes)} nodes, {len(graph.edges)} edges)")
    lines.append("-" * 40)
    for node_type in ("Place", "Activity", "Interaction"):
        labels = [n.label for n in graph.nodes if n.type == node_type]
        if labels:
            lines.append(f"  {node_type}: {', '.join(labels)}")
    for e in top_edges(graph):
        lines.append(
            f"  {graph.node_label(e.source)} -> {graph.node_label(e.target)}: {e.strength * 100:.0f}%"
        )
    if not graph.nodes and not graph.edges:
        lines.append("  No graph returned.")
    lines.append("")

    if result.warnings:
        lines.append("-" * 40)
        lines.append(f"CONSISTENCY WARNINGS ({len(result.warnings)})")
        lines.append("-" * 40)
        for w in result.warnings:
            lines.append(f"  ! {w}")
        lines.append("")

    lines.append("=" * 70)
    return "\n".join(lines)


def report_to_json(result: AnalysisResult, text: str = "", session_id: str = "",
                   model: Optional[str] = None) -> str:
    """Export an analysis as JSON (wire format plus metadata)."""
    data = {
        "session_id": session_id,
        "input_text": text,
        "result": result.to_dict(),
        "stage": rpi_stage(result.rpi_score),
        "weighted_composite": weighted_composite(result.metrics, result.weights),
        "warnings": list(result.warnings),
        "metadata": {
            "exported_at": datetime.now().isoformat(timespec="seconds"),
            "model": model,
        },
    }
    return json.dumps(data, indent=2, ensure_ascii=False)
