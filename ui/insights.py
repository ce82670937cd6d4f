"""
RPI Engine — Insights
======================
Pull the notable points out of an analysis for display.
Pure function — no Streamlit dependency. Fully testable.
"""

from __future__ import annotations

from models import METRIC_LABELS
from utils import dominant_factor, rpi_stage_short, top_edges, trajectory_delta


def generate_insights(result) -> list[str]:
    """Extract notable findings from an analysis for display.

    Args:
        result: AnalysisResult instance

    Returns:
        List of markdown strings describing notable findings.
    """
    insights = []

    # Dominant factor
    key = dominant_factor(result.weights)
    insights.append(
        f"**{METRIC_LABELS[key]}** carries the largest attention weight "
        f"({result.weights.for_metric(key):.2f}) in this narrative."
    )

    # Critical period
    if result.critical_period:
        insights.append(f"Relationship formation peaks at **{result.critical_period}**.")

    # Trajectory direction
    delta = trajectory_delta(result)
    if delta is not None:
        if delta > 0:
            insights.append(
                f"Sentiment rose by **{delta:g}** points from "
                f"{result.trajectory[0].period} to {result.trajectory[-1].period}."
            )
        elif delta < 0:
            insights.append(
                f"Sentiment fell by **{abs(delta):g}** points from "
                f"{result.trajectory[0].period} to {result.trajectory[-1].period}."
            )
        else:
            insights.append("Sentiment stayed **flat** across the stay.")

    # Strongest connection
    strongest = top_edges(result.knowledge_graph, 1)
    if strongest:
        e = strongest[0]
        graph = result.knowledge_graph
        insights.append(
            f"Strongest connection: **{graph.node_label(e.source)}** and "
            f"**{graph.node_label(e.target)}** ({e.strength * 100:.0f}%)."
        )

    # Weakest indicator
    metrics = result.metrics.as_dict()
    weakest = min(metrics, key=metrics.get)
    if metrics[weakest] < 50:
        insights.append(
            f"**{METRIC_LABELS[weakest]}** is the weakest indicator at {metrics[weakest]:g}/100."
        )

    # Consistency
    if result.warnings:
        insights.append(
            f"The model output raised **{len(result.warnings)} consistency warning(s)**; "
            f"treat the score with care."
        )

    insights.append(f"Stage: **{rpi_stage_short(result.rpi_score)}**.")
    return insights
