"""
RPI Engine — Chart Builders
============================
All Plotly figure builders and the HTML fragments of the dashboard.
No Streamlit dependency — takes dataclasses, returns go.Figure or str.
Fully testable.
"""

from __future__ import annotations

import html
import math

import plotly.graph_objects as go

from models import METRIC_LABELS
from utils import (
    contribution_bar_width, format_contribution, top_edges, weighted_composite,
)
from ui.theme import get_plotly_layout, metric_color, node_color, hex_to_rgba, rpi_color

METRIC_KEYS = ("emo", "spa", "soc")


# ---------------------------------------------------------------------------
# Indicator charts
# ---------------------------------------------------------------------------

def build_radar_fig(result, t: dict) -> go.Figure:
    """Metric balance: the three 0-100 indicators on a closed radar."""
    layout = get_plotly_layout(t)
    labels = [METRIC_LABELS[k] for k in METRIC_KEYS]
    values = [getattr(result.metrics, k) or 0 for k in METRIC_KEYS]

    fig = go.Figure(go.Scatterpolar(
        r=values + values[:1],
        theta=labels + labels[:1],
        fill="toself",
        fillcolor=hex_to_rgba(t["accent"], 0.25),
        line=dict(color=t["accent"], width=4),
        marker=dict(size=8, color=t["accent"]),
        hovertext=[f"{lbl}: {v}" for lbl, v in zip(labels + labels[:1], values + values[:1])],
        hoverinfo="text",
        name="Metrics",
    ))
    fig.update_layout(
        **layout,
        height=360,
        showlegend=False,
        polar=dict(
            bgcolor="rgba(0,0,0,0)",
            radialaxis=dict(range=[0, 100], gridcolor=t["border"], showticklabels=False),
            angularaxis=dict(gridcolor=t["border"], tickfont=dict(size=13)),
        ),
    )
    return fig


def build_weights_fig(result, t: dict) -> go.Figure:
    """Donut of the alpha / beta / gamma attention weights."""
    layout = get_plotly_layout(t)
    fig = go.Figure(go.Pie(
        labels=[f"{METRIC_LABELS[k]} ({name})" for k, name in zip(METRIC_KEYS, ("alpha", "beta", "gamma"))],
        values=[max(result.weights.for_metric(k), 0) for k in METRIC_KEYS],
        hole=0.6,
        marker=dict(colors=[metric_color(k, t) for k in METRIC_KEYS]),
        textinfo="percent",
        sort=False,
    ))
    fig.update_layout(
        **layout,
        height=300,
        legend=dict(orientation="h", yanchor="top", y=-0.05, xanchor="center", x=0.5,
                    bgcolor="rgba(0,0,0,0)", font=dict(size=11)),
        annotations=[dict(text=f"Σ {result.weights.total:.2f}", showarrow=False,
                          font=dict(size=16, color=t["text"]))],
    )
    return fig


def build_contribution_fig(result, t: dict) -> go.Figure:
    """Signed SHAP-labeled contribution per indicator (horizontal bars)."""
    layout = get_plotly_layout(t)
    values = [result.contribution(k) for k in METRIC_KEYS]
    fig = go.Figure(go.Bar(
        y=[METRIC_LABELS[k] for k in METRIC_KEYS],
        x=values,
        orientation="h",
        marker_color=[metric_color(k, t) if v >= 0 else t["low"] for k, v in zip(METRIC_KEYS, values)],
        text=[format_contribution(v) for v in values],
        textposition="outside",
        hoverinfo="skip",
    ))
    fig.update_layout(
        **layout,
        height=220,
        xaxis=dict(title="Contribution", gridcolor=t["border"], zeroline=True, zerolinecolor=t["muted"]),
        yaxis=dict(autorange="reversed"),
        showlegend=False,
    )
    return fig


# ---------------------------------------------------------------------------
# Sentiment trajectory
# ---------------------------------------------------------------------------

def critical_period_index(result) -> int | None:
    """Index of the trajectory point named in the critical period label, if any."""
    label = (result.critical_period or "").lower()
    if not label:
        return None
    for i, point in enumerate(result.trajectory):
        if point.period and point.period.lower() in label:
            return i
    return None


def build_trajectory_fig(result, t: dict) -> go.Figure:
    """Area chart of relationship score per period; critical period highlighted."""
    layout = get_plotly_layout(t)
    fig = go.Figure()
    if not result.trajectory:
        fig.update_layout(**layout, height=340)
        return fig

    periods = [p.period for p in result.trajectory]
    scores = [p.score for p in result.trajectory]
    line_color = t["low"]

    fig.add_trace(go.Scatter(
        x=periods, y=scores,
        mode="lines+markers",
        line=dict(color=line_color, width=4, shape="spline"),
        marker=dict(size=11, color=line_color, line=dict(width=3, color=t["surface"])),
        fill="tozeroy",
        fillcolor=hex_to_rgba(line_color, 0.15),
        hovertext=[f"{p}: {s}" for p, s in zip(periods, scores)],
        hoverinfo="text",
        name="Trajectory",
    ))

    idx = critical_period_index(result)
    if idx is not None:
        fig.add_trace(go.Scatter(
            x=[periods[idx]], y=[scores[idx]],
            mode="markers+text",
            marker=dict(size=20, color="rgba(0,0,0,0)", line=dict(width=3, color=t["accent"])),
            text=["Critical"], textposition="top center",
            textfont=dict(size=11, color=t["accent"]),
            hoverinfo="skip",
            name="Critical Period",
        ))

    fig.update_layout(
        **layout,
        height=340,
        showlegend=False,
        xaxis=dict(gridcolor="rgba(0,0,0,0)", tickfont=dict(size=12)),
        yaxis=dict(range=[0, 105], gridcolor=t["border"], zeroline=False),
    )
    return fig


# ---------------------------------------------------------------------------
# ST-KG
# ---------------------------------------------------------------------------

def circular_layout(node_ids: list[str], radius: float = 1.0) -> dict[str, tuple[float, float]]:
    """Place nodes evenly on a circle, first node at 12 o'clock."""
    n = len(node_ids)
    if n == 0:
        return {}
    if n == 1:
        return {node_ids[0]: (0.0, 0.0)}
    positions = {}
    for i, node_id in enumerate(node_ids):
        angle = math.pi / 2 - 2 * math.pi * i / n
        positions[node_id] = (round(radius * math.cos(angle), 6), round(radius * math.sin(angle), 6))
    return positions


def build_knowledge_graph_fig(graph, t: dict) -> go.Figure:
    """Network view of the ST-KG: edge width and opacity follow strength."""
    layout = get_plotly_layout(t)
    fig = go.Figure()

    ids = [n.id for n in graph.nodes]
    # Edge endpoints the model did not declare as nodes still get a position
    for e in graph.edges:
        for end in (e.source, e.target):
            if end not in ids:
                ids.append(end)
    pos = circular_layout(ids)

    for e in graph.edges:
        if e.source not in pos or e.target not in pos:
            continue
        (x0, y0), (x1, y1) = pos[e.source], pos[e.target]
        strength = max(0.0, min(e.strength, 1.0))
        fig.add_trace(go.Scatter(
            x=[x0, x1], y=[y0, y1],
            mode="lines",
            line=dict(width=1 + 5 * strength, color=hex_to_rgba(t["accent"], round(0.25 + 0.6 * strength, 2))),
            hoverinfo="skip",
            showlegend=False,
        ))

    by_type: dict[str, list] = {}
    for n in graph.nodes:
        by_type.setdefault(n.type, []).append(n)
    for node_type, nodes in by_type.items():
        fig.add_trace(go.Scatter(
            x=[pos[n.id][0] for n in nodes],
            y=[pos[n.id][1] for n in nodes],
            mode="markers+text",
            name=node_type,
            text=[n.label for n in nodes],
            textposition="top center",
            textfont=dict(size=11, color=t["text"]),
            marker=dict(size=18, color=node_color(node_type, t), line=dict(width=2, color=t["surface"])),
            hovertext=[f"{n.label} ({node_type})" for n in nodes],
            hoverinfo="text",
        ))

    fig.update_layout(
        **layout,
        height=420,
        xaxis=dict(visible=False, range=[-1.4, 1.4]),
        yaxis=dict(visible=False, range=[-1.3, 1.4], scaleanchor="x"),
        legend=dict(orientation="h", yanchor="bottom", y=1.0, xanchor="right", x=1,
                    bgcolor="rgba(0,0,0,0)", font=dict(size=11)),
        hovermode="closest",
    )
    return fig


def build_node_chips_html(graph, t: dict) -> str:
    """Chips for every extracted node, colored by type."""
    if not graph.nodes:
        return '<div class="metric-sub">No entities extracted.</div>'
    chips = []
    for n in graph.nodes:
        color = node_color(n.type, t)
        chips.append(
            f'<span class="kg-chip" style="background: {hex_to_rgba(color, 0.1)}; '
            f'border: 1px solid {hex_to_rgba(color, 0.3)}; color: {color};">'
            f'<span class="kg-dot" style="background: {color};"></span>{html.escape(n.label)}</span>'
        )
    return "<div>" + "".join(chips) + "</div>"


def build_edge_list_html(graph, t: dict, limit: int = 8) -> str:
    """Strongest connections with their strength as a percentage."""
    edges = top_edges(graph, limit)
    if not edges:
        return '<div class="metric-sub">No connections extracted.</div>'
    rows = []
    for e in edges:
        rows.append(
            f'<div class="edge-card"><span>{html.escape(graph.node_label(e.source))} '
            f'<span style="color: {t["muted"]};">&mdash;</span> '
            f'{html.escape(graph.node_label(e.target))}</span>'
            f'<span class="edge-strength">{e.strength * 100:.0f}%</span></div>'
        )
    return "".join(rows)


# ---------------------------------------------------------------------------
# HTML boards
# ---------------------------------------------------------------------------

def build_contribution_html(result, t: dict) -> str:
    """Contribution bars (width = min(|v| * 2, 100)%) plus the summary quote."""
    rows = []
    for k in METRIC_KEYS:
        v = result.contribution(k)
        value_color = t["accent"] if v >= 0 else t["low"]
        rows.append(f"""
        <div class="contrib-row">
            <span>{METRIC_LABELS[k]} <span style="color: {t["muted"]}; font-size: 0.7rem;">X_{k}</span></span>
            <span style="color: {value_color};">{format_contribution(v)}</span>
        </div>
        <div class="contrib-track">
            <div class="contrib-fill" style="width: {contribution_bar_width(v):.1f}%; background: {metric_color(k, t)};"></div>
        </div>""")
    return f"""
    <div class="glass-card">
        <div class="metric-label" style="text-align: left;">XAI: SHAP Contribution Analysis</div>
        {"".join(rows)}
        <div class="summary-quote">&ldquo;{html.escape(result.summary)}&rdquo;</div>
    </div>
    """


def build_breakdown_html(result, t: dict) -> str:
    """Score x weight per indicator, then the final index."""
    cells = []
    for k in METRIC_KEYS:
        score = getattr(result.metrics, k)
        weight = result.weights.for_metric(k)
        cells.append(f"""
        <div class="glass-card" style="flex: 1; text-align: center;">
            <div class="metric-label">{METRIC_LABELS[k]}</div>
            <span class="metric-value" style="color: {metric_color(k, t)};">{score:g}</span>
            <span style="color: {t["muted"]}; font-weight: 800;"> &times; </span>
            <span style="color: {t["accent"]}; font-weight: 800; font-size: 1.3rem;">{weight:.2f}</span>
        </div>""")
    composite = weighted_composite(result.metrics, result.weights)
    return f"""
    <div style="display: flex; gap: 12px; align-items: stretch; flex-wrap: wrap;">
        {"".join(cells)}
        <div class="glass-card-hero" style="flex: 1.2; padding: 20px;">
            <div class="metric-label">Final RPI</div>
            <div class="metric-value" style="color: {rpi_color(result.rpi_score, t)}; font-size: 3.2rem;">{result.rpi_score:g}</div>
            <div class="metric-sub">weighted composite {composite:g}</div>
        </div>
    </div>
    """


def build_weight_strip_html(weights, t: dict) -> str:
    """Thin tri-color strip sized by alpha / beta / gamma."""
    segments = "".join(
        f'<div style="width: {max(weights.for_metric(k), 0) * 100:.1f}%; background: {metric_color(k, t)};"></div>'
        for k in METRIC_KEYS
    )
    return f'<div class="weight-strip">{segments}</div>'


# ---------------------------------------------------------------------------
# Research repository
# ---------------------------------------------------------------------------

def build_history_trend_fig(items, t: dict) -> go.Figure | None:
    """RPI and indicators across stored sessions, oldest to newest."""
    layout = get_plotly_layout(t)
    if not items:
        return None
    ordered = list(reversed(items))
    x = [f"#{item.id}" for item in ordered]

    fig = go.Figure()
    for k in METRIC_KEYS:
        fig.add_trace(go.Scatter(
            x=x, y=[getattr(item.result.metrics, k) for item in ordered],
            mode="lines+markers", name=f"X_{k}",
            line=dict(color=metric_color(k, t), width=1.5, dash="dot"),
            marker=dict(size=6),
        ))
    fig.add_trace(go.Scatter(
        x=x, y=[item.result.rpi_score for item in ordered],
        mode="lines+markers", name="RPI",
        line=dict(color=t["accent"], width=3),
        marker=dict(size=10, color=[rpi_color(item.result.rpi_score, t) for item in ordered]),
    ))
    fig.update_layout(
        **layout,
        height=320,
        xaxis=dict(title="Session", gridcolor=t["border"]),
        yaxis=dict(title="Score", range=[0, 105], gridcolor=t["border"]),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1,
                    bgcolor="rgba(0,0,0,0)", font=dict(size=11)),
        hovermode="x unified",
    )
    return fig
