"""
RPI Engine — Reusable UI components.
Streamlit-dependent renderers live here alongside the pure-HTML helpers
(_hero_card_html, _loading_html) that are unit-testable.
"""

import logging

import streamlit as st
import plotly.graph_objects as go
import plotly.io as pio

from ui.theme import rpi_color
from utils import rpi_stage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Metric Cards
# ---------------------------------------------------------------------------

def _hero_card_html(score: float, t: dict) -> str:
    """Large RPI card with the research-stage pill."""
    return f"""
    <div class="glass-card-hero">
        <div class="metric-label">Relational Population Index</div>
        <div class="metric-value-hero" style="color: {rpi_color(score, t)}">{score:g}</div>
        <div class="stage-pill">{rpi_stage(score)}</div>
    </div>
    """


def render_rpi_hero(score: float, t: dict) -> None:
    st.markdown(_hero_card_html(score, t), unsafe_allow_html=True)


def render_metric_card(label: str, value: float, subtitle: str, t: dict,
                       color: str | None = None) -> None:
    """Render a glass metric card with a colored value."""
    st.markdown(f"""
    <div class="glass-card">
        <div class="metric-label">{label}</div>
        <div class="metric-value" style="color: {color or t["accent"]}">{value:g}</div>
        <div class="metric-sub">{subtitle}</div>
    </div>
    """, unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Chart Export
# ---------------------------------------------------------------------------

EXPORT_MIME = {"png": "image/png", "pdf": "application/pdf"}


@st.cache_data(show_spinner=False)
def _export_image(fig_json: str, fmt: str) -> bytes:
    """Kaleido render of a serialized figure, cached per figure and format."""
    fig = pio.from_json(fig_json)
    return pio.to_image(fig, format=fmt, width=1200, height=600, scale=2)


def chart_export(fig: go.Figure, filename: str, fmt: str = "png",
                 label: str = "Download Chart") -> None:
    """Render a Plotly figure through kaleido and offer a download button."""
    try:
        img_bytes = _export_image(fig.to_json(), fmt)
    except Exception as exc:
        # kaleido missing or no browser available for it
        logger.warning("Chart export to %s unavailable: %s", fmt, exc)
        return
    st.download_button(
        label=f"\U0001f4f7 {label} ({fmt.upper()})",
        data=img_bytes,
        file_name=filename,
        mime=EXPORT_MIME.get(fmt, "application/octet-stream"),
        key=f"export_{filename}",
    )


# ---------------------------------------------------------------------------
# Loading indicator (pure HTML, no Streamlit)
# ---------------------------------------------------------------------------

def _loading_html(t: dict) -> str:
    """Three pulsing indicator dots while the remote analysis runs."""
    dots = ""
    for i, key in enumerate(("emo", "spa", "soc")):
        dots += f"""
            <span style="display: inline-block; width: 14px; height: 14px; margin: 0 6px;
                         border-radius: 50%; background: {t[key]};
                         animation: rpi-pulse 1.2s ease-in-out {i * 0.2:.1f}s infinite;"></span>"""

    return f"""
    <div style="padding: 40px 20px; text-align: center;">
        <div style="font-size: 0.85rem; font-weight: 800; color: {t["accent"]};
                    letter-spacing: 2px; text-transform: uppercase; margin-bottom: 18px;">
            Self-attention weighting...
        </div>
        <div>{dots}
        </div>
        <div style="font-size: 0.7rem; color: {t["muted"]}; margin-top: 14px;">
            Extracting places, activities and interactions
        </div>
        <style>
            @keyframes rpi-pulse {{
                0%, 100% {{ transform: scale(0.6); opacity: 0.4; }}
                50% {{ transform: scale(1.0); opacity: 1.0; }}
            }}
        </style>
    </div>
    """
