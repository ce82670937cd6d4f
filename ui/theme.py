"""
RPI Engine — Theme System
==========================
5 themes, CSS builder, and RPI color/label helpers.
All pure functions — no Streamlit dependency. Fully testable.
"""

THEMES = {
    "Atlas": {
        "label": "Atlas",
        "desc": "Light slate with indigo accents",
        "bg": "#f8fafc", "surface": "#ffffff", "border": "#e2e8f0",
        "border_accent": "#c7d2fe", "text": "#0f172a", "muted": "#64748b",
        "chart_text": "#475569", "accent": "#4f46e5", "accent_glow": "rgba(79,70,229,0.08)",
        "accent_hover": "rgba(79,70,229,0.15)",
        "emo": "#6366f1", "spa": "#10b981", "soc": "#f59e0b",
        "place": "#06b6d4", "activity": "#818cf8", "interaction": "#34d399",
        "good": "#10b981", "mid": "#6366f1", "low": "#f43f5e",
    },
    "Midnight": {
        "label": "Midnight",
        "desc": "Cool blue on deep navy",
        "bg": "#0b0e14", "surface": "#111720", "border": "#1e2a3a",
        "border_accent": "#2a3a4e", "text": "#d0dce8", "muted": "#6b7d8b",
        "chart_text": "#a3b8c4", "accent": "#3b82f6", "accent_glow": "rgba(59,130,246,0.08)",
        "accent_hover": "rgba(59,130,246,0.15)",
        "emo": "#818cf8", "spa": "#34d399", "soc": "#fbbf24",
        "place": "#22d3ee", "activity": "#a5b4fc", "interaction": "#6ee7b7",
        "good": "#22c55e", "mid": "#3b82f6", "low": "#ef4444",
    },
    "Ember": {
        "label": "Ember",
        "desc": "Warm dark with amber accents",
        "bg": "#0a0807", "surface": "#12100f", "border": "#2a2623",
        "border_accent": "#3a3530", "text": "#e8dfd0", "muted": "#8b7d6b",
        "chart_text": "#c4b8a3", "accent": "#f59e0b", "accent_glow": "rgba(245,158,11,0.08)",
        "accent_hover": "rgba(245,158,11,0.15)",
        "emo": "#fb923c", "spa": "#a3e635", "soc": "#facc15",
        "place": "#fcd34d", "activity": "#fdba74", "interaction": "#bef264",
        "good": "#22c55e", "mid": "#f59e0b", "low": "#ef4444",
    },
    "Harbor": {
        "label": "Harbor",
        "desc": "Deep teal with cyan edges",
        "bg": "#041016", "surface": "#0a1a22", "border": "#163240",
        "border_accent": "#1f4657", "text": "#d3ecf2", "muted": "#6a8d99",
        "chart_text": "#9fc3cf", "accent": "#22d3ee", "accent_glow": "rgba(34,211,238,0.08)",
        "accent_hover": "rgba(34,211,238,0.15)",
        "emo": "#a78bfa", "spa": "#2dd4bf", "soc": "#fcd34d",
        "place": "#22d3ee", "activity": "#c4b5fd", "interaction": "#5eead4",
        "good": "#2dd4bf", "mid": "#22d3ee", "low": "#fb7185",
    },
    "Paper": {
        "label": "Paper",
        "desc": "Light mode — warm paper white",
        "bg": "#faf8f5", "surface": "#ffffff", "border": "#e5e0d8",
        "border_accent": "#d5d0c8", "text": "#1a1610", "muted": "#8b8578",
        "chart_text": "#5a5548", "accent": "#b45309", "accent_glow": "rgba(180,83,9,0.06)",
        "accent_hover": "rgba(180,83,9,0.12)",
        "emo": "#7c3aed", "spa": "#15803d", "soc": "#b45309",
        "place": "#0e7490", "activity": "#6d28d9", "interaction": "#15803d",
        "good": "#16a34a", "mid": "#b45309", "low": "#dc2626",
    },
}

DEFAULT_THEME = "Atlas"

PLOTLY_LAYOUT_BASE = dict(
    paper_bgcolor="rgba(0,0,0,0)",
    plot_bgcolor="rgba(0,0,0,0)",
    margin=dict(l=40, r=30, t=30, b=40),
)

NODE_TYPE_KEYS = {"Place": "place", "Activity": "activity", "Interaction": "interaction"}


def get_plotly_layout(t: dict) -> dict:
    """Return a Plotly layout dict styled for the given theme."""
    return {
        **PLOTLY_LAYOUT_BASE,
        "font": dict(
            color=t["chart_text"],
            family="Inter, DM Sans, sans-serif",
            size=12,
        ),
    }


def rpi_color(score: float, t: dict | None = None) -> str:
    """Map a 0-100 RPI to a themed hex color (higher is better).

    Falls back to the default theme if no theme dict provided.
    """
    if t is None:
        t = THEMES[DEFAULT_THEME]
    if score >= 80:
        return t["good"]
    elif score >= 50:
        return t["mid"]
    else:
        return t["low"]


def metric_color(metric_key: str, t: dict | None = None) -> str:
    """Fixed color per indicator: emo / spa / soc."""
    if t is None:
        t = THEMES[DEFAULT_THEME]
    return t.get(metric_key, t["accent"])


def node_color(node_type: str, t: dict | None = None) -> str:
    """Color for an ST-KG node chip by its type."""
    if t is None:
        t = THEMES[DEFAULT_THEME]
    return t[NODE_TYPE_KEYS.get(node_type, "place")]


def hex_to_rgba(hex_color: str, alpha: float) -> str:
    """'#4f46e5', 0.2 -> 'rgba(79,70,229,0.2)'."""
    h = hex_color.lstrip("#")
    return f"rgba({int(h[0:2], 16)},{int(h[2:4], 16)},{int(h[4:6], 16)},{alpha})"


def _build_css(t: dict) -> str:
    """Generate full Streamlit CSS for the given theme dict."""
    return f"""
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;600;800;900&family=JetBrains+Mono:wght@400;600&display=swap');

.stApp {{
    background: {t["bg"]};
    font-family: 'Inter', sans-serif;
    color: {t["text"]};
}}
.glass-card {{
    background: {t["surface"]};
    border: 1px solid {t["border"]};
    border-radius: 24px;
    padding: 24px;
    margin-bottom: 10px;
    box-shadow: 0 10px 30px rgba(15,23,42,0.06);
}}
.glass-card-hero {{
    background: {t["surface"]};
    border: 1px solid {t["border_accent"]};
    border-radius: 32px;
    padding: 32px 20px;
    text-align: center;
    box-shadow: 0 10px 30px rgba(15,23,42,0.08), 0 0 40px {t["accent_glow"]};
}}
.metric-value {{
    font-size: 2.4rem;
    font-weight: 900;
    line-height: 1.1;
    text-align: center;
    letter-spacing: -1px;
}}
.metric-value-hero {{
    font-size: 5.5rem;
    font-weight: 900;
    line-height: 1.0;
    text-align: center;
    letter-spacing: -4px;
}}
.metric-label {{
    font-size: 0.68rem;
    font-weight: 800;
    text-transform: uppercase;
    letter-spacing: 2.5px;
    color: {t["muted"]};
    text-align: center;
    margin-bottom: 6px;
}}
.metric-sub {{
    font-size: 0.8rem;
    font-weight: 600;
    color: {t["muted"]};
    text-align: center;
    margin-top: 6px;
}}
.stage-pill {{
    display: inline-block;
    margin-top: 14px;
    padding: 8px 16px;
    border-radius: 14px;
    border: 1px solid {t["border"]};
    background: {t["accent_glow"]};
    color: {t["accent"]};
    font-size: 0.78rem;
    font-weight: 800;
}}
.contrib-row {{
    display: flex;
    justify-content: space-between;
    font-size: 0.85rem;
    font-weight: 800;
    margin: 14px 0 6px 0;
}}
.contrib-track {{
    width: 100%;
    height: 12px;
    background: {t["bg"]};
    border: 1px solid {t["border"]};
    border-radius: 999px;
    overflow: hidden;
}}
.contrib-fill {{
    height: 100%;
    border-radius: 999px;
}}
.summary-quote {{
    margin-top: 18px;
    padding-top: 14px;
    border-top: 1px solid {t["border"]};
    font-style: italic;
    color: {t["muted"]};
    font-size: 0.9rem;
}}
.kg-chip {{
    display: inline-flex;
    align-items: center;
    gap: 8px;
    padding: 6px 14px;
    margin: 4px;
    border-radius: 14px;
    font-size: 0.82rem;
    font-weight: 700;
}}
.kg-dot {{
    width: 8px;
    height: 8px;
    border-radius: 50%;
    display: inline-block;
}}
.edge-card {{
    display: flex;
    justify-content: space-between;
    align-items: center;
    background: {t["surface"]};
    border: 1px solid {t["border"]};
    border-radius: 18px;
    padding: 12px 18px;
    margin-bottom: 8px;
    font-weight: 800;
    font-size: 0.85rem;
}}
.edge-strength {{
    color: {t["accent"]};
    font-family: 'JetBrains Mono', monospace;
}}
.critical-card {{
    background: {t["accent_glow"]};
    border: 1px solid {t["border_accent"]};
    border-radius: 20px;
    padding: 14px 18px;
    margin-top: 8px;
}}
.weight-strip {{
    display: flex;
    gap: 2px;
    height: 6px;
    border-radius: 999px;
    overflow: hidden;
    background: {t["border"]};
}}
section[data-testid="stSidebar"] {{
    background: {t["bg"]};
    border-right: 1px solid {t["border"]};
}}
.stTabs [data-baseweb="tab-list"] {{
    gap: 4px;
    border-bottom: 1px solid {t["border"]};
}}
.stTabs [data-baseweb="tab"] {{
    background: transparent;
    border-radius: 12px 12px 0 0;
    padding: 8px 16px;
    font-size: 0.8rem;
    font-weight: 800;
    text-transform: uppercase;
    letter-spacing: 1px;
    color: {t["muted"]};
}}
.stTabs [data-baseweb="tab"][aria-selected="true"] {{
    background: {t["surface"]};
    color: {t["accent"]};
    border-bottom: 2px solid {t["accent"]};
}}
h1, h2, h3 {{
    font-family: 'Inter', sans-serif;
    font-weight: 900;
    letter-spacing: -0.5px;
    color: {t["text"]};
}}
[data-testid="stMetricValue"] {{
    font-weight: 900;
    color: {t["accent"]};
}}
[data-testid="stMetricLabel"] {{
    text-transform: uppercase;
    letter-spacing: 1px;
    color: {t["muted"]};
}}
.stButton > button {{
    background: {t["surface"]};
    border: 1px solid {t["border"]};
    color: {t["text"]};
    font-weight: 800;
    border-radius: 16px;
    transition: all 0.2s;
}}
.stButton > button:hover {{
    border-color: {t["accent"]};
    color: {t["accent"]};
    box-shadow: 0 0 12px {t["accent_hover"]};
}}
.stDownloadButton > button {{
    background: {t["surface"]};
    border: 1px solid {t["accent"]};
    color: {t["accent"]};
    border-radius: 16px;
}}
.stTextArea textarea {{
    background: {t["surface"]};
    border: 1px solid {t["border"]};
    color: {t["text"]};
    border-radius: 24px;
    font-size: 1rem;
    line-height: 1.6;
}}
.stAlert {{
    border-radius: 16px;
}}
</style>
"""
