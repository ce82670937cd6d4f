"""
RPI Engine — Streamlit Dashboard
Relational Population Index analysis of one-month-stay narratives.
"""
import sys
import os

# Make src/ importable from repo root
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

import streamlit as st

from rpi_engine import load_settings, configure_logging, ResearchHistory
from ui.theme import DEFAULT_THEME, THEMES, _build_css
from ui.sidebar import render_sidebar, MODE_ANALYZE, MODE_REPOSITORY
from ui.modes.analysis import render_analysis_mode
from ui.modes.repository import render_repository_mode

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="RPI Engine",
    page_icon="\U0001f9ed",
    layout="wide",
    initial_sidebar_state="expanded",
)

configure_logging()
settings = load_settings()

# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------
if "theme_name" not in st.session_state:
    st.session_state["theme_name"] = DEFAULT_THEME
if "history" not in st.session_state:
    st.session_state.history = ResearchHistory(settings.history_size)
if "current_item" not in st.session_state:
    st.session_state.current_item = None
if "input_text" not in st.session_state:
    st.session_state.input_text = ""
if "mode" not in st.session_state:
    st.session_state.mode = MODE_ANALYZE

st.markdown(_build_css(THEMES[st.session_state["theme_name"]]), unsafe_allow_html=True)

config = render_sidebar(settings)

if config["mode"] == MODE_REPOSITORY:
    render_repository_mode(config)
else:
    render_analysis_mode(config, settings)
