"""
RPI Engine — Sidebar rendering.
Returns a config dict consumed by mode renderers.
"""

import os
from datetime import datetime

import streamlit as st

from ui.theme import THEMES, rpi_color

MODE_ANALYZE = "🔬 Analyze"
MODE_REPOSITORY = "🗂️ Research Repository"

SAMPLE_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "examples", "sample_narrative.txt")


def _load_sample() -> None:
    try:
        with open(SAMPLE_PATH, "r", encoding="utf-8") as f:
            st.session_state.input_text = f.read()
        st.session_state.current_item = None
    except FileNotFoundError:
        st.session_state.sample_error = "Sample file not found in examples/ directory."


def restore_session(item_id: str) -> None:
    """Put a stored session back on screen: its text and its result."""
    item = st.session_state.history.get(item_id)
    if item is not None:
        st.session_state.input_text = item.text
        st.session_state.current_item = item
        st.session_state.mode = MODE_ANALYZE


def _clear_history() -> None:
    st.session_state.history.clear()
    st.session_state.current_item = None


def render_sidebar(settings) -> dict:
    """
    Render the full sidebar and return a config dict.

    Returns keys:
        mode   — MODE_ANALYZE or MODE_REPOSITORY
        model  — model id for this session (configured default or override)
        theme  — theme dict (THEMES[selected_name])
    """
    history = st.session_state.history
    t = THEMES[st.session_state["theme_name"]]

    with st.sidebar:
        st.markdown("## 🧭 RPI Engine")
        st.caption("Relational Population Index research dashboard")

        mode = st.radio(
            "Mode",
            [MODE_ANALYZE, MODE_REPOSITORY],
            key="mode",
            help="Analyze: score one narrative. Repository: compare stored sessions.",
        )

        st.markdown("---")
        st.button("📋 Load Sample Narrative", use_container_width=True, on_click=_load_sample)
        sample_error = st.session_state.pop("sample_error", None)
        if sample_error:
            st.error(sample_error)

        model = st.text_input(
            "Model",
            value=settings.model,
            help="Anthropic model id used for this session.",
        ).strip()

        st.markdown("---")
        st.markdown(f"**Research Repository** ({len(history)}/{history.max_items})")
        if not len(history):
            st.caption("No analyses yet. Results stay in this browser session only.")
        for item in history:
            when = datetime.fromtimestamp(item.timestamp / 1000).strftime("%H:%M")
            col_btn, col_score = st.columns([4, 1])
            with col_btn:
                st.button(
                    f"#{item.id} · {when}",
                    key=f"restore_{item.id}",
                    use_container_width=True,
                    on_click=restore_session,
                    args=(item.id,),
                    help=item.text[:120],
                )
            with col_score:
                st.markdown(
                    f'<div style="font-weight: 900; padding-top: 6px; '
                    f'color: {rpi_color(item.result.rpi_score, t)};">{item.result.rpi_score:g}</div>',
                    unsafe_allow_html=True,
                )
        if len(history):
            st.button("🗑️ Clear History", use_container_width=True, on_click=_clear_history)

        # Theme picker stays at the bottom
        st.markdown("---")
        with st.expander("Theme", expanded=False):
            _theme_choice = st.radio(
                "Pick theme",
                list(THEMES.keys()),
                index=list(THEMES.keys()).index(st.session_state["theme_name"]),
                horizontal=True,
                key="_theme_radio",
                label_visibility="collapsed",
            )
            if _theme_choice != st.session_state["theme_name"]:
                st.session_state["theme_name"] = _theme_choice
                st.rerun()

    return {
        "mode": mode,
        "model": model or settings.model,
        "theme": t,
    }
