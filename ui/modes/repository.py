"""
RPI Engine — Research Repository Mode
======================================
Compare the sessions stored in this browser session.
"""
import html

import streamlit as st

from ui.charts import build_history_trend_fig, build_weight_strip_html
from ui.components import render_metric_card
from ui.sidebar import restore_session
from ui.theme import rpi_color
from utils import rpi_stage_short


def render_repository_mode(config: dict) -> None:
    """Render the Research Repository mode UI."""
    T = config["theme"]
    history = st.session_state.history

    st.markdown("## 🗂️ Research Repository")
    st.caption(f"Up to {history.max_items} most recent analyses. "
               "Nothing is stored after the browser session ends.")

    if not len(history):
        st.info("No analyses yet. Run one in Analyze mode first.")
        return

    df = history.to_frame()
    trend = history.rpi_trend()

    c1, c2, c3 = st.columns(3)
    with c1:
        render_metric_card("Sessions", len(history), f"of {history.max_items} kept", T)
    with c2:
        render_metric_card("Average RPI", round(float(df["RPI"].mean()), 2), "across stored sessions", T)
    with c3:
        if trend is None:
            render_metric_card("RPI Trend", 0, "needs two sessions", T, color=T["muted"])
        else:
            color = T["good"] if trend > 0 else T["low"] if trend < 0 else T["muted"]
            render_metric_card("RPI Trend", round(trend, 2), "points per session", T, color=color)

    fig = build_history_trend_fig(history.items, T)
    if fig is not None:
        st.plotly_chart(fig, use_container_width=True, config={"displaylogo": False})

    st.markdown("**Sessions**")
    cols = st.columns(2)
    for i, item in enumerate(history):
        r = item.result
        with cols[i % 2]:
            st.markdown(f"""
            <div class="glass-card">
                <div style="display: flex; justify-content: space-between; align-items: baseline;">
                    <span style="font-family: 'JetBrains Mono', monospace; color: {T["muted"]};">#{item.id}</span>
                    <span style="font-weight: 900; font-size: 1.6rem; color: {rpi_color(r.rpi_score, T)};">{r.rpi_score:g}</span>
                </div>
                <div class="metric-sub" style="text-align: left;">{rpi_stage_short(r.rpi_score)} · {html.escape(r.critical_period or "N/A")}</div>
                <div style="margin: 10px 0; font-size: 0.85rem;">{html.escape(item.text[:140])}</div>
                {build_weight_strip_html(r.weights, T)}
            </div>
            """, unsafe_allow_html=True)
            st.button("↩️ Restore", key=f"repo_restore_{item.id}",
                      on_click=restore_session, args=(item.id,))

    st.markdown("**Table**")
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.download_button(
        label="\U0001f4e5 Download Sessions CSV",
        data=df.to_csv(index=False).encode("utf-8"),
        file_name="rpi_sessions.csv",
        mime="text/csv",
    )
