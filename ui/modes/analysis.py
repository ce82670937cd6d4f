"""
RPI Engine — Analyze Mode
==========================
Narrative input, one remote analysis per click, and the full dashboard
for the current (or restored) session.
"""
import logging

import streamlit as st

from rpi_engine import run_analysis, AnalysisError, format_report, report_to_json
from ui.components import render_rpi_hero, render_metric_card, chart_export, _loading_html
from ui.charts import (
    build_radar_fig, build_trajectory_fig, build_weights_fig, build_contribution_fig,
    build_knowledge_graph_fig, build_contribution_html, build_breakdown_html,
    build_weight_strip_html, build_node_chips_html, build_edge_list_html,
)
from ui.insights import generate_insights
from ui.theme import metric_color
from models import METRIC_LABELS

logger = logging.getLogger(__name__)

PLACEHOLDER = (
    "Paste a one-month-stay diary or a set of SNS posts here.\n"
    "e.g. Week 1: arrived in Gangneung, everything felt unfamiliar...\n"
    "Week 3: the owner of the corner cafe now saves me a seat by the window."
)


def render_analysis_mode(config: dict, settings) -> None:
    """Render the Analyze mode UI."""
    T = config["theme"]

    st.markdown("## 🔬 Relational Population Index")
    st.caption("Emotional, spatial and social indicators weighted by self-attention, "
               "with a spatio-temporal knowledge graph of the stay.")

    uploaded = st.file_uploader(
        "Or upload a narrative (.txt)",
        type=["txt"],
        help="Plain-text diary or exported SNS posts, UTF-8.",
    )
    if uploaded is not None and st.session_state.get("uploaded_name") != uploaded.name:
        st.session_state.uploaded_name = uploaded.name
        st.session_state.input_text = uploaded.getvalue().decode("utf-8", errors="ignore")

    text = st.text_area(
        "Narrative",
        key="input_text",
        height=220,
        placeholder=PLACEHOLDER,
        label_visibility="collapsed",
    )

    analyze_col, clear_col = st.columns([3, 1])
    with analyze_col:
        analyze_clicked = st.button(
            "🔍 Run Analysis",
            use_container_width=True,
            type="primary",
            disabled=not text.strip(),
        )
    with clear_col:
        if st.button("✖️ Clear Result", use_container_width=True):
            st.session_state.current_item = None
            st.rerun()

    if analyze_clicked:
        _loading = st.empty()
        _loading.markdown(_loading_html(T), unsafe_allow_html=True)
        try:
            result = run_analysis(text, settings=settings.with_model(config["model"]))
        except AnalysisError as exc:
            # previous result stays on screen
            logger.error("Analysis failed: %s", exc.cause or exc.user_message)
            st.error(exc.user_message)
        else:
            st.session_state.current_item = st.session_state.history.add(
                text, result, model=config["model"],
            )
            # refresh the sidebar session list
            st.rerun()
        finally:
            _loading.empty()

    item = st.session_state.get("current_item")
    if item is None:
        st.info("Enter a narrative and run the analysis to see the dashboard.")
        return

    _render_dashboard(item, T)


def _render_dashboard(item, T: dict) -> None:
    result = item.result
    st.caption(f"Session #{item.id} · model {item.model or 'default'}")

    # --- Headline: score + contributions ---
    hero_col, contrib_col = st.columns([1, 2])
    with hero_col:
        render_rpi_hero(result.rpi_score, T)
    with contrib_col:
        st.markdown(build_contribution_html(result, T), unsafe_allow_html=True)

    st.markdown(build_breakdown_html(result, T), unsafe_allow_html=True)

    if result.warnings:
        with st.expander(f"⚠️ Consistency warnings ({len(result.warnings)})", expanded=False):
            for w in result.warnings:
                st.markdown(f"- {w}")

    # --- Detail tabs ---
    tab_ind, tab_traj, tab_kg, tab_ins, tab_export = st.tabs(
        ["Indicators", "Trajectory", "ST-KG", "Insights", "Export"]
    )

    with tab_ind:
        col_radar, col_weights = st.columns([3, 2])
        with col_radar:
            radar = build_radar_fig(result, T)
            st.plotly_chart(radar, use_container_width=True, config={"displaylogo": False})
        with col_weights:
            st.plotly_chart(build_weights_fig(result, T), use_container_width=True,
                            config={"displaylogo": False})
            st.markdown(build_weight_strip_html(result.weights, T), unsafe_allow_html=True)

        m1, m2, m3 = st.columns(3)
        for col, key in zip((m1, m2, m3), ("emo", "spa", "soc")):
            with col:
                render_metric_card(
                    METRIC_LABELS[key], getattr(result.metrics, key),
                    f"X_{key} · weight {result.weights.for_metric(key):.2f}",
                    T, color=metric_color(key, T),
                )
        st.markdown("**Contribution per indicator**")
        st.plotly_chart(build_contribution_fig(result, T), use_container_width=True,
                        config={"displaylogo": False})

    with tab_traj:
        traj = build_trajectory_fig(result, T)
        st.plotly_chart(traj, use_container_width=True, config={"displaylogo": False})
        st.markdown(f"""
        <div class="critical-card">
            <div class="metric-label" style="text-align: left;">Critical Period</div>
            <div style="font-weight: 800; font-size: 1.05rem;">{result.critical_period or "N/A"}</div>
        </div>
        """, unsafe_allow_html=True)
        chart_export(traj, f"rpi_trajectory_{item.id}.png", "png", "Download Trajectory")

    with tab_kg:
        graph = result.knowledge_graph
        st.markdown("**Entities**")
        st.markdown(build_node_chips_html(graph, T), unsafe_allow_html=True)
        col_net, col_edges = st.columns([3, 2])
        with col_net:
            kg_fig = build_knowledge_graph_fig(graph, T)
            st.plotly_chart(kg_fig, use_container_width=True, config={"displaylogo": False})
        with col_edges:
            st.markdown("**Strongest connections**")
            st.markdown(build_edge_list_html(graph, T), unsafe_allow_html=True)
        chart_export(kg_fig, f"rpi_stkg_{item.id}.png", "png", "Download ST-KG")

    with tab_ins:
        for line in generate_insights(result):
            st.markdown(f"- {line}")

    with tab_export:
        exp1, exp2 = st.columns(2)
        with exp1:
            st.download_button(
                label="\U0001f4e5 Download JSON Report",
                data=report_to_json(result, text=item.text, session_id=item.id, model=item.model),
                file_name=f"rpi_{item.id}.json",
                mime="application/json",
                use_container_width=True,
            )
        with exp2:
            st.download_button(
                label="\U0001f4c4 Download Text Report",
                data=format_report(result, text=item.text, session_id=item.id),
                file_name=f"rpi_{item.id}.txt",
                mime="text/plain",
                use_container_width=True,
            )
        chart_export(radar, f"rpi_indicators_{item.id}.pdf", "pdf", "Download Indicators")
