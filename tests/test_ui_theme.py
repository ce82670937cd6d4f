"""Tests for ui/theme.py — pure functions, no Streamlit needed."""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "ui"))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from theme import (
    THEMES, DEFAULT_THEME, rpi_color, metric_color, node_color, hex_to_rgba,
    _build_css, get_plotly_layout,
)

REQUIRED_KEYS = {
    "bg", "surface", "border", "border_accent", "text", "muted", "chart_text",
    "accent", "accent_glow", "accent_hover", "emo", "spa", "soc",
    "place", "activity", "interaction", "good", "mid", "low",
}


class TestRpiColor:
    def test_stable_is_good(self):
        t = THEMES["Atlas"]
        assert rpi_color(80, t) == t["good"]
        assert rpi_color(100, t) == t["good"]

    def test_potential_is_mid(self):
        t = THEMES["Atlas"]
        assert rpi_color(50, t) == t["mid"]
        assert rpi_color(79.99, t) == t["mid"]

    def test_early_is_low(self):
        t = THEMES["Atlas"]
        assert rpi_color(49.99, t) == t["low"]
        assert rpi_color(0, t) == t["low"]

    def test_defaults_to_default_theme(self):
        assert rpi_color(90) == THEMES[DEFAULT_THEME]["good"]


class TestOtherColors:
    def test_metric_color(self):
        t = THEMES["Midnight"]
        assert metric_color("spa", t) == t["spa"]

    def test_unknown_metric_falls_back_to_accent(self):
        t = THEMES["Midnight"]
        assert metric_color("xyz", t) == t["accent"]

    def test_node_color(self):
        t = THEMES["Ember"]
        assert node_color("Place", t) == t["place"]
        assert node_color("Activity", t) == t["activity"]
        assert node_color("Interaction", t) == t["interaction"]

    def test_hex_to_rgba(self):
        assert hex_to_rgba("#4f46e5", 0.2) == "rgba(79,70,229,0.2)"
        assert hex_to_rgba("ffffff", 1) == "rgba(255,255,255,1)"


class TestThemes:
    def test_default_exists(self):
        assert DEFAULT_THEME in THEMES

    def test_five_themes(self):
        assert len(THEMES) == 5

    def test_all_keys_present(self):
        for name, t in THEMES.items():
            missing = REQUIRED_KEYS - set(t)
            assert not missing, f"{name} missing {missing}"

    def test_css_per_theme(self):
        for name, t in THEMES.items():
            css = _build_css(t)
            assert css.strip().startswith("<style>")
            assert t["accent"] in css
            assert ".kg-chip" in css

    def test_plotly_layout(self):
        t = THEMES["Paper"]
        layout = get_plotly_layout(t)
        assert layout["font"]["color"] == t["chart_text"]
        assert layout["paper_bgcolor"] == "rgba(0,0,0,0)"
