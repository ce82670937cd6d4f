"""
RPI Engine — Entry Point
=========================
Public surface for the dashboard, batch runner and command line.
All logic lives in analyzer.py, parsers/, history.py and utils.py.
"""
import logging
import sys
from typing import Optional

# --- Models ---
from models import (
    MetricKey, NodeType,
    RPIMetrics, RPIWeights, TrajectoryPoint,
    KnowledgeNode, KnowledgeEdge, KnowledgeGraph,
    AnalysisResult, HistoryItem, AnalysisError,
)

# --- Settings ---
from settings import Settings, load_settings

# --- Analysis ---
from analyzer import analyze_text
from parsers.response_parser import (
    strip_code_fences,
    round_numeric_leaves,
    parse_analysis,
    check_consistency,
)
from history import ResearchHistory

# --- Utilities ---
from utils import (
    rpi_stage,
    weighted_composite,
    dominant_factor,
    top_edges,
    format_report,
    report_to_json,
)


logger = logging.getLogger(__name__)


def run_analysis(text: str, model: Optional[str] = None,
                 settings: Optional[Settings] = None, client=None) -> AnalysisResult:
    """Analyze one narrative with optional per-call model override."""
    settings = settings or load_settings()
    if model:
        settings = settings.with_model(model)
    return analyze_text(text, settings=settings, client=client)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# CLI Entry Point
# ---------------------------------------------------------------------------

def main(argv: Optional[list] = None) -> int:
    """Run one analysis from the command line."""
    import argparse

    parser = argparse.ArgumentParser(
        description="RPI Engine - Relational Population Index analyzer"
    )
    parser.add_argument("text_file", help="Path to a narrative (diary, SNS post) as plain text; '-' reads stdin")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--model", default=None, help="Override the configured model")
    parser.add_argument("--id", default="", help="Session identifier for the report")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        if args.text_file == "-":
            text = sys.stdin.read()
        else:
            with open(args.text_file, "r", encoding="utf-8") as f:
                text = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        print(f"ERROR: cannot read {args.text_file}: {exc}", file=sys.stderr)
        return 1

    try:
        settings = load_settings().with_model(args.model)
    except ValueError as exc:
        print(f"ERROR: invalid configuration: {exc}", file=sys.stderr)
        return 1

    try:
        result = run_analysis(text, settings=settings)
    except AnalysisError as exc:
        print(f"ERROR: {exc.user_message}", file=sys.stderr)
        if exc.cause:
            logger.debug("Cause: %s", exc.cause)
        return 1

    if args.json:
        print(report_to_json(result, text=text, session_id=args.id, model=settings.model))
    else:
        print(format_report(result, text=text, session_id=args.id))
    return 0


if __name__ == "__main__":
    sys.exit(main())
