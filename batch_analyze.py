"""
Batch RPI Runner — Analyze a folder of narratives or a JSONL dataset.
Produces per-narrative JSON and a ranked summary of RPI across the set.
"""
import json
import logging
import re
import sys
import os
from datetime import datetime

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))
from rpi_engine import (
    run_analysis, AnalysisError, load_settings, configure_logging,
    rpi_stage, dominant_factor, report_to_json,
)
from utils import STAGES, rpi_stage_short, short_stage

logger = logging.getLogger(__name__)


def safe_item_id(raw_id: str, seen: set, fallback: str) -> str:
    """
    Filename-safe, unique id: anything but word chars, '.' and '-' becomes '_';
    repeats get a numeric suffix (week1, week1_2, week1_3...).
    """
    base = re.sub(r"[^\w.-]", "_", raw_id).strip(".") or fallback
    item_id = base
    n = 2
    while item_id in seen:
        item_id = f"{base}_{n}"
        n += 1
    seen.add(item_id)
    return item_id


def load_narratives(path: str, limit: int | None = None) -> list[dict]:
    """
    Load narratives as [{"id": ..., "text": ...}].

    A directory yields one item per .txt file (id = file stem).
    A .jsonl file yields one item per line with "text" and optional "id";
    lines that are not JSON objects are skipped with a warning.
    """
    items = []
    seen: set = set()
    if os.path.isdir(path):
        for name in sorted(os.listdir(path)):
            if not name.endswith(".txt"):
                continue
            with open(os.path.join(path, name), 'r', encoding='utf-8') as f:
                stem = os.path.splitext(name)[0]
                items.append({"id": safe_item_id(stem, seen, f"file_{len(items) + 1}"), "text": f.read()})
    else:
        with open(path, 'r', encoding='utf-8') as f:
            for i, line in enumerate(f):
                if not line.strip():
                    continue
                fallback = f"line_{i + 1}"
                try:
                    record = json.loads(line)
                except json.JSONDecodeError as e:
                    logger.warning("Skipping %s: invalid JSON (%s)", fallback, e)
                    continue
                if not isinstance(record, dict):
                    logger.warning("Skipping %s: expected an object, got %s", fallback, type(record).__name__)
                    continue
                raw_id = record.get("id")
                items.append({
                    "id": safe_item_id(str(raw_id) if raw_id is not None else fallback, seen, fallback),
                    "text": str(record.get("text") or ""),
                })
    if limit is not None:
        items = items[:limit]
    return items


def summarize_result(item_id: str, text: str, result) -> dict:
    """Flat row for the batch results file."""
    return {
        'id': item_id,
        'chars': len(text),
        'rpi_score': result.rpi_score,
        'stage': rpi_stage_short(result.rpi_score),
        'emo': result.metrics.emo,
        'spa': result.metrics.spa,
        'soc': result.metrics.soc,
        'alpha': result.weights.alpha,
        'beta': result.weights.beta,
        'gamma': result.weights.gamma,
        'dominant_factor': dominant_factor(result.weights),
        'critical_period': result.critical_period,
        'nodes': len(result.knowledge_graph.nodes),
        'edges': len(result.knowledge_graph.edges),
        'warnings': len(result.warnings),
    }


def write_batch_summary(results: list[dict], errors: list[dict], output_path: str) -> None:
    """Ranked plain-text summary of a batch run."""
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write("=" * 70 + "\n")
        f.write("BATCH RPI ANALYSIS SUMMARY\n")
        f.write(f"Generated: {datetime.now().isoformat()}\n")
        f.write("=" * 70 + "\n\n")

        f.write(f"Total narratives analyzed: {len(results)}\n")
        f.write(f"Errors: {len(errors)}\n\n")

        if results:
            avg = sum(r['rpi_score'] for r in results) / len(results)
            f.write("AGGREGATE STATISTICS\n")
            f.write("-" * 40 + "\n")
            f.write(f"  Average RPI: {avg:.1f}/100\n")
            for key in ('emo', 'spa', 'soc'):
                f.write(f"  Average X_{key}: {sum(r[key] for r in results) / len(results):.1f}\n")
            f.write(f"  Results with consistency warnings: {sum(1 for r in results if r['warnings'])}\n\n")

            f.write("STAGE DISTRIBUTION\n")
            f.write("-" * 40 + "\n")
            for stage in STAGES:
                label = short_stage(stage)
                count = sum(1 for r in results if r['stage'] == label)
                pct = count / len(results) * 100
                bar = "#" * int(pct / 2)
                f.write(f"  {label:24s}: {count:3d} ({pct:5.1f}%) {bar}\n")
            f.write("\n")

            f.write("DOMINANT FACTOR\n")
            f.write("-" * 40 + "\n")
            for key in ('emo', 'spa', 'soc'):
                count = sum(1 for r in results if r['dominant_factor'] == key)
                f.write(f"  X_{key}: {count}\n")
            f.write("\n")

            f.write("RANKING (highest RPI first)\n")
            f.write("-" * 40 + "\n")
            for r in sorted(results, key=lambda x: x['rpi_score'], reverse=True)[:20]:
                f.write(f"  [{r['rpi_score']:6.2f}] {r['id'][:50]} ({r['stage']})\n")
                f.write(f"           emo:{r['emo']} spa:{r['spa']} soc:{r['soc']}"
                        f" critical:{r['critical_period'][:30]}\n")

        if errors:
            f.write(f"\nERRORS ({len(errors)})\n")
            f.write("-" * 40 + "\n")
            for e in errors:
                f.write(f"  {e['id'][:50]}: {e['error'][:80]}\n")


def run_batch(path: str, output_dir: str = "batch_results", limit: int | None = None,
              model: str | None = None, client=None) -> list[dict]:
    """Analyze every narrative sequentially; one remote call each."""
    settings = load_settings().with_model(model)
    narratives = load_narratives(path, limit)
    print(f"Loaded {len(narratives)} narratives from {path}")

    os.makedirs(output_dir, exist_ok=True)
    results = []
    errors = []

    for i, item in enumerate(narratives):
        print(f"[{i+1}/{len(narratives)}] {item['id'][:50]}...", end=" ", flush=True)
        if not item['text'].strip():
            print("SKIP (empty)")
            continue
        try:
            result = run_analysis(item['text'], settings=settings, client=client)
        except AnalysisError as e:
            print(f"ERROR: {e.user_message}")
            errors.append({'id': item['id'], 'error': e.cause or e.user_message})
            continue

        with open(os.path.join(output_dir, f"{item['id']}.json"), 'w', encoding='utf-8') as f:
            f.write(report_to_json(result, text=item['text'], session_id=item['id'], model=settings.model))
        results.append(summarize_result(item['id'], item['text'], result))
        print(f"DONE (RPI: {result.rpi_score})")

    results.sort(key=lambda r: r['rpi_score'], reverse=True)

    results_path = os.path.join(output_dir, "batch_results.json")
    with open(results_path, 'w', encoding='utf-8') as f:
        json.dump(results, f, indent=2, ensure_ascii=False)

    summary_path = os.path.join(output_dir, "batch_summary.txt")
    write_batch_summary(results, errors, summary_path)

    print()
    print("=" * 70)
    print(f"BATCH COMPLETE: {len(results)} narratives analyzed, {len(errors)} errors")
    if results:
        print(f"Highest RPI: {results[0]['id'][:50]} ({results[0]['rpi_score']}, {rpi_stage(results[0]['rpi_score'])})")
    print(f"Results: {results_path}")
    print(f"Summary: {summary_path}")
    print("=" * 70)
    return results


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Batch RPI analysis of narratives")
    parser.add_argument("path", help="Directory of .txt narratives or a .jsonl file with a 'text' field")
    parser.add_argument("--output-dir", "--output", dest="output_dir", default="batch_results", help="Output directory")
    parser.add_argument("--limit", type=int, default=None, help="Analyze at most N narratives")
    parser.add_argument("--model", default=None, help="Override the configured model")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    configure_logging(args.verbose)
    run_batch(args.path, args.output_dir, args.limit, args.model)
