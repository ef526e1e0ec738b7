#!/usr/bin/env python3
"""
Trade Graph Inspector
=====================

Builds the trade network from a CSV file and prints what a renderer would
receive: build report, visible graph size, and summaries of the busiest
nodes.

USAGE:
    python scripts/inspect_graph.py data/Data.csv --mode full --threshold 20
    python scripts/inspect_graph.py data/Data.csv --products productName --search suzlon
    python scripts/inspect_graph.py data/Data.csv --focus "supplier-SUZLON" --json
"""
import argparse
import json
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tradegraph.api.mapper import map_view_to_dto
from tradegraph.contracts.base import DisplayMode, HsCodeLevel, ProductDisplayMode
from tradegraph.contracts.graph import DisplayConfig, FilterState
from tradegraph.engine import EngineConfig, PipelineStatus, TradeGraphEngine
from tradegraph.ingestion import source_for
from tradegraph.normalization import NormalizationConfig
from tradegraph.presentation import NodeSummary


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Inspect a trade network graph")
    parser.add_argument('source', help='CSV file path or http(s) URL')
    parser.add_argument(
        '--mode', default='full',
        choices=[m.value for m in DisplayMode],
        help='Edge pattern to materialize'
    )
    parser.add_argument(
        '--products', default='hsCode',
        choices=[m.value for m in ProductDisplayMode],
        help='What product nodes represent'
    )
    parser.add_argument(
        '--hs-level', default='category',
        choices=[m.value for m in HsCodeLevel],
        help='HS code granularity'
    )
    parser.add_argument('--threshold', type=int, default=1, help='Minimum link transaction count')
    parser.add_argument('--search', default='', help='Case-insensitive entity search')
    parser.add_argument('--focus', default=None, help='Node id to focus on')
    parser.add_argument('--aliases', default=None, help='JSON file with brand aliases / legal suffixes')
    parser.add_argument('--top', type=int, default=10, help='Number of node summaries to print')
    parser.add_argument('--json', action='store_true', help='Print the full graph DTO as JSON')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if args.threshold < 1:
        print("[!] --threshold must be >= 1")
        return 2

    normalization = (
        NormalizationConfig.from_json_file(args.aliases)
        if args.aliases else NormalizationConfig.from_env()
    )
    config = EngineConfig(
        normalization=normalization,
        display=DisplayConfig.from_strings(args.mode, args.products, args.hs_level),
        initial_threshold=args.threshold,
    )
    engine = TradeGraphEngine(config)

    print(f"[*] Loading {args.source}...")
    result = engine.load_source(source_for(args.source, config.source))
    if not result.is_success:
        print(f"[!] {result.error.message}")
        return 1

    engine.set_filter_state(FilterState(
        min_transaction_threshold=args.threshold,
        search_term=args.search,
        focus_entity_id=args.focus,
    ))
    view = engine.view(seed=0)

    if args.json:
        print(json.dumps(map_view_to_dto(view, engine.visible_metrics()), indent=2))
        return 0

    report = view.report
    print(f"[*] Rows: {report.rows_seen:,} seen, {report.rows_used:,} used, "
          f"{report.rows_skipped:,} skipped, {report.values_unparseable:,} unparseable values")
    print(f"[*] Full graph: {report.node_count:,} nodes, {report.link_count:,} links")
    for diagnostic in report.diagnostics():
        print(f"[!] {diagnostic.message}")

    if view.status == PipelineStatus.EMPTY_VISIBLE_GRAPH:
        print("[!] No data to display with the current filters.")
        return 0

    metrics = engine.visible_metrics()
    print(f"[*] Visible: {metrics.node_count:,} nodes, {metrics.link_count:,} links "
          f"(density {metrics.density:.4f})")
    if view.focus_entity_id:
        print(f"[*] Focus: {view.focus_entity_id}")

    busiest = sorted(
        view.graph.nodes.values(),
        key=lambda n: (-n.transaction_count, n.id)
    )[:args.top]
    for node in busiest:
        print()
        print(NodeSummary.from_node(node).format_tooltip())
    return 0


if __name__ == "__main__":
    sys.exit(main())
