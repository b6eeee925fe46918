"""
Command line entry point.

Loads a hierarchy (nested JSON or parent/child CSV), settles the layout,
optionally toggles nodes as if they had been clicked, and writes a PNG frame
and/or a layout JSON.

    python -m tree_graphs.cli tree.json --click A --out frame.png --layout layout.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .errors import TreeGraphError
from .explorer import TreeExplorer
from .loader import load_hierarchy
from .presets import load_config


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="tree_graphs",
        description="Collapsible force-directed tree layout",
    )
    ap.add_argument("input", help="hierarchy file (.json nested, or .csv with id,parent columns)")
    ap.add_argument("--threshold", type=int, default=None,
                    help="cluster threshold (default from TREE_GRAPHS_CLUSTER_THRESHOLD or 3)")
    ap.add_argument("--ticks", type=int, default=None, help="max ticks per settle (default: until settled)")
    ap.add_argument("--click", action="append", default=[], metavar="ID",
                    help="toggle this node after the first settle; repeatable, applied in order")
    ap.add_argument("--width", type=float, default=None)
    ap.add_argument("--height", type=float, default=None)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--id-col", default="id")
    ap.add_argument("--parent-col", default="parent")
    ap.add_argument("--out", default=None, help="write the final frame to this PNG")
    ap.add_argument("--layout", default=None, help="write node positions to this JSON")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    log = logging.getLogger("tree_graphs.cli")

    try:
        cfg = load_config()
        if args.threshold is not None:
            cfg.engine.cluster_threshold = args.threshold
        if args.width is not None:
            cfg.forces.width = args.width
        if args.height is not None:
            cfg.forces.height = args.height
        if args.seed is not None:
            cfg.seed = args.seed

        kwargs = {}
        if args.input.lower().endswith(".csv"):
            kwargs = {"id_col": args.id_col, "parent_col": args.parent_col}
        root = load_hierarchy(args.input, **kwargs)

        explorer = TreeExplorer(root, config=cfg)
        explorer.settle(args.ticks)

        for node_id in args.click:
            changed = explorer.click(node_id)
            log.info("[cli] toggled %s (%d nodes changed)", node_id, len(changed))
            explorer.settle(args.ticks)

    except TreeGraphError as exc:
        log.error("%s", exc)
        return 1

    problems = explorer.graph.check_invariants()
    for p in problems:
        log.warning("[cli] invariant violation: %s", p)

    stats = explorer.graph.stats()
    print(f"[tree_graphs] {stats.n_nodes} nodes, {stats.n_links} links, "
          f"{stats.n_collapsed} collapsed, {explorer.layout.ticks} ticks")

    if args.out:
        explorer.write_png(args.out, title=explorer.graph.root_id or "")
        print(f"[tree_graphs] Saved frame to {args.out}")
    if args.layout:
        explorer.write_layout_json(args.layout)
        print(f"[tree_graphs] Saved layout to {args.layout}")

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
