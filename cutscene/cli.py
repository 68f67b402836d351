"""
Cutscene Toolkit - Command Line
`cutscene validate|compile|export FILE` over the same pipeline the API uses.

Exit codes: 0 ok, 1 validation errors or compile failure, 2 unreadable input.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cutscene import __version__
from cutscene.config.settings import settings
from cutscene.graph.document import CutsceneDocument, DocumentError, read_document
from cutscene.validator.validator import Severity, validate_graph
from cutscene.compiler.compiler import compile_graph
from cutscene.compiler.errors import CompileError
from cutscene.exporter.pipeline import ExportBlockedError, export_document

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BAD_INPUT = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cutscene",
        description="Validate, compile and export cutscene graphs for the engine.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        default=None,
        help=f"Logging level (default: {settings.log_level}, from CUTSCENE_LOG_LEVEL).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_validate = sub.add_parser("validate", help="Report validator diagnostics for a document.")
    p_validate.add_argument("file", type=Path)
    p_validate.add_argument(
        "--show-tips",
        action="store_true",
        help="Also print advisory tips (hidden by default).",
    )

    p_compile = sub.add_parser("compile", help="Print the compiled action list as JSON.")
    p_compile.add_argument("file", type=Path)

    p_export = sub.add_parser("export", help="Validate, compile and write the export envelope.")
    p_export.add_argument("file", type=Path)
    p_export.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Write the envelope here instead of stdout.",
    )
    return parser


def _load(path: Path) -> Optional[CutsceneDocument]:
    try:
        return read_document(path)
    except OSError as e:
        print(f"error: cannot read {path}: {e.strerror or e}", file=sys.stderr)
    except DocumentError as e:
        print(f"error: {e}", file=sys.stderr)
    return None


def _location(node_id: Optional[str], edge_id: Optional[str]) -> str:
    if node_id:
        return f" [node {node_id}]"
    if edge_id:
        return f" [edge {edge_id}]"
    return ""


# ── Commands ──────────────────────────────────────────────────────────

def _cmd_validate(args: argparse.Namespace) -> int:
    doc = _load(args.file)
    if doc is None:
        return EXIT_BAD_INPUT

    result = validate_graph(doc.graph)
    shown = 0
    for d in result.entries:
        if d.severity == Severity.TIP and not args.show_tips:
            continue
        print(f"{d.severity.value}:{_location(d.node_id, d.edge_id)} {d.message}")
        shown += 1

    counts = f"{len(result.errors())} error(s), {len(result.warnings())} warning(s), {len(result.tips())} tip(s)"
    print(f"{args.file}: {counts}", file=sys.stderr)
    return EXIT_FAILED if result.has_errors else EXIT_OK


def _cmd_compile(args: argparse.Namespace) -> int:
    doc = _load(args.file)
    if doc is None:
        return EXIT_BAD_INPUT
    try:
        actions = compile_graph(doc.graph)
    except CompileError as e:
        print(f"error ({e.kind}):{_location(e.node_id, e.edge_id)} {e.message}", file=sys.stderr)
        return EXIT_FAILED
    print(json.dumps(actions, indent=2, ensure_ascii=False))
    return EXIT_OK


def _cmd_export(args: argparse.Namespace) -> int:
    doc = _load(args.file)
    if doc is None:
        return EXIT_BAD_INPUT
    try:
        exported = export_document(doc)
    except ExportBlockedError as e:
        for d in e.errors:
            print(f"error:{_location(d.node_id, d.edge_id)} {d.message}", file=sys.stderr)
        print(f"Cannot export: fix {len(e.errors)} error(s) first.", file=sys.stderr)
        return EXIT_FAILED
    except CompileError as e:
        print(f"error ({e.kind}):{_location(e.node_id, e.edge_id)} {e.message}", file=sys.stderr)
        return EXIT_FAILED

    text = exported.to_json()
    if args.output is None:
        print(text)
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        print(f"Exported {exported.cutscene_id} -> {args.output}", file=sys.stderr)
    return EXIT_OK


_COMMANDS = {
    "validate": _cmd_validate,
    "compile": _cmd_compile,
    "export": _cmd_export,
}


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level or settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return _COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
