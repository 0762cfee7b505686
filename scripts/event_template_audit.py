"""Cross-check ``log_event`` call sites against the event template catalog.

Every ``(domain, action)`` pair passed as string literals to ``*.log_event``
in the ``ircflow`` package and ``main.py`` must have an entry in
``ircflow/logs/event_templates.json``, and every entry there should be used.

Exit status: 0 when the catalog matches, 1 when templates are missing,
2 when a source file cannot be parsed.
"""

from __future__ import annotations

import argparse
import ast
import importlib.util
import json
import sys
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
PACKAGE_ROOT = ROOT / "ircflow"
ENTRYPOINT = ROOT / "main.py"
TEMPLATES_JSON = PACKAGE_ROOT / "logs" / "event_templates.json"

EventKey = tuple[str, str]


def _load_catalog():
    # By path, so the audit also works from a checkout that is not installed.
    spec = importlib.util.spec_from_file_location(
        "ircflow_event_catalog", PACKAGE_ROOT / "logs" / "event_catalog.py"
    )
    if spec is None or spec.loader is None:  # pragma: no cover
        raise RuntimeError("cannot load ircflow/logs/event_catalog.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


_catalog = _load_catalog()


@dataclass(slots=True)
class DiffResult:
    missing: set[EventKey]
    unused: set[EventKey]
    discrepancy: set[EventKey]
    referenced: int = 0
    unparseable: list[Path] = field(default_factory=list)

    def exit_code(self) -> int:
        if self.unparseable:
            return 2
        return 1 if self.missing else 0


def iter_source_files() -> Iterator[Path]:
    yield from sorted(PACKAGE_ROOT.rglob("*.py"))
    if ENTRYPOINT.exists():
        yield ENTRYPOINT


def _literal_strings(expr: ast.AST | None) -> set[str]:
    """String literals an expression can evaluate to; ternaries contribute both arms."""
    if isinstance(expr, ast.Constant) and isinstance(expr.value, str):
        return {expr.value}
    if isinstance(expr, ast.IfExp):
        return _literal_strings(expr.body) | _literal_strings(expr.orelse)
    return set()


def _event_keys(call: ast.Call) -> set[EventKey]:
    if not (isinstance(call.func, ast.Attribute) and call.func.attr == "log_event"):
        return set()
    domain = call.args[0] if call.args else None
    action = call.args[1] if len(call.args) > 1 else None
    for kw in call.keywords:
        if kw.arg == "domain":
            domain = kw.value
        elif kw.arg == "action":
            action = kw.value
    # A dynamic domain cannot be checked; only one literal domain is meaningful.
    domains = _literal_strings(domain) if isinstance(domain, ast.Constant) else set()
    return {(d, a) for d in domains for a in _literal_strings(action)}


def extract_references(
    paths: Iterable[Path], unparseable: list[Path] | None = None
) -> set[EventKey]:
    refs: set[EventKey] = set()
    for path in paths:
        try:
            tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        except (OSError, SyntaxError, UnicodeDecodeError):
            if unparseable is not None:
                unparseable.append(path)
            continue
        for node in ast.walk(tree):
            if isinstance(node, ast.Call):
                refs |= _event_keys(node)
    return refs


def load_templates_from_json(path: Path = TEMPLATES_JSON) -> set[EventKey]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return set()
    return {
        (domain, action)
        for domain, actions in raw.items()
        if isinstance(actions, dict)
        for action in actions
    }


def diff() -> DiffResult:
    _catalog.reload_event_templates()
    unparseable: list[Path] = []
    code_refs = extract_references(iter_source_files(), unparseable)
    json_templates = load_templates_from_json()
    return DiffResult(
        missing=code_refs - json_templates,
        unused=json_templates - code_refs,
        discrepancy=set(_catalog.EVENT_TEMPLATES) ^ json_templates,
        referenced=len(code_refs),
        unparseable=unparseable,
    )


def compute_diff() -> tuple[set[EventKey], set[EventKey], set[EventKey]]:
    result = diff()
    return result.missing, result.unused, result.discrepancy


def prune_unused(unused: set[EventKey], path: Path = TEMPLATES_JSON) -> bool:
    """Drop unused entries (and domains left empty); True if the file changed."""
    data = json.loads(path.read_text(encoding="utf-8"))
    removed = 0
    for domain, action in unused:
        if action in data.get(domain, {}):
            del data[domain][action]
            removed += 1
    for domain in [d for d, actions in data.items() if not actions]:
        del data[domain]
    if removed:
        path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return bool(removed)


def emit_json(result: DiffResult) -> None:
    print(
        json.dumps(
            {
                "missing": sorted(result.missing),
                "unused": sorted(result.unused),
                "discrepancy": sorted(result.discrepancy),
                "unparseable": [str(p) for p in result.unparseable],
            },
            indent=2,
        )
    )


def _emit_section(title: str, keys: set[EventKey]) -> None:
    if not keys:
        print(f"No {title.lower()} found.")
        return
    print(f"{title} ({len(keys)}):")
    for domain, action in sorted(keys):
        print(f"  - {domain}:{action}")


def emit_human(result: DiffResult) -> None:
    print("Event Template Audit Report")
    print(f"  referenced in code: {result.referenced}")
    print(f"  loaded at runtime:  {len(_catalog.EVENT_TEMPLATES)}")
    for path in result.unparseable:
        print(f"Could not parse {path}")
    _emit_section("Missing templates", result.missing)
    _emit_section("Unused templates", result.unused)
    if result.discrepancy:
        _emit_section("JSON and runtime catalog disagree", result.discrepancy)


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Audit event templates against log_event call sites")
    parser.add_argument("--json-output", action="store_true", help="Emit the diff as JSON")
    parser.add_argument(
        "--prune-unused", action="store_true", help="Remove unused templates from the JSON file"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    result = diff()
    if args.prune_unused and result.unused and prune_unused(result.unused):
        print(f"Pruned {len(result.unused)} unused templates", file=sys.stderr)
        result = diff()
    if args.json_output:
        emit_json(result)
    else:
        emit_human(result)
    return result.exit_code()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
