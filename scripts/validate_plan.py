"""
Command-line plan checker.

Validates a saved plan JSON against the course catalog, or audits the catalog
itself for requisite text that references unknown courses or parses to
nothing. Importable for tests and runnable as a standalone CLI.

Usage:
    python scripts/validate_plan.py --plan data/sample_plan.json
    python scripts/validate_plan.py --plan my_plan.json --catalog path/to/courses.csv
    python scripts/validate_plan.py --audit-catalog
"""

import argparse
import json
import os
import sys

# Import backend modules (add backend/ to path)
_BACKEND_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend")
sys.path.insert(0, _BACKEND_DIR)

from data_loader import load_catalog, build_plan  # noqa: E402
from plan_validator import validate_plan  # noqa: E402
from requisite_parser import parse_requisites, predicate_course_codes  # noqa: E402

DEFAULT_CATALOG = os.path.join(os.path.dirname(__file__), "..", "data", "courses.csv")


def format_summary(result: dict, label: str = "plan") -> str:
    status = "PASS" if result["is_valid"] else "FAIL"
    lines = [f"[{status}] {label}"]
    for e in result["errors"]:
        lines.append(f"  [ERROR] {e['course_code']}: {e['message']}")
    for w in result["warnings"]:
        lines.append(f"  [WARN]  {w['course_code']}: {w['message']}")
    if result["is_valid"] and not result["warnings"]:
        lines.append("  All checks passed.")
    return "\n".join(lines)


def audit_catalog(catalog: dict) -> dict:
    """
    Requisite-text QC over the whole catalog.

    Errors: requisites naming a course that is not in the catalog.
    Warnings: requisite text that produced no predicates at all.
    """
    errors: list[dict] = []
    warnings: list[dict] = []
    known = catalog["catalog_codes"]

    for code in sorted(catalog["courses"]):
        raw = catalog["courses"][code]["requirements"]
        if not raw:
            continue
        parsed = parse_requisites(raw)
        if not parsed["has_requirements"]:
            warnings.append({
                "course_code": code,
                "message": f"Requisite text parsed to nothing: {raw!r}",
            })
            continue
        missing: list[str] = []
        for predicate in parsed["predicates"]:
            for ref in predicate_course_codes(predicate):
                if ref not in known and ref not in missing:
                    missing.append(ref)
        if missing:
            errors.append({
                "course_code": code,
                "message": f"References {len(missing)} course(s) not in catalog: {missing}",
            })

    return {"is_valid": len(errors) == 0, "errors": errors, "warnings": warnings}


def load_plan_file(path: str, catalog: dict) -> dict:
    with open(path, encoding="utf-8") as fh:
        payload = json.load(fh)
    terms = payload.get("terms") if isinstance(payload, dict) else payload
    return build_plan(terms, catalog)


# ── CLI entry point ───────────────────────────────────────────────────────────

def main(args=None):
    parser = argparse.ArgumentParser(
        description="Validate an academic plan against catalog requisites.",
    )
    parser.add_argument("--plan", type=str, help="Path to a plan JSON file.")
    parser.add_argument("--audit-catalog", action="store_true", help="Audit catalog requisite text.")
    parser.add_argument(
        "--catalog", type=str,
        default=DEFAULT_CATALOG,
        help="Path to the course catalog CSV.",
    )
    opts = parser.parse_args(args)

    if not opts.plan and not opts.audit_catalog:
        parser.error("Provide --plan PLAN_JSON or --audit-catalog.")

    catalog = load_catalog(opts.catalog)

    all_passed = True
    if opts.audit_catalog:
        result = audit_catalog(catalog)
        print(format_summary(result, "catalog"))
        all_passed = all_passed and result["is_valid"]

    if opts.plan:
        try:
            plan = load_plan_file(opts.plan, catalog)
        except (OSError, ValueError) as exc:
            print(f"[ERROR] Could not load plan {opts.plan}: {exc}", file=sys.stderr)
            return 2
        result = validate_plan(plan)
        print(format_summary(result, os.path.basename(opts.plan)))
        all_passed = all_passed and result["is_valid"]

    return 0 if all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
