"""
Plan validation: checks a course placement (or every placement in a plan)
against catalog requisites and plan-wide rules.

Pure functions over plan dicts. No Flask or data-loader imports.

Plan shape:
  {"terms": [{"term_index": 0, "label": "1A", "courses": [course, ...]}, ...]}

Course shape:
  {"id": ..., "code": "ECE 250", "requirements": "Prereq: ECE 105",
   "has_requirements": True, "units": 0.5}
"""

from typing import Dict, List, Optional, Set

from diagnostics import (
    KIND_ANTIREQUISITE,
    KIND_COREQUISITE,
    KIND_DUPLICATE,
    KIND_LEVEL,
    KIND_OVERLOAD,
    KIND_PREREQUISITE,
    MAX_TERM_COURSES,
    build_validation_result,
    dedupe_diagnostics,
    make_diagnostic,
)
from levels import PLAN_TERM_COUNT, term_label
from requisite_parser import describe, is_satisfied, parse_requisites


def _terms(plan: dict) -> List[dict]:
    return plan.get("terms") or []


def _term_index(term: dict, fallback: int) -> int:
    idx = term.get("term_index")
    return fallback if idx is None else int(idx)


def _term_label(term: dict, fallback: int) -> str:
    label = term.get("label")
    if label:
        return str(label)
    try:
        return term_label(fallback)
    except ValueError:
        return f"term {fallback}"


def _course_identity(course: dict):
    ident = course.get("id")
    return ident if ident not in (None, "") else course.get("code")


def _requisite_text(course: dict) -> Optional[str]:
    """None when the course is flagged as having no requirements or has no text."""
    if course.get("has_requirements") is False:
        return None
    raw = course.get("requirements")
    if raw is None or not str(raw).strip():
        return None
    return str(raw)


def collect_completed_codes(plan: dict, term_index: int) -> Set[str]:
    """Codes of every course in a term strictly before term_index."""
    completed: Set[str] = set()
    for pos, term in enumerate(_terms(plan)):
        if _term_index(term, pos) < term_index:
            for course in term.get("courses") or []:
                if course.get("code"):
                    completed.add(course["code"])
    return completed


def collect_plan_codes(plan: dict) -> Set[str]:
    """Codes of every course anywhere in the plan."""
    codes: Set[str] = set()
    for term in _terms(plan):
        for course in term.get("courses") or []:
            if course.get("code"):
                codes.add(course["code"])
    return codes


def _find_term(plan: dict, term_index: int) -> Optional[dict]:
    for pos, term in enumerate(_terms(plan)):
        if _term_index(term, pos) == term_index:
            return term
    return None


def check_duplicates(plan: dict, term_index: int, course: dict) -> Optional[dict]:
    """First other term already holding the same course, as a warning."""
    identity = _course_identity(course)
    if identity is None:
        return None
    for pos, term in enumerate(_terms(plan)):
        idx = _term_index(term, pos)
        if idx == term_index:
            continue
        for placed in term.get("courses") or []:
            if _course_identity(placed) == identity:
                return make_diagnostic(
                    KIND_DUPLICATE,
                    course.get("code"),
                    f"Course already exists in {_term_label(term, idx)}",
                    "You may want to remove the duplicate course from one of the terms.",
                )
    return None


def check_requisites(plan: dict, term_index: int, course: dict) -> Dict[str, List[dict]]:
    """
    Course, level and corequisite predicates against courses placed before
    term_index. Missing prerequisites are errors; level and corequisite
    misses are warnings.
    """
    errors: List[dict] = []
    warnings: List[dict] = []

    raw = _requisite_text(course)
    if raw is None:
        return {"errors": errors, "warnings": warnings}

    code = course.get("code")
    completed = collect_completed_codes(plan, term_index)
    current = term_label(term_index)

    for predicate in parse_requisites(raw)["predicates"]:
        t = predicate["type"]
        if t == "antirequisite":
            continue  # plan-wide scan in check_antirequisites
        if is_satisfied(predicate, completed, term_index):
            continue

        description = describe(predicate)
        if t == "course":
            errors.append(make_diagnostic(
                KIND_PREREQUISITE,
                code,
                f"Missing prerequisite: {description}",
                "You must complete the required courses in an earlier term.",
            ))
        elif t == "level":
            warnings.append(make_diagnostic(
                KIND_LEVEL,
                code,
                f"Level requirement: {description}",
                f"This course requires {predicate['level']} or higher. "
                f"You need a faculty override to take it in {current}.",
            ))
        elif t == "corequisite":
            warnings.append(make_diagnostic(
                KIND_COREQUISITE,
                code,
                description,
                "This course should be taken in the same term or after its corequisites.",
            ))

    return {"errors": errors, "warnings": warnings}


def check_antirequisites(plan: dict, course: dict) -> List[dict]:
    """One error per antirequisite code that appears anywhere in the plan."""
    errors: List[dict] = []

    raw = _requisite_text(course)
    if raw is None:
        return errors

    code = course.get("code")
    plan_codes = collect_plan_codes(plan)

    for predicate in parse_requisites(raw)["predicates"]:
        if predicate["type"] != "antirequisite":
            continue
        for conflict in predicate["courses"]:
            if conflict in plan_codes:
                errors.append(make_diagnostic(
                    KIND_ANTIREQUISITE,
                    code,
                    f"Cannot take with {conflict}",
                    f"{code} and {conflict} are antirequisites and cannot both be in your plan.",
                ))
    return errors


def check_term_overload(plan: dict, term_index: int, course: dict) -> Optional[dict]:
    term = _find_term(plan, term_index)
    if term is None:
        return None

    course_count = len(term.get("courses") or []) + 1
    if course_count > MAX_TERM_COURSES:
        return make_diagnostic(
            KIND_OVERLOAD,
            course.get("code"),
            f"Term overload: {course_count} courses",
            f"This term has more than {MAX_TERM_COURSES} courses. "
            "Consider redistributing courses to maintain balance.",
        )
    return None


def validate_addition(plan: dict, term_index: int, course: dict) -> dict:
    """
    What-if check for placing course into term_index.

    Runs, in order: duplicate placement, requisites, antirequisites, term
    overload. Returns {"is_valid", "errors", "warnings"}. Raises ValueError
    for a term index outside the 8-term plan.
    """
    if isinstance(term_index, bool) or not isinstance(term_index, int) or not 0 <= term_index < PLAN_TERM_COUNT:
        raise ValueError(f"Term index out of range: {term_index!r}")

    errors: List[dict] = []
    warnings: List[dict] = []

    duplicate = check_duplicates(plan, term_index, course)
    if duplicate:
        warnings.append(duplicate)

    requisite_checks = check_requisites(plan, term_index, course)
    errors.extend(requisite_checks["errors"])
    warnings.extend(requisite_checks["warnings"])

    errors.extend(check_antirequisites(plan, course))

    overload = check_term_overload(plan, term_index, course)
    if overload:
        warnings.append(overload)

    return build_validation_result(errors, warnings)


def _plan_without(plan: dict, term_pos: int, course_pos: int) -> dict:
    """Shallow copy of plan with one placement removed."""
    terms = []
    for pos, term in enumerate(_terms(plan)):
        if pos == term_pos:
            courses = list(term.get("courses") or [])
            del courses[course_pos]
            term = {**term, "courses": courses}
        terms.append(term)
    return {**plan, "terms": terms}


def validate_plan(plan: dict) -> dict:
    """
    Validate every placed course as if it were being added to its own term.

    Results are deduplicated by (course_code, kind, message) so a rule that
    trips on several passes is reported once.
    """
    errors: List[dict] = []
    warnings: List[dict] = []

    for term_pos, term in enumerate(_terms(plan)):
        term_index = _term_index(term, term_pos)
        for course_pos, course in enumerate(term.get("courses") or []):
            result = validate_addition(
                _plan_without(plan, term_pos, course_pos),
                term_index,
                course,
            )
            errors.extend(result["errors"])
            warnings.extend(result["warnings"])

    return build_validation_result(dedupe_diagnostics(errors), dedupe_diagnostics(warnings))
