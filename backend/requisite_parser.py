import re
import pandas as pd
from normalizer import extract_course_codes
from levels import level_satisfied, normalize_level_label

CLAUSE_SPLIT = re.compile(r'[.;]')

# Clause markers, tried in this order. Markers are searched anywhere in the
# clause and the colon is optional ("Antireq SE 463" still counts).
ANTIREQ_RE = re.compile(r'Antireq:?\s*(.+)', re.IGNORECASE)
COREQ_RE = re.compile(r'Coreq:?\s*(.+)', re.IGNORECASE)
LEVEL_RE = re.compile(r'Level\s+at\s+least\s+(\d+[AB])\b\s*(.*)', re.IGNORECASE)
PREREQ_RE = re.compile(r'Prereq:?\s*(.+)', re.IGNORECASE)

ONE_OF_RE = re.compile(r'\bone\s+of\b', re.IGNORECASE)
OR_WORD_RE = re.compile(r'\bor\b', re.IGNORECASE)

OPERATOR_ANY = "ANY"
OPERATOR_ALL = "ALL"

PREDICATE_TYPES = ("course", "level", "corequisite", "antirequisite")


def _empty_result() -> dict:
    return {"predicates": [], "raw": "", "has_requirements": False}


def _split_clauses(text: str) -> list[str]:
    return [c.strip() for c in CLAUSE_SPLIT.split(text) if c.strip()]


def _classify_prereq(body: str) -> tuple[str | None, list[str]]:
    """Returns (operator, codes) for the text after a 'Prereq:' marker."""
    codes = extract_course_codes(body)
    if ONE_OF_RE.search(body):
        return OPERATOR_ANY, codes
    if OR_WORD_RE.search(body) and "," not in body:
        return OPERATOR_ANY, codes
    if len(codes) > 1:
        return OPERATOR_ALL, codes
    return None, codes


def _classify_clause(clause: str) -> dict | None:
    m = ANTIREQ_RE.search(clause)
    if m:
        codes = extract_course_codes(m.group(1))
        return {"type": "antirequisite", "courses": codes} if codes else None

    m = COREQ_RE.search(clause)
    if m:
        codes = extract_course_codes(m.group(1))
        return {"type": "corequisite", "courses": codes} if codes else None

    m = LEVEL_RE.search(clause)
    if m:
        program = m.group(2).strip()
        return {
            "type": "level",
            "level": normalize_level_label(m.group(1)),
            "program": program or None,
        }

    m = PREREQ_RE.search(clause)
    if m:
        operator, codes = _classify_prereq(m.group(1))
        if not codes:
            return None
        return {"type": "course", "operator": operator, "courses": codes}

    # No marker: keep the clause if it still names courses.
    codes = extract_course_codes(clause)
    if codes:
        return {"type": "course", "operator": None, "courses": codes}
    return None


def parse_requisites(requirements_text) -> dict:
    """
    Parses a catalog requirements string into an ordered list of predicates.

    Clauses are split on '.' and ';' and classified by marker:
      Antireq: CODES                  → {"type": "antirequisite", "courses": [...]}
      Coreq: CODES                    → {"type": "corequisite", "courses": [...]}
      Level at least 3A [program]     → {"type": "level", "level": "3A", "program": ...}
      Prereq: One of CODES            → {"type": "course", "operator": "ANY", ...}
      Prereq: CODE or CODE            → {"type": "course", "operator": "ANY", ...}
      Prereq: CODE, CODE              → {"type": "course", "operator": "ALL", ...}
      Prereq: CODE                    → {"type": "course", "operator": None, ...}
      anything else naming CODES      → {"type": "course", "operator": None, ...}

    Every predicate also carries "raw" (the clause text) and "group_id"
    (0, 1, 2, ... in emission order). Clauses without a course code (other
    than level clauses) are dropped. Never raises.

    Returns {"predicates": [...], "raw": "<trimmed text>", "has_requirements": bool}
    """
    if requirements_text is None or (isinstance(requirements_text, float) and pd.isna(requirements_text)):
        return _empty_result()

    text = str(requirements_text).strip()
    if not text:
        return _empty_result()

    predicates = []
    for clause in _split_clauses(text):
        predicate = _classify_clause(clause)
        if predicate is None:
            continue
        predicate["raw"] = clause
        predicate["group_id"] = len(predicates)
        predicates.append(predicate)

    return {
        "predicates": predicates,
        "raw": text,
        "has_requirements": len(predicates) > 0,
    }


def predicate_course_codes(predicate: dict) -> list[str]:
    return list(predicate.get("courses") or [])


def is_satisfied(predicate: dict, completed_courses, current_level=None) -> bool:
    """
    Returns True if the predicate holds for the given completed codes.

    current_level is a term ordinal or label ('3A'); only level predicates
    look at it. Antirequisites hold when none of their courses are completed.
    """
    t = predicate.get("type")
    if t not in PREDICATE_TYPES:
        return False
    completed = set(completed_courses or ())

    if t == "level":
        return level_satisfied(current_level, predicate.get("level"))

    courses = predicate.get("courses") or []
    if not courses:
        return True

    if t == "course":
        if predicate.get("operator") == OPERATOR_ANY:
            return any(c in completed for c in courses)
        return all(c in completed for c in courses)
    if t == "corequisite":
        return any(c in completed for c in courses)
    # antirequisite
    return not any(c in completed for c in courses)


def describe(predicate: dict) -> str:
    """
    One-line summary of a predicate, e.g.
      "One of: ECE 250, CS 240"
      "Level 3A or higher in Computer Engineering"
      "Cannot take with: SE 463"
    """
    t = predicate.get("type")
    raw = predicate.get("raw", "")
    courses = predicate.get("courses") or []

    if t == "course":
        if not courses:
            return raw
        operator = predicate.get("operator")
        if operator == OPERATOR_ANY:
            return f"One of: {', '.join(courses)}"
        if operator == OPERATOR_ALL:
            return f"All of: {', '.join(courses)}"
        return ", ".join(courses)
    if t == "level":
        program = predicate.get("program")
        suffix = f" in {program}" if program else ""
        return f"Level {predicate.get('level')} or higher{suffix}"
    if t == "corequisite":
        return f"Corequisite: {', '.join(courses) or raw}"
    if t == "antirequisite":
        return f"Cannot take with: {', '.join(courses) or raw}"
    return raw


def build_requisite_check_string(
    predicates: list[dict],
    completed: set,
    current_level=None,
) -> str:
    """
    Returns a human-readable line showing which requisites hold.
    Examples:
      "ECE 105 ✓"
      "One of: ECE 250 ✓, CS 240 ✗; Cannot take with: SE 463 ✓"
      "Level 3A or higher ✗"
    """
    def label_code(code: str) -> str:
        return f"{code} ✓" if code in completed else f"{code} ✗"

    if not predicates:
        return "No requirements"

    parts = []
    for predicate in predicates:
        t = predicate.get("type")
        courses = predicate.get("courses") or []
        if t == "level":
            mark = "✓" if is_satisfied(predicate, completed, current_level) else "✗"
            parts.append(f"{describe(predicate)} {mark}")
        elif t == "antirequisite":
            mark = "✓" if is_satisfied(predicate, completed) else "✗"
            parts.append(f"Cannot take with: {', '.join(courses)} {mark}")
        elif t == "corequisite":
            parts.append("Corequisite: " + ", ".join(label_code(c) for c in courses))
        elif predicate.get("operator") == OPERATOR_ANY:
            parts.append("One of: " + ", ".join(label_code(c) for c in courses))
        elif predicate.get("operator") == OPERATOR_ALL:
            parts.append("All of: " + ", ".join(label_code(c) for c in courses))
        else:
            parts.append(", ".join(label_code(c) for c in courses))
    return "; ".join(parts)
