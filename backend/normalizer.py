import re

# Matches: ECE 250, ECE-250, ece250, MATH 117, ECE 457A, MSE 100/101
CANONICAL = re.compile(r'^([A-Za-z]{2,10})\s*[-]?\s*(\d{3}[A-Za-z]?)(?:/\d{3}[A-Za-z]?)?$')

# Scan form of CANONICAL for free text. Upper-case subjects may be spaced from
# the number ("ECE 250"); any other casing must be glued to it ("ece250") so
# prose like "Completed 120 units" is never read as a code. A "/NNN" alternate
# is consumed but not emitted: "ECE 250/251" yields only ECE 250.
COURSE_CODE_RE = re.compile(
    r'\b(?:([A-Z]{2,10})\s*|([A-Za-z]{2,10}))(\d{3}[A-Za-z]?)(?:/\d{3}[A-Za-z]?)?\b'
)

# Words that sit in front of a number in catalog prose but are never subjects,
# e.g. "MATH 117 or 119", "one of 250".
NON_SUBJECT_WORDS = {
    "and",
    "or",
    "of",
    "one",
    "two",
    "to",
    "in",
    "at",
    "the",
    "with",
    "least",
    "level",
    "year",
    "term",
    "units",
    "grade",
    "min",
    "minimum",
}


def normalize_code(raw: str) -> str | None:
    """
    Normalizes a course code to canonical 'SUBJ NNN' format.
    Handles: 'ece250', 'ECE-250', 'Ece 250', 'ECE   250', 'ECE 457A'
    Returns None if the string cannot be parsed as a course code.
    """
    if not raw or not raw.strip():
        return None
    m = CANONICAL.match(raw.strip())
    if m:
        if m.group(1).lower() in NON_SUBJECT_WORDS:
            return None
        subject = m.group(1).upper()
        number = m.group(2).upper()
        return f"{subject} {number}"
    return None


def extract_course_codes(text: str) -> list[str]:
    """
    Returns every course code mentioned in text, normalized, first-seen order,
    no duplicates.

      "One of ECE 250, cs240 or ECE 250" -> ["ECE 250", "CS 240"]
    """
    codes: list[str] = []
    for spaced, glued, number in COURSE_CODE_RE.findall(text or ""):
        subject = spaced or glued
        if subject.lower() in NON_SUBJECT_WORDS:
            continue
        code = f"{subject.upper()} {number.upper()}"
        if code not in codes:
            codes.append(code)
    return codes


def normalize_input(raw_str: str, catalog_codes: set) -> dict:
    """
    Splits comma/newline/semicolon-separated input and normalizes each code.

    Returns:
      {
        "valid":         ["ECE 250", "CS 240"],   # normalized + found in catalog
        "invalid":       ["asdfasdf"],            # failed regex
        "not_in_catalog": ["ECE 999"]             # valid format but unknown course
      }
    """
    if not raw_str or not raw_str.strip():
        return {"valid": [], "invalid": [], "not_in_catalog": []}

    tokens = re.split(r'[,\n;]+', raw_str)
    valid = []
    invalid = []
    not_in_catalog = []
    seen: set[str] = set()

    for token in tokens:
        token = token.strip()
        if not token:
            continue
        normalized = normalize_code(token)
        if normalized is None:
            if token not in seen:
                invalid.append(token)
                seen.add(token)
        elif normalized in seen:
            pass  # deduplicate silently
        elif normalized not in catalog_codes:
            not_in_catalog.append(normalized)
            seen.add(normalized)
        else:
            valid.append(normalized)
            seen.add(normalized)

    return {"valid": valid, "invalid": invalid, "not_in_catalog": not_in_catalog}
