import re

# Academic terms of the fixed four-year curriculum, in program order.
TERM_LABELS = ("1A", "1B", "2A", "2B", "3A", "3B", "4A", "4B")
PLAN_TERM_COUNT = len(TERM_LABELS)

LEVEL_RE = re.compile(r"^(\d+)([AB])$", re.IGNORECASE)


def normalize_level_label(label: str) -> str:
    """'3a ' → '3A'. Unparseable labels are returned unchanged."""
    m = LEVEL_RE.match((label or "").strip())
    if not m:
        return label
    return f"{int(m.group(1))}{m.group(2).upper()}"


def parse_level(label) -> int | None:
    """
    Ordinal of a term label: year * 2 + (0 for A, 1 for B) - 2.

      '1A' → 0, '1B' → 1, '2A' → 2, ... '4B' → 7

    Ints are taken as ordinals already. Returns None when unparseable.
    """
    if isinstance(label, bool):
        return None
    if isinstance(label, int):
        return label
    m = LEVEL_RE.match(str(label or "").strip())
    if not m:
        return None
    year = int(m.group(1))
    half = 0 if m.group(2).upper() == "A" else 1
    return year * 2 + half - 2


def term_label(term_index: int) -> str:
    """0 → '1A', 1 → '1B', 2 → '2A', ... 7 → '4B'."""
    if not 0 <= term_index < PLAN_TERM_COUNT:
        raise ValueError(f"Term index out of range: {term_index!r}")
    return TERM_LABELS[term_index]


def level_satisfied(current, required) -> bool:
    """True when current is at or past required. Missing either side → False."""
    current_ord = parse_level(current)
    required_ord = parse_level(required)
    if current_ord is None or required_ord is None:
        return False
    return current_ord >= required_ord
