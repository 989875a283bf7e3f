# Diagnostic kinds produced by the plan validator.
KIND_PREREQUISITE = "prerequisite"
KIND_ANTIREQUISITE = "antirequisite"
KIND_COREQUISITE = "corequisite"
KIND_LEVEL = "level"
KIND_DUPLICATE = "duplicate"
KIND_OVERLOAD = "overload"

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

# Kinds that block committing a course. Everything else is advisory.
BLOCKING_KINDS = {KIND_PREREQUISITE, KIND_ANTIREQUISITE}

# Above this many courses in one term a plan is flagged as overloaded.
MAX_TERM_COURSES = 6


def make_diagnostic(kind: str, course_code: str, message: str, details: str = "") -> dict:
    severity = SEVERITY_ERROR if kind in BLOCKING_KINDS else SEVERITY_WARNING
    return {
        "kind": kind,
        "severity": severity,
        "course_code": course_code or "",
        "message": message,
        "details": details,
    }


def diagnostic_key(diagnostic: dict) -> tuple[str, str, str]:
    return (
        diagnostic.get("course_code", ""),
        diagnostic.get("kind", ""),
        diagnostic.get("message", ""),
    )


def dedupe_diagnostics(diagnostics: list[dict]) -> list[dict]:
    """Drop repeats of (course_code, kind, message), keeping first-seen order."""
    seen: set[tuple[str, str, str]] = set()
    out: list[dict] = []
    for diagnostic in diagnostics:
        key = diagnostic_key(diagnostic)
        if key in seen:
            continue
        seen.add(key)
        out.append(diagnostic)
    return out


def build_validation_result(errors: list[dict], warnings: list[dict]) -> dict:
    return {
        "is_valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }
