import sys
import pandas as pd
from normalizer import normalize_code
from levels import PLAN_TERM_COUNT, TERM_LABELS, term_label


_BOOL_TRUTHY = {"true", "1", "yes", "y"}
_BOOL_FALSY = {"false", "0", "no", "n"}

# Accepted spellings for catalog columns, first match wins.
_COLUMN_ALIASES = {
    "code": ["code", "course_code"],
    "title": ["title", "course_name", "name"],
    "requirements": ["requirements", "requirements_description", "prerequisites_raw", "prereq"],
    "units": ["units", "credits", "credit_weight"],
    "id": ["id", "course_id"],
}


def _safe_bool(val) -> bool | None:
    """Coerce a spreadsheet/JSON boolean. Unknown or missing → None."""
    if val is None:
        return None
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, float)):
        if pd.isna(val):
            return None
        return bool(val)
    s = str(val).strip().lower()
    if s in _BOOL_TRUTHY:
        return True
    if s in _BOOL_FALSY:
        return False
    return None


def _clean_text(val) -> str | None:
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return None
    s = str(val).strip()
    return s or None


def _coerce_units(val, default: float = 0.5) -> float:
    try:
        units = float(val)
    except (TypeError, ValueError):
        return default
    if pd.isna(units) or units < 0:
        return default
    return units


def _resolve_columns(df: pd.DataFrame) -> pd.DataFrame:
    rename_map = {}
    lower_cols = {str(c).strip().lower(): c for c in df.columns}
    for target, aliases in _COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lower_cols:
                rename_map[lower_cols[alias]] = target
                break
    df = df.rename(columns=rename_map)
    for col in ("title", "requirements", "units", "id"):
        if col not in df.columns:
            df[col] = None
    return df


def make_course(
    code: str,
    requirements: str | None = None,
    title: str | None = None,
    units: float = 0.5,
    course_id=None,
    has_requirements: bool | None = None,
) -> dict:
    requirements = _clean_text(requirements)
    if has_requirements is None:
        has_requirements = requirements is not None
    return {
        "id": course_id if course_id not in (None, "") else code,
        "code": code,
        "title": title,
        "requirements": requirements,
        "has_requirements": bool(has_requirements),
        "units": units,
    }


def load_catalog(data_path: str) -> dict:
    """Load the course catalog CSV. Raises on file/schema errors."""
    courses_df = pd.read_csv(data_path, dtype=str, keep_default_na=True)
    courses_df = _resolve_columns(courses_df)

    if "code" not in courses_df.columns:
        raise ValueError(f"Catalog {data_path} has no 'code' column.")

    courses_df["code"] = courses_df["code"].apply(
        lambda c: normalize_code(str(c)) if _clean_text(c) else None
    )
    dropped = int(courses_df["code"].isna().sum())
    if dropped:
        print(f"[WARN] Skipped {dropped} catalog rows with unparseable course codes", file=sys.stderr)
    courses_df = courses_df.dropna(subset=["code"]).drop_duplicates(subset=["code"], keep="first")

    courses_df["requirements"] = courses_df["requirements"].apply(_clean_text)
    courses_df["title"] = courses_df["title"].apply(_clean_text)
    courses_df["units"] = courses_df["units"].apply(_coerce_units)
    courses_df = courses_df.reset_index(drop=True)

    courses: dict[str, dict] = {}
    for _, row in courses_df.iterrows():
        code = row["code"]
        courses[code] = make_course(
            code,
            requirements=row["requirements"],
            title=_clean_text(row["title"]),
            units=row["units"],
            course_id=_clean_text(row["id"]),
        )

    print(f"[INFO] Loaded {len(courses)} catalog courses from {data_path}")

    return {
        "courses_df": courses_df,
        "courses": courses,
        "catalog_codes": set(courses),
    }


def coerce_course(value, catalog: dict | None = None) -> dict:
    """
    Turn a payload entry into a course dict.

      "ECE 250"                          → catalog row (bare course if unknown)
      {"code": "ece250", "requirements": ...} → normalized course dict

    Raises ValueError when no course code can be recovered.
    """
    known = (catalog or {}).get("courses", {})

    if isinstance(value, str):
        code = normalize_code(value)
        if code is None:
            raise ValueError(f"'{value}' is not a valid course code.")
        if code in known:
            return dict(known[code])
        return make_course(code)

    if isinstance(value, dict):
        code = normalize_code(str(value.get("code") or ""))
        if code is None:
            raise ValueError(f"'{value.get('code')}' is not a valid course code.")
        base = known.get(code)
        if "requirements" in value:
            requirements = value.get("requirements")
        else:
            requirements = base["requirements"] if base else None
        return make_course(
            code,
            requirements=requirements,
            title=value.get("title") or (base["title"] if base else None),
            units=_coerce_units(value.get("units"), base["units"] if base else 0.5),
            course_id=value.get("id") or (base["id"] if base else None),
            has_requirements=_safe_bool(value.get("has_requirements")),
        )

    raise ValueError(f"Unsupported course entry: {value!r}")


def empty_plan() -> dict:
    """Eight empty terms, 1A through 4B."""
    return {
        "terms": [
            {"term_index": idx, "label": label, "courses": []}
            for idx, label in enumerate(TERM_LABELS)
        ]
    }


def build_plan(terms_payload, catalog: dict | None = None) -> dict:
    """
    Build a plan from a JSON terms list:

      [{"label": "1A", "courses": ["ECE 105", {...}]}, ...]

    A bare list of course lists is also accepted. Missing trailing terms are
    filled in empty; more than eight terms raises ValueError.
    """
    if terms_payload is None:
        terms_payload = []
    if not isinstance(terms_payload, list):
        raise ValueError("terms must be a list.")
    if len(terms_payload) > PLAN_TERM_COUNT:
        raise ValueError(f"A plan has at most {PLAN_TERM_COUNT} terms, got {len(terms_payload)}.")

    plan = empty_plan()
    for idx, raw_term in enumerate(terms_payload):
        if isinstance(raw_term, dict):
            raw_courses = raw_term.get("courses") or []
            label = _clean_text(raw_term.get("label"))
        elif isinstance(raw_term, list):
            raw_courses = raw_term
            label = None
        else:
            raise ValueError(f"Term {idx} must be an object or a list of courses.")
        if not isinstance(raw_courses, list):
            raise ValueError(f"Term {idx} courses must be a list.")

        term = plan["terms"][idx]
        term["label"] = label or term_label(idx)
        term["courses"] = [coerce_course(c, catalog) for c in raw_courses]

    return plan
