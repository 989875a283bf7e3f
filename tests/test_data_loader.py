import os

import pytest
import pandas as pd
from data_loader import load_catalog, coerce_course, build_plan, empty_plan, make_course

DATA_PATH = os.path.join(os.path.dirname(__file__), "..", "data", "courses.csv")


@pytest.fixture
def catalog_csv(tmp_path):
    path = tmp_path / "courses.csv"
    pd.DataFrame([
        {"course_code": "ece250", "course_name": "Algorithms", "prereq": "Prereq: ECE 105", "credits": "0.5"},
        {"course_code": "ECE 105", "course_name": "Mechanics", "prereq": "", "credits": "bogus"},
        {"course_code": "not a code", "course_name": "Junk", "prereq": "", "credits": "0.5"},
        {"course_code": "ECE 250", "course_name": "Dup", "prereq": "", "credits": "0.5"},
    ]).to_csv(path, index=False)
    return str(path)


class TestLoadCatalog:
    def test_shipped_catalog(self):
        catalog = load_catalog(DATA_PATH)
        assert "ECE 250" in catalog["catalog_codes"]
        ece_250 = catalog["courses"]["ECE 250"]
        assert ece_250["requirements"] == "Prereq: ECE 105; Antireq: CS 241"
        assert ece_250["has_requirements"] is True
        assert ece_250["id"] == "004430"

    def test_course_without_requirements(self):
        catalog = load_catalog(DATA_PATH)
        ece_105 = catalog["courses"]["ECE 105"]
        assert ece_105["requirements"] is None
        assert ece_105["has_requirements"] is False

    def test_column_aliases_and_cleanup(self, catalog_csv):
        catalog = load_catalog(catalog_csv)
        assert catalog["catalog_codes"] == {"ECE 250", "ECE 105"}
        assert catalog["courses"]["ECE 250"]["title"] == "Algorithms"
        assert catalog["courses"]["ECE 105"]["units"] == 0.5
        assert catalog["courses"]["ECE 250"]["id"] == "ECE 250"

    def test_missing_code_column(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("title,units\nSomething,0.5\n")
        with pytest.raises(ValueError):
            load_catalog(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalog(str(tmp_path / "nope.csv"))


class TestCoerceCourse:
    CATALOG = {"courses": {"ECE 250": make_course("ECE 250", "Prereq: ECE 105", title="Algorithms")}}

    def test_code_string_from_catalog(self):
        course = coerce_course("ece250", self.CATALOG)
        assert course["requirements"] == "Prereq: ECE 105"
        assert course["title"] == "Algorithms"

    def test_returns_copy(self):
        course = coerce_course("ECE 250", self.CATALOG)
        course["requirements"] = None
        assert self.CATALOG["courses"]["ECE 250"]["requirements"] == "Prereq: ECE 105"

    def test_unknown_code_is_bare_course(self):
        course = coerce_course("SE 463", self.CATALOG)
        assert course["code"] == "SE 463"
        assert course["has_requirements"] is False

    def test_dict_overrides_catalog_requirements(self):
        course = coerce_course({"code": "ECE 250", "requirements": "Antireq: CS 241"}, self.CATALOG)
        assert course["requirements"] == "Antireq: CS 241"
        assert course["title"] == "Algorithms"

    def test_dict_inherits_catalog_requirements(self):
        course = coerce_course({"code": "ECE 250"}, self.CATALOG)
        assert course["requirements"] == "Prereq: ECE 105"

    def test_dict_has_requirements_flag(self):
        course = coerce_course({"code": "ECE 250", "has_requirements": "false"}, self.CATALOG)
        assert course["has_requirements"] is False

    @pytest.mark.parametrize("bad", ["asdf", {"code": ""}, 42])
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            coerce_course(bad, self.CATALOG)


class TestBuildPlan:
    def test_empty_plan_labels(self):
        plan = empty_plan()
        assert [t["label"] for t in plan["terms"]] == ["1A", "1B", "2A", "2B", "3A", "3B", "4A", "4B"]
        assert [t["term_index"] for t in plan["terms"]] == list(range(8))

    def test_pads_to_eight_terms(self):
        plan = build_plan([{"label": "1A", "courses": ["ECE 105"]}])
        assert len(plan["terms"]) == 8
        assert plan["terms"][0]["courses"][0]["code"] == "ECE 105"
        assert plan["terms"][7]["courses"] == []

    def test_list_of_lists(self):
        plan = build_plan([["ECE 105"], ["ECE 250"]])
        assert plan["terms"][1]["label"] == "1B"
        assert plan["terms"][1]["courses"][0]["code"] == "ECE 250"

    def test_none_is_empty(self):
        assert build_plan(None) == empty_plan()

    def test_too_many_terms(self):
        with pytest.raises(ValueError):
            build_plan([[] for _ in range(9)])

    def test_not_a_list(self):
        with pytest.raises(ValueError):
            build_plan({"1A": []})

    def test_bad_term_entry(self):
        with pytest.raises(ValueError):
            build_plan(["ECE 105"])
