import pytest
from normalizer import normalize_code, extract_course_codes, normalize_input


class TestNormalizeCode:
    def test_canonical(self):
        assert normalize_code("ECE 250") == "ECE 250"

    def test_lowercase(self):
        assert normalize_code("ece250") == "ECE 250"

    def test_hyphen(self):
        assert normalize_code("ECE-250") == "ECE 250"

    def test_extra_spaces(self):
        assert normalize_code("ECE   250") == "ECE 250"

    def test_mixed_case(self):
        assert normalize_code("Ece 250") == "ECE 250"

    def test_letter_suffix(self):
        assert normalize_code("ece 457a") == "ECE 457A"

    def test_long_subject(self):
        assert normalize_code("PDPHRM 101") == "PDPHRM 101"

    def test_slash_alternate_keeps_first(self):
        assert normalize_code("ECE 250/251") == "ECE 250"

    def test_invalid_no_digits(self):
        assert normalize_code("ECE") is None

    def test_invalid_four_digits(self):
        assert normalize_code("FINA 3001") is None

    def test_invalid_connective(self):
        assert normalize_code("or 250") is None

    def test_invalid_empty(self):
        assert normalize_code("") is None

    def test_invalid_none(self):
        assert normalize_code(None) is None


class TestExtractCourseCodes:
    def test_comma_list(self):
        assert extract_course_codes("ECE 250, CS 240") == ["ECE 250", "CS 240"]

    def test_normalizes_spellings(self):
        assert extract_course_codes("ece250") == ["ECE 250"]
        assert extract_course_codes("ECE   250") == ["ECE 250"]

    def test_dedupes_preserving_order(self):
        assert extract_course_codes("CS 240 or ECE 250 or cs240") == ["CS 240", "ECE 250"]

    def test_slash_alternate_not_emitted(self):
        assert extract_course_codes("ECE 250/251") == ["ECE 250"]

    def test_slash_between_full_codes(self):
        assert extract_course_codes("MTE 121/GENE 121") == ["MTE 121", "GENE 121"]

    def test_connective_before_number_ignored(self):
        assert extract_course_codes("MATH 117 or 119") == ["MATH 117"]

    def test_no_codes(self):
        assert extract_course_codes("Level at least 3A Computer Engineering") == []

    def test_spaced_subject_must_be_upper_case(self):
        assert extract_course_codes("Ece 250") == []
        assert extract_course_codes("ece 250") == []

    def test_prose_before_number_ignored(self):
        assert extract_course_codes("Completed 120 units") == []
        assert extract_course_codes("Taken more than 100 hours") == []
        assert extract_course_codes("Received 300 or higher") == []

    def test_codes_among_prose(self):
        assert extract_course_codes("Completed 120 units including ECE 250") == ["ECE 250"]

    def test_none(self):
        assert extract_course_codes(None) == []


class TestNormalizeInput:
    CATALOG = {"ECE 250", "CS 240", "ECE 105", "MATH 117"}

    def test_comma_separated(self):
        result = normalize_input("ECE 250, CS 240", self.CATALOG)
        assert set(result["valid"]) == {"ECE 250", "CS 240"}
        assert result["invalid"] == []
        assert result["not_in_catalog"] == []

    def test_newline_separated(self):
        result = normalize_input("ECE 250\nCS 240", self.CATALOG)
        assert "ECE 250" in result["valid"]

    def test_messy_codes(self):
        result = normalize_input("ece-250, CS240", self.CATALOG)
        assert "ECE 250" in result["valid"]
        assert "CS 240" in result["valid"]

    def test_invalid_code(self):
        result = normalize_input("asdfasdf, ECE 250", self.CATALOG)
        assert "asdfasdf" in result["invalid"]
        assert "ECE 250" in result["valid"]

    def test_not_in_catalog(self):
        result = normalize_input("ECE 999", self.CATALOG)
        assert "ECE 999" in result["not_in_catalog"]
        assert result["valid"] == []

    def test_deduplication(self):
        result = normalize_input("ECE 250, ECE 250, ece250", self.CATALOG)
        assert result["valid"].count("ECE 250") == 1

    def test_empty_input(self):
        result = normalize_input("", self.CATALOG)
        assert result == {"valid": [], "invalid": [], "not_in_catalog": []}

    def test_none_input(self):
        result = normalize_input(None, self.CATALOG)
        assert result == {"valid": [], "invalid": [], "not_in_catalog": []}
