"""
Unit tests for request body validation.
"""

from natours.core.enums import TypeStrings
from natours.web.validation import BodyRule, check_body, is_email, max_length, min_length, regex_match


class TestCheckBody:
    """Rule evaluation order and failure messages."""

    def test_all_rules_pass(self):
        rules = [BodyRule("name", "string"), BodyRule("price", "number")]
        assert check_body({"name": "The Forest Hiker", "price": 497}, rules) is None

    def test_no_rules_accepts_anything(self):
        assert check_body(None, []) is None

    def test_missing_field(self):
        rules = [BodyRule("name", "string"), BodyRule("price", "number")]
        assert check_body({"name": "x"}, rules) == (400, "price is missing in the request body")

    def test_first_failing_rule_wins(self):
        rules = [BodyRule("name", "string"), BodyRule("price", "number")]
        assert check_body({}, rules) == (400, "name is missing in the request body")

    def test_falsy_values_count_as_missing(self):
        rules = [BodyRule("adults", "number")]
        assert check_body({"adults": 0}, rules) == (400, "adults is missing in the request body")
        assert check_body({"adults": None}, [BodyRule("adults", "number")])[0] == 400
        assert check_body({"title": ""}, [BodyRule("title", "string")]) == (400, "title is missing in the request body")

    def test_empty_containers_are_present(self):
        rule = BodyRule("tags", "object")
        assert check_body({"tags": []}, [rule]) is None
        assert check_body({"tags": {}}, [rule]) is None
        assert check_body({"tags": False}, [rule]) == (400, "tags is missing in the request body")

    def test_type_mismatch(self):
        rules = [BodyRule("price", TypeStrings.NUMBER.value)]
        assert check_body({"price": "497"}, rules) == (400, "type of price does not match to number")

    def test_booleans_are_not_numbers(self):
        assert check_body({"price": True}, [BodyRule("price", "number")]) == (
            400, "type of price does not match to number"
        )
        assert check_body({"flag": True}, [BodyRule("flag", "boolean")]) is None

    def test_object_type_accepts_dicts_and_lists(self):
        rules = [BodyRule("meta", "object")]
        assert check_body({"meta": {"a": 1}}, rules) is None
        assert check_body({"meta": [1]}, rules) is None
        assert check_body({"meta": "x"}, rules) == (400, "type of meta does not match to object")

    def test_non_object_body(self):
        assert check_body(None, [BodyRule("name", "string")]) == (400, "Invalid request")
        assert check_body(["name"], [BodyRule("name", "string")]) == (400, "Invalid request")

    def test_string_validators_run_in_order(self):
        rule = BodyRule("name", "string", (min_length(10), max_length(12)))
        assert check_body({"name": "short"}, [rule]) == (406, "short has less than 10 characters")
        assert check_body({"name": "much too long name"}, [rule]) == (
            406, "much too long name has more than 12 characters"
        )

    def test_validators_skipped_for_non_string_rules(self):
        rule = BodyRule("price", "number", (min_length(10),))
        assert check_body({"price": 5}, [rule]) is None

    def test_rule_from_dict(self):
        rule = BodyRule.of({"name": "email", "type": TypeStrings.STRING, "validators": [is_email]})
        assert rule == BodyRule("email", "string", (is_email,))
        assert check_body({"email": "not-an-email"}, [rule]) == (406, "not-an-email is not a email")


class TestStringValidators:
    """Individual string validators."""

    def test_regex_match(self):
        validator = regex_match(r"^\d{4}$")
        assert validator("2024") == (True, "2024 doesn't match the given regular expression pattern")
        assert validator("20x4")[0] is False

    def test_regex_match_searches(self):
        assert regex_match(r"\d")("abc1")[0] is True

    def test_is_email(self):
        assert is_email("natours@example.com")[0] is True
        assert is_email("First.Last@sub.example.io")[0] is True
        assert is_email("no-at-sign.com") == (False, "no-at-sign.com is not a email")
        assert is_email("two@@example.com")[0] is False
        assert is_email("user@example.c")[0] is False

    def test_min_length_is_strict(self):
        assert min_length(3)("abcd")[0] is True
        assert min_length(3)("abc") == (False, "abc has less than 3 characters")
        assert min_length(3)("ab") == (False, "ab has less than 3 characters")

    def test_max_length_is_strict(self):
        assert max_length(3)("ab")[0] is True
        assert max_length(3)("abc") == (False, "abc has more than 3 characters")
        assert max_length(3)("abcd") == (False, "abcd has more than 3 characters")
