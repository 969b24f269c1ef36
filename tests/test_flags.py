"""Tests for country flags."""

from leaktrace.flags import COUNTRY_FLAGS, country_display, get_flag


class TestGetFlag:

    def test_known_code(self):
        assert get_flag("US") == "\U0001F1FA\U0001F1F8"
        assert get_flag("DE") == "\U0001F1E9\U0001F1EA"

    def test_case_insensitive(self):
        assert get_flag("us") == get_flag("US")

    def test_empty(self):
        assert get_flag("") == "?"

    def test_unknown(self):
        assert get_flag("XX") == "?"
        assert get_flag("USA") == "?"

    def test_mapping_covers_iso_codes(self):
        assert len(COUNTRY_FLAGS) == 249
        assert all(len(flag) == 2 for flag in COUNTRY_FLAGS.values())


class TestCountryDisplay:

    def test_name_and_flag(self):
        assert country_display("United States", "US") == "United States \U0001F1FA\U0001F1F8"

    def test_placeholder(self):
        assert country_display("", "") == " ?"
