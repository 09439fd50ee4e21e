import unittest

from reward_doctor.tokens import (
    TokenKind,
    classify,
    is_date_like,
    is_junk,
    is_reward_like,
    normalize,
)


class NormalizeTests(unittest.TestCase):
    def test_whitespace_variants_collapse_to_single_spaces(self):
        raw = "Aug\N{NO-BREAK SPACE}11,\t\n5:59"
        self.assertEqual(normalize(raw), "Aug 11, 5:59")

    def test_zero_width_space_and_bom_become_spaces_then_trim(self):
        raw = "\N{ZERO WIDTH NO-BREAK SPACE}Dec 19,\N{ZERO WIDTH SPACE}0:17  "
        self.assertEqual(normalize(raw), "Dec 19, 0:17")

    def test_non_ascii_and_control_characters_are_dropped(self):
        self.assertEqual(normalize("3.92\N{EURO SIGN}\x07"), "3.92")
        self.assertEqual(normalize("caf\N{LATIN SMALL LETTER E WITH ACUTE}"), "caf")

    def test_none_and_blank_normalise_to_empty(self):
        self.assertEqual(normalize(None), "")
        self.assertEqual(normalize(" \N{NO-BREAK SPACE} \t"), "")


class JunkTests(unittest.TestCase):
    def test_known_markers_are_junk_in_any_case(self):
        for value in ["", "Received", "payment RECEIVED", "XTM", "xtm", "#ERROR!", "#error!", "Block #48211"]:
            with self.subTest(value=value):
                self.assertTrue(is_junk(value))

    def test_xtm_must_match_exactly(self):
        self.assertFalse(is_junk("XTM rewards"))

    def test_dates_and_amounts_are_not_junk(self):
        self.assertFalse(is_junk("Aug 11, 5:59"))
        self.assertFalse(is_junk("3.92"))


class DateLikeTests(unittest.TestCase):
    def test_accepts_compact_forms(self):
        for value in ["Aug 11, 5:59", "aug 11 5:59", "Dec 19, 0:17", "Dec 19,0:17", "Jan 5, 23:59", "Aug 11, 05:59"]:
            with self.subTest(value=value):
                self.assertTrue(is_date_like(value))

    def test_rejects_other_shapes(self):
        for value in ["Jan 5, 24:00", "Jan 5, 9:5", "Jan 5, 2026 9:00", "August 11, 5:59", "2026-01-05 09:00:00", "Foo 5, 9:00"]:
            with self.subTest(value=value):
                self.assertFalse(is_date_like(value))


class RewardLikeTests(unittest.TestCase):
    def test_accepts_unsigned_amounts_with_up_to_two_decimals(self):
        for value in ["0", "3", "3.9", "3.92", "200.17"]:
            with self.subTest(value=value):
                self.assertTrue(is_reward_like(value))

    def test_rejects_signs_separators_exponents_and_extra_decimals(self):
        for value in ["3.999", "-3", "+3", "1,000", "1e3", "3.", ".5", ""]:
            with self.subTest(value=value):
                self.assertFalse(is_reward_like(value))


class ClassifyTests(unittest.TestCase):
    def test_classification_order(self):
        self.assertEqual(classify("  Received ").kind, TokenKind.JUNK)
        self.assertEqual(classify("Aug\N{NO-BREAK SPACE}11, 5:59").kind, TokenKind.DATE_LIKE)
        self.assertEqual(classify("3.92").kind, TokenKind.REWARD_LIKE)
        self.assertEqual(classify("3.999").kind, TokenKind.UNRECOGNIZED)

    def test_token_carries_normalised_text(self):
        token = classify("Aug\N{NO-BREAK SPACE}11,  5:59")
        self.assertEqual(token.text, "Aug 11, 5:59")
        self.assertTrue(token.is_date_like)

    def test_empty_cell_is_junk(self):
        token = classify(None)
        self.assertTrue(token.is_junk)
        self.assertEqual(token.text, "")


if __name__ == "__main__":
    unittest.main()
