"""
Unit tests for class list filtering.

Filter order: source fallback -> on-site -> category -> query -> sort by title.
"""

import unittest

from hxgny.filters import apply_filters, categories, matches_query
from hxgny.model import ClassRecord


MATH_A = ClassRecord(id="a", title="Math A", teacher="Li", room="Room 5", category="STEM", grade="8th")
MATH_B = ClassRecord(id="b", title="Math B", teacher="Wang", room="Online", category="STEM", grade="Adult")
DANCE = ClassRecord(id="c", title="Dance", teacher="Zhao", room="Gym", category="Arts & Sports", grade="K")


class TestApplyFilters(unittest.TestCase):
    def test_on_site_and_category(self) -> None:
        out = apply_filters([MATH_B, MATH_A, DANCE], [], query="", category="STEM", on_site_only=True)
        self.assertEqual(out, [MATH_A])

    def test_numeric_query_matches_min_age(self) -> None:
        out = apply_filters([MATH_A, MATH_B], [], query="18", category="STEM", on_site_only=False)
        self.assertEqual(out, [MATH_B])

    def test_numeric_query_never_matches_ungraded(self) -> None:
        ungraded = ClassRecord(id="u", title="Open Studio 18", grade="all ages")
        self.assertEqual(apply_filters([ungraded], [], query="18"), [])

    def test_text_query_searches_all_fields(self) -> None:
        self.assertEqual(apply_filters([MATH_A, MATH_B, DANCE], [], query=" wang "), [MATH_B])
        self.assertEqual(apply_filters([MATH_A, MATH_B, DANCE], [], query="GYM"), [DANCE])

    def test_category_is_substring(self) -> None:
        self.assertEqual(apply_filters([MATH_A, DANCE], [], category="sports"), [DANCE])

    def test_sorted_by_title(self) -> None:
        out = apply_filters([MATH_B, DANCE, MATH_A], [])
        self.assertEqual([c.title for c in out], ["Dance", "Math A", "Math B"])

    def test_sort_is_case_sensitive_and_stable(self) -> None:
        lower = ClassRecord(id="l", title="art")
        upper = ClassRecord(id="u", title="Zoo")
        dup1 = ClassRecord(id="d1", title="Zoo")
        out = apply_filters([lower, upper, dup1], [])
        self.assertEqual([c.id for c in out], ["u", "d1", "l"])

    def test_saved_list_used_when_full_list_empty(self) -> None:
        self.assertEqual(apply_filters([], [MATH_B, MATH_A], query="math"), [MATH_A, MATH_B])
        self.assertEqual(apply_filters([DANCE], [MATH_A]), [DANCE])


class TestHelpers(unittest.TestCase):
    def test_blank_query_matches(self) -> None:
        self.assertTrue(matches_query(MATH_A, "   "))

    def test_categories(self) -> None:
        blank = ClassRecord(id="x", title="X", category="  ")
        self.assertEqual(categories([MATH_A, MATH_B, DANCE, blank]), ["Arts & Sports", "STEM"])


if __name__ == "__main__":
    unittest.main()
