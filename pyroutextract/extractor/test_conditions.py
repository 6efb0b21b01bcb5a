# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from unittest import TestCase

from .conditions import (
    ConditionError,
    OpeningHours,
    TimeSpan,
    parse_opening_hours,
    split_conditional,
)


class TestParseOpeningHours(TestCase):
    def test_weekdays_and_times(self) -> None:
        self.assertTupleEqual(
            parse_opening_hours("Mo-Fr 07:00-09:00,16:00-18:30; Sa 10:00-14:00"),
            (
                OpeningHours((0, 1, 2, 3, 4), (TimeSpan(420, 540), TimeSpan(960, 1110))),
                OpeningHours((5,), (TimeSpan(600, 840),)),
            ),
        )

    def test_only_times(self) -> None:
        self.assertTupleEqual(
            parse_opening_hours("22:00-06:00"),
            (OpeningHours((), (TimeSpan(1320, 360),)),),
        )

    def test_only_weekdays(self) -> None:
        self.assertTupleEqual(
            parse_opening_hours("Sa,Su"),
            (OpeningHours((5, 6), ()),),
        )

    def test_wrapping_weekdays(self) -> None:
        self.assertTupleEqual(
            parse_opening_hours("Fr-Mo 08:00-24:00"),
            (OpeningHours((0, 4, 5, 6), (TimeSpan(480, 1440),)),),
        )

    def test_always(self) -> None:
        self.assertTupleEqual(parse_opening_hours("24/7"), (OpeningHours(),))

    def test_invalid(self) -> None:
        for text in [
            "",
            " ; ",
            "wet",
            "Xy 07:00-09:00",
            "Mo-Fr 07:00",
            "Mo-Fr 7-9",
            "Mo-Fr 07:00-25:00",
            "Mo-Fr 07:60-09:00",
            "Mo-Fr 07:00-07:00",
            "Mo-Fr 07:00-09:00 off",
            "PH 07:00-09:00",
        ]:
            with self.subTest(text=text), self.assertRaises(ConditionError):
                parse_opening_hours(text)


class TestOpeningHours(TestCase):
    def test_str(self) -> None:
        self.assertEqual(
            str(OpeningHours((0, 1, 2, 3, 4), (TimeSpan(420, 540), TimeSpan(960, 1110)))),
            "Mo-Fr 07:00-09:00,16:00-18:30",
        )
        self.assertEqual(str(OpeningHours((0, 2, 5, 6), ())), "Mo,We,Sa-Su")
        self.assertEqual(str(OpeningHours((), (TimeSpan(1320, 1440),))), "22:00-24:00")
        self.assertEqual(str(OpeningHours()), "24/7")

    def test_str_parses_back(self) -> None:
        for text in ["Mo-Fr 07:00-09:00,16:00-18:30", "Tu,Th", "23:00-01:00", "24/7"]:
            with self.subTest(text=text):
                (rule,) = parse_opening_hours(text)
                self.assertEqual(str(rule), text)

    def test_is_active(self) -> None:
        (rule,) = parse_opening_hours("Mo-Fr 07:00-09:00")
        self.assertTrue(rule.is_active(0, 7 * 60))
        self.assertTrue(rule.is_active(4, 8 * 60 + 59))
        self.assertFalse(rule.is_active(4, 9 * 60))
        self.assertFalse(rule.is_active(5, 8 * 60))

    def test_is_active_overnight(self) -> None:
        (rule,) = parse_opening_hours("Fr 22:00-06:00")
        self.assertTrue(rule.is_active(4, 23 * 60))
        self.assertTrue(rule.is_active(5, 5 * 60))
        self.assertFalse(rule.is_active(4, 5 * 60))
        self.assertFalse(rule.is_active(5, 23 * 60))

    def test_is_active_whole_day(self) -> None:
        (rule,) = parse_opening_hours("Su")
        self.assertTrue(rule.is_active(6, 0))
        self.assertFalse(rule.is_active(0, 0))


class TestSplitConditional(TestCase):
    def test(self) -> None:
        self.assertTupleEqual(
            split_conditional("no_left_turn @ (Mo-Fr 07:00-09:00)"),
            ("no_left_turn", "Mo-Fr 07:00-09:00"),
        )
        self.assertTupleEqual(
            split_conditional("only_straight_on@Sa"),
            ("only_straight_on", "Sa"),
        )

    def test_invalid(self) -> None:
        for value in ["no_left_turn", "@ (Mo)", "no_left_turn @", "no_u_turn @ (Mo"]:
            with self.subTest(value=value), self.assertRaises(ConditionError):
                split_conditional(value)
