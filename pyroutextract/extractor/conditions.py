# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

"""Time conditions of `conditional restrictions <https://wiki.openstreetmap.org/wiki/Conditional_restrictions>`_.

Only the commonly used subset of the
`opening_hours <https://wiki.openstreetmap.org/wiki/Key:opening_hours>`_ syntax is supported:
rules separated by ``;``, each with an optional weekday selector (``Mo-Fr``, ``Sa,Su``,
``Fr-Mo``) and optional comma-separated time spans (``07:00-09:00,16:00-18:30``).
"""

from dataclasses import dataclass
from typing import List, NamedTuple, Tuple

WEEKDAYS = ("Mo", "Tu", "We", "Th", "Fr", "Sa", "Su")

MINUTES_PER_DAY = 24 * 60


class ConditionError(ValueError):
    """Exception raised on time conditions which can't be parsed."""

    pass


class TimeSpan(NamedTuple):
    """TimeSpan is a range of minutes since midnight. If ``end`` is smaller than ``start``,
    the span extends past midnight into the next day.
    """

    start: int
    end: int

    def __str__(self) -> str:
        return f"{_format_minutes(self.start)}-{_format_minutes(self.end)}"


@dataclass(frozen=True)
class OpeningHours:
    """OpeningHours is a single rule of a time condition, e.g. ``Mo-Fr 07:00-09:00``."""

    weekdays: Tuple[int, ...] = ()
    """weekdays are sorted, unique weekday numbers (0 = Monday). Empty means every day."""

    times: Tuple[TimeSpan, ...] = ()
    """times are the time spans in which the rule applies. Empty means the whole day."""

    def __str__(self) -> str:
        parts: List[str] = []
        if self.weekdays:
            parts.append(_format_weekdays(self.weekdays))
        if self.times:
            parts.append(",".join(str(span) for span in self.times))
        return " ".join(parts) if parts else "24/7"

    def is_active(self, weekday: int, minute: int) -> bool:
        """is_active checks if the rule applies at the provided moment,
        given as the weekday number (0 = Monday) and minutes since midnight.

        The extractor carries conditions through without evaluating them;
        this is meant for routers consuming the extracted restrictions.
        """
        if not self.times:
            return self._applies_on(weekday)

        for span in self.times:
            if span.start <= span.end:
                if self._applies_on(weekday) and span.start <= minute < span.end:
                    return True
            else:
                if self._applies_on(weekday) and minute >= span.start:
                    return True
                if self._applies_on((weekday - 1) % 7) and minute < span.end:
                    return True
        return False

    def _applies_on(self, weekday: int) -> bool:
        return not self.weekdays or weekday in self.weekdays


def parse_opening_hours(text: str) -> Tuple[OpeningHours, ...]:
    """parse_opening_hours parses a ``;``-separated sequence of rules.
    Raises :py:exc:`ConditionError` on unsupported or invalid syntax.
    """
    rules = [rule.strip() for rule in text.split(";")]
    if not any(rules):
        raise ConditionError(f"empty time condition: {text!r}")
    return tuple(_parse_rule(rule) for rule in rules if rule)


def split_conditional(value: str) -> Tuple[str, str]:
    """split_conditional splits a conditional tag value, like
    ``no_left_turn @ (Mo-Fr 07:00-09:00)``, into the value (``no_left_turn``)
    and the condition without parentheses (``Mo-Fr 07:00-09:00``).
    """
    restriction, at, condition = value.partition("@")
    restriction = restriction.strip()
    condition = condition.strip()
    if not at or not restriction or not condition:
        raise ConditionError(f"invalid conditional value: {value!r}")

    if condition.startswith("(") != condition.endswith(")"):
        raise ConditionError(f"unbalanced parentheses in condition: {value!r}")
    if condition.startswith("("):
        condition = condition[1:-1].strip()

    return restriction, condition


def _parse_rule(rule: str) -> OpeningHours:
    if rule == "24/7":
        return OpeningHours()

    tokens = rule.split()
    weekdays: Tuple[int, ...] = ()
    if tokens[0][:2] in WEEKDAYS:
        weekdays = _parse_weekdays(tokens.pop(0))

    if len(tokens) > 1:
        raise ConditionError(f"unsupported rule: {rule!r}")

    times = _parse_time_spans(tokens[0]) if tokens else ()
    return OpeningHours(weekdays, times)


def _parse_weekdays(selector: str) -> Tuple[int, ...]:
    days = set()
    for part in selector.split(","):
        first, dash, last = part.partition("-")
        start = _parse_weekday(first)
        end = _parse_weekday(last) if dash else start
        day = start
        days.add(day)
        while day != end:
            day = (day + 1) % 7
            days.add(day)
    return tuple(sorted(days))


def _parse_weekday(text: str) -> int:
    try:
        return WEEKDAYS.index(text)
    except ValueError:
        raise ConditionError(f"invalid weekday: {text!r}") from None


def _parse_time_spans(text: str) -> Tuple[TimeSpan, ...]:
    spans: List[TimeSpan] = []
    for part in text.split(","):
        start, dash, end = part.partition("-")
        if not dash:
            raise ConditionError(f"invalid time span: {part!r}")
        span = TimeSpan(_parse_time(start), _parse_time(end))
        if span.start == span.end or span.start == MINUTES_PER_DAY:
            raise ConditionError(f"invalid time span: {part!r}")
        spans.append(span)
    return tuple(spans)


def _parse_time(text: str) -> int:
    hours, colon, minutes = text.partition(":")
    if not colon or not hours.isdigit() or len(minutes) != 2 or not minutes.isdigit():
        raise ConditionError(f"invalid time: {text!r}")

    total = int(hours) * 60 + int(minutes)
    if int(minutes) >= 60 or total > MINUTES_PER_DAY:
        raise ConditionError(f"invalid time: {text!r}")
    return total


def _format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _format_weekdays(weekdays: Tuple[int, ...]) -> str:
    runs: List[Tuple[int, int]] = []
    for day in weekdays:
        if runs and runs[-1][1] == day - 1:
            runs[-1] = (runs[-1][0], day)
        else:
            runs.append((day, day))

    return ",".join(
        WEEKDAYS[first] if first == last else f"{WEEKDAYS[first]}-{WEEKDAYS[last]}"
        for first, last in runs
    )
