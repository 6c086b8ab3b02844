"""Event selection: which dormant templates become active this hour.

Events fire only at two points of the 8-hour trading day:

* mid-day (``hour % 8 == 4``): 1-3 events;
* end of day (``hour % 8 == 0``): enough to bring the day's total to 3-5.

Picks are balanced toward the difficulty's positive/negative target ratio
measured over every activation so far in the run. Retired events still count.
A template is drawn at most once per run.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence

from models.catalog import MarketEvent, Sentiment
from models.config import Difficulty
from models.state import EventLogEntry
from simulation.difficulty import profile_for

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 8
MID_DAY_OFFSET = 4
MID_DAY_EVENTS = (1, 3)
DAILY_EVENT_TARGET = (3, 5)


def is_mid_day(hour: int) -> bool:
    return hour % HOURS_PER_DAY == MID_DAY_OFFSET


def is_end_of_day(hour: int) -> bool:
    return hour > 0 and hour % HOURS_PER_DAY == 0


def trading_day(hour: int) -> int:
    """Zero-based trading day an hour belongs to (hours 1-8 are day 0)."""
    return (hour - 1) // HOURS_PER_DAY


class EventSelector:
    """Stateful selector for one run. Remembers every template it has drawn."""

    def __init__(
        self,
        events: Iterable[MarketEvent],
        difficulty: Difficulty,
        rng: random.Random,
    ) -> None:
        self._events = tuple(events)
        self._profile = profile_for(difficulty)
        self._rng = rng
        self._drawn: set[str] = set()
        # Sentiment tally over every activation this run, retired or not.
        self._activated = {Sentiment.POSITIVE: 0, Sentiment.NEGATIVE: 0}

    def available(self) -> list[MarketEvent]:
        """Templates never drawn in this run, in catalog order."""
        return [e for e in self._events if e.id not in self._drawn]

    def activation_counts(self) -> tuple[int, int]:
        """(positive, negative) templates activated so far in this run."""
        return self._activated[Sentiment.POSITIVE], self._activated[Sentiment.NEGATIVE]

    def select(self, hour: int, event_log: Sequence[EventLogEntry]) -> list[MarketEvent]:
        """Return the templates to activate at *hour* (possibly none).

        *event_log* is only used to count what already fired today.
        """
        if is_mid_day(hour):
            count = self._rng.randint(*MID_DAY_EVENTS)
        elif is_end_of_day(hour):
            day = trading_day(hour)
            fired_today = sum(1 for entry in event_log if trading_day(entry.hour) == day)
            target = self._rng.randint(*DAILY_EVENT_TARGET)
            count = max(0, target - fired_today)
        else:
            return []

        picked = self._draw(count)
        if picked:
            positive, negative = self.activation_counts()
            logger.debug(
                "Hour %d: selected %d event(s): %s (run tally %d positive / %d negative)",
                hour,
                len(picked),
                ", ".join(e.id for e in picked),
                positive,
                negative,
            )
        return picked

    def _draw(self, count: int) -> list[MarketEvent]:
        """Draw up to *count* templates, steering the run's tally toward the target ratio."""
        available = self.available()
        positive = [e for e in available if e.sentiment is Sentiment.POSITIVE]
        negative = [e for e in available if e.sentiment is Sentiment.NEGATIVE]
        positive_ratio = self._profile.positive_ratio
        negative_ratio = self._profile.negative_ratio

        picked: list[MarketEvent] = []
        for _ in range(count):
            n_positive, n_negative = self.activation_counts()
            total = n_positive + n_negative
            if n_positive < total * positive_ratio and positive:
                pool = positive
            elif n_negative < total * negative_ratio and negative:
                pool = negative
            else:
                pool = positive if self._rng.random() < positive_ratio else negative
                if not pool:
                    pool = negative or positive
            if not pool:
                break

            event = pool.pop(self._rng.randrange(len(pool)))
            self._drawn.add(event.id)
            self._activated[event.sentiment] += 1
            picked.append(event)
        return picked
