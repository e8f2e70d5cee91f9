"""Daily activity streaks."""

from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Any, Dict, Iterable, Union

import numpy as np

from .snapshots import to_day


@dataclass
class StreakStats:
    """
    Attributes:
        current: Consecutive active days ending today (0 if inactive today)
        longest: Longest run of consecutive active days in the history
    """
    current: int
    longest: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_streaks(
    dates: Iterable[Union[date, datetime, str]],
    today: Union[date, datetime, str]
) -> StreakStats:
    """
    Compute current and longest streaks from the days a participant was active.

    Duplicate days are counted once; days after `today` are ignored.

    Args:
        dates: Days with recorded activity, in any order
        today: Reference day for the current streak

    Returns:
        StreakStats
    """
    end = to_day(today)

    days = sorted({day for day in (to_day(d) for d in dates) if day <= end})
    if not days:
        return StreakStats(current=0, longest=0)

    ordinals = np.array([d.toordinal() for d in days])

    # Split into runs wherever the gap between active days exceeds one day
    breaks = np.flatnonzero(np.diff(ordinals) != 1)
    run_lengths = np.diff(np.concatenate(([0], breaks + 1, [len(ordinals)])))
    longest = int(run_lengths.max())

    current = 0
    if ordinals[-1] == end.toordinal():
        current = int(run_lengths[-1])

    return StreakStats(current=current, longest=longest)
