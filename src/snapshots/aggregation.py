import logging

import pandas as pd
from epiweeks import Week

from .models import NATIONAL_CODE, RECORD_COLUMNS


LOGGER = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


def add_national_aggregate(records: pd.DataFrame) -> pd.DataFrame:
    """Replace any upstream national rows with the per-date sum of all states.

    Absent values count as zero; callers that want them excluded drop them first.
    """
    states = records[records["location"] != NATIONAL_CODE]
    if states.empty:
        return states.reset_index(drop=True)

    national = states.groupby("date", as_index=False)["value"].sum()
    national["location"] = NATIONAL_CODE
    combined = pd.concat([states, national[RECORD_COLUMNS]], ignore_index=True)
    return combined[RECORD_COLUMNS]


def aggregate_weekly(records: pd.DataFrame, drop_incomplete: bool = True) -> pd.DataFrame:
    """Sum daily records into MMWR weeks dated by the week's Saturday.

    A week is complete when all seven of its days are present for the location.
    """
    if records.empty:
        return pd.DataFrame(columns=RECORD_COLUMNS)

    frame = records.copy()
    weeks = [Week.fromdate(timestamp.date()) for timestamp in frame["date"]]
    frame["epi_year"] = [week.year for week in weeks]
    frame["epi_week"] = [week.week for week in weeks]
    frame["week_end"] = [pd.Timestamp(week.enddate()) for week in weeks]

    weekly = frame.groupby(["location", "epi_year", "epi_week"], as_index=False).agg(
        date=("week_end", "first"),
        value=("value", "sum"),
        days=("date", "nunique"),
    )

    if drop_incomplete:
        incomplete = weekly[weekly["days"] < DAYS_PER_WEEK]
        for row in incomplete.itertuples(index=False):
            LOGGER.debug(
                "dropping incomplete week %s-W%02d for %s (%d of %d days)",
                row.epi_year,
                row.epi_week,
                row.location,
                row.days,
                DAYS_PER_WEEK,
            )
        weekly = weekly[weekly["days"] == DAYS_PER_WEEK]

    return weekly[RECORD_COLUMNS].reset_index(drop=True)
