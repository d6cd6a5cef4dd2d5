"""
Group scoped windowing over long-format tables. Every lookup of a "previous" or "next" row is done within the
rows sharing the same group key, so values never leak from one hospitalization (or patient) to another.
"""

import numpy as np
import pandas as pd

INGESTION_ORDER = '_ingestion_order'


def sort_within_groups(df: pd.DataFrame, group_col, time_col) -> pd.DataFrame:
    """Sorts rows by group and time. Ties are kept in their original row order."""
    df = df.assign(**{INGESTION_ORDER: np.arange(len(df))})
    df = df.sort_values([group_col, time_col, INGESTION_ORDER], na_position='last')
    return df.drop(columns=[INGESTION_ORDER]).reset_index(drop=True)


def previous_in_group(df: pd.DataFrame, group_col, value_col) -> pd.Series:
    return df.groupby(group_col, sort=False)[value_col].shift(1)


def next_in_group(df: pd.DataFrame, group_col, value_col) -> pd.Series:
    return df.groupby(group_col, sort=False)[value_col].shift(-1)


def is_first_in_group(df: pd.DataFrame, group_col) -> pd.Series:
    return df.groupby(group_col, sort=False).cumcount() == 0


def block_ids(df: pd.DataFrame, group_col, starts: pd.Series) -> pd.Series:
    """Numbers consecutive blocks within each group, starting at 1.

    A new block begins at every row where `starts` is True and at the first row of every group.
    """
    starts = starts.astype(bool) | is_first_in_group(df, group_col)
    return starts.astype('int64').groupby(df[group_col], sort=False).cumsum()


def group_run_ids(df: pd.DataFrame, group_col, value_col) -> pd.Series:
    """Run-length identification: id of the maximal constant-value block each row belongs to."""
    changed = df[value_col].ne(previous_in_group(df, group_col, value_col))
    return block_ids(df, group_col, changed)
