"""
Last observation carried forward (LOCF) for categorical respiratory support columns.
"""

import pandas as pd


def locf_by_group(df: pd.DataFrame, group_col, value_col) -> pd.Series:
    """
    Fills each missing value with the most recent non-missing value at or before it within the same group.

    Rows have to be sorted by time within each group beforehand. Values before the first observation of a
    group stay missing, and an all-missing group stays all-missing.
    """
    return df.groupby(group_col, sort=False)[value_col].ffill()
