""" Segmentation of the respiratory support stream of each hospitalization into IMV episodes

The observations of a hospitalization are cut into maximal runs of constant IMV status. Every IMV run lasts
from its first observation until the next observation after the run (of any device), runs closer than the
merge gap are chained into one episode, and the first episode of the hospitalization is kept if it is long
enough.
"""

import logging

import gin
import pandas as pd

from imv_episodes.common import processing
from imv_episodes.common.constants import HOSP_ID, RECORDED_DTTM, DEVICE_CATEGORY, ON_IMV, RUN_ID, NEXT_DTTM, \
    BEGIN_IMV, END_IMV, COMBINE, MERGE_GROUP, N_RUNS, TOTAL_IMV_TIME, IMV_DEVICE, MERGE_GAP_HOURS, MIN_IMV_HOURS

RUN_COLUMNS = [HOSP_ID, RUN_ID, BEGIN_IMV, END_IMV]
EPISODE_COLUMNS = [HOSP_ID, MERGE_GROUP, BEGIN_IMV, END_IMV, N_RUNS, TOTAL_IMV_TIME]

ONE_HOUR = pd.Timedelta(hours=1)


def _hours(delta):
    return delta / ONE_HOUR


def identify_runs(df_resp):
    """
    Labels every observation with the id of the maximal run of constant IMV status it belongs to, and with the
    time of the next observation of the same hospitalization.

    df_resp: observations sorted by hospitalization and time, device categories already filled
    """
    df = df_resp[[HOSP_ID, RECORDED_DTTM, DEVICE_CATEGORY]].copy()
    df[ON_IMV] = (df[DEVICE_CATEGORY] == IMV_DEVICE).astype(bool)
    df[RUN_ID] = processing.group_run_ids(df, HOSP_ID, ON_IMV)
    df[NEXT_DTTM] = processing.next_in_group(df, HOSP_ID, RECORDED_DTTM)
    return df


def imv_runs(df_labelled):
    """
    One row per IMV run. The run ends at the next observation after it, or at its own last observation when
    nothing is recorded afterwards.
    """
    df_imv = df_labelled[df_labelled[ON_IMV]]

    first_rows = df_imv.drop_duplicates([HOSP_ID, RUN_ID], keep='first')
    last_rows = df_imv.drop_duplicates([HOSP_ID, RUN_ID], keep='last')

    df_begin = first_rows[[HOSP_ID, RUN_ID, RECORDED_DTTM]].rename(columns={RECORDED_DTTM: BEGIN_IMV})
    df_end = last_rows[[HOSP_ID, RUN_ID]].assign(**{END_IMV: last_rows[NEXT_DTTM].fillna(last_rows[RECORDED_DTTM])})

    return df_begin.merge(df_end, how='inner', on=[HOSP_ID, RUN_ID])[RUN_COLUMNS].reset_index(drop=True)


@gin.configurable('merge_imv_runs')
def merge_imv_runs(df_runs, max_gap_hours=MERGE_GAP_HOURS):
    """
    Merges IMV runs of a hospitalization separated by less than `max_gap_hours`.

    A run flags `combine` when the next run begins less than `max_gap_hours` after it ends. A new merged group
    starts at every run whose predecessor does not combine with it, so chains of close runs collapse into a
    single group even when the first and last run are far apart.

    Only the predecessor's flag decides the boundary. A run's own forward flag links it to the run after it,
    not to the run before, so a run far from its predecessor opens a new group even when it combines with its
    successor.
    """
    if df_runs.empty:
        return df_runs.assign(**{MERGE_GROUP: df_runs[RUN_ID], N_RUNS: 0, TOTAL_IMV_TIME: 0.0})[EPISODE_COLUMNS]

    df = processing.sort_within_groups(df_runs, HOSP_ID, BEGIN_IMV)

    next_begin = processing.next_in_group(df, HOSP_ID, BEGIN_IMV)
    df[COMBINE] = _hours(next_begin - df[END_IMV]) < max_gap_hours

    joins_previous = processing.previous_in_group(df, HOSP_ID, COMBINE).eq(True)
    df[MERGE_GROUP] = processing.block_ids(df, HOSP_ID, ~joins_previous)

    df_merged = (df.groupby([HOSP_ID, MERGE_GROUP], sort=False).
                 agg(**{BEGIN_IMV: (BEGIN_IMV, 'min'),
                        END_IMV: (END_IMV, 'max'),
                        N_RUNS: (RUN_ID, 'size')}).
                 reset_index())
    df_merged[TOTAL_IMV_TIME] = _hours(df_merged[END_IMV] - df_merged[BEGIN_IMV])

    return df_merged[EPISODE_COLUMNS]


@gin.configurable('retain_index_episode')
def retain_index_episode(df_merged, min_duration_hours=MIN_IMV_HOURS):
    """Keeps the first merged run of every hospitalization, and only if it lasts at least `min_duration_hours`"""
    if df_merged.empty:
        return df_merged

    df = processing.sort_within_groups(df_merged, HOSP_ID, BEGIN_IMV)
    df_first = df.drop_duplicates(HOSP_ID, keep='first')

    return df_first[df_first[TOTAL_IMV_TIME] >= min_duration_hours].reset_index(drop=True)


def segment_imv_episodes(df_resp):
    """Index IMV episode per hospitalization, starting from the filled and truncated observations"""
    df_labelled = identify_runs(df_resp)
    df_runs = imv_runs(df_labelled)
    df_merged = merge_imv_runs(df_runs)
    df_episodes = retain_index_episode(df_merged)

    logging.info("IMV runs: {}, merged runs: {}, index episodes: {} in {} hospitalizations with IMV".format(
        len(df_runs), len(df_merged), len(df_episodes), df_runs[HOSP_ID].nunique()))

    return df_episodes
