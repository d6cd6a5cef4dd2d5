""" Tracheostomy resolution per hospitalization, with imputation from the preceding admission"""

import logging

import gin
import pandas as pd

from imv_episodes.common import processing
from imv_episodes.common.constants import PATIENT_ID, HOSP_ID, RECORDED_DTTM, DEVICE_CATEGORY, TRACH_FLAG, \
    ADMISSION_DTTM, FIRST_TRACH_DTTM, TRACH_IMPUTED, TRACH_COLLAR_DEVICE, TRACH_LOOKBACK_DAYS


def _flag_value(x):
    if isinstance(x, str):
        return x.strip().lower() in ('1', '1.0', 'true', 'yes')
    if pd.isna(x):
        return False
    return bool(x)


def trach_flag_set(col):
    """Explicit tracheostomy flag, accepts 0/1, booleans and their string forms. Missing counts as not set."""
    return col.astype(object).map(_flag_value).astype(bool)


def first_trach_times(df_resp):
    """
    Earliest tracheostomy evidence per hospitalization, either an explicit tracheostomy flag or a
    'trach collar' device observation, whichever comes first.
    """
    flagged = trach_flag_set(df_resp[TRACH_FLAG])
    collar = df_resp[DEVICE_CATEGORY] == TRACH_COLLAR_DEVICE

    first_flag = df_resp.loc[flagged, [HOSP_ID, RECORDED_DTTM]].groupby(HOSP_ID)[RECORDED_DTTM].min()
    first_collar = df_resp.loc[collar, [HOSP_ID, RECORDED_DTTM]].groupby(HOSP_ID)[RECORDED_DTTM].min()

    first_trach = pd.concat([first_flag, first_collar], axis=1).min(axis=1)
    return first_trach.rename(FIRST_TRACH_DTTM).rename_axis(HOSP_ID)


@gin.configurable('resolve_tracheostomy')
def resolve_tracheostomy(df_resp, df_hosp, lookback_days=TRACH_LOOKBACK_DAYS):
    """
    Returns one row per hospitalization with its first tracheostomy time.

    A hospitalization without evidence of its own takes the time of the patient's immediately preceding
    admission if that admission has evidence of its own and the current admission starts at most
    `lookback_days` after it. Imputed values are not passed on to later admissions.
    """
    first_trach = first_trach_times(df_resp)

    df = df_hosp[[PATIENT_ID, HOSP_ID, ADMISSION_DTTM]].merge(first_trach, how='left', left_on=HOSP_ID,
                                                              right_index=True)
    df[FIRST_TRACH_DTTM] = pd.to_datetime(df[FIRST_TRACH_DTTM])
    df = processing.sort_within_groups(df, PATIENT_ID, ADMISSION_DTTM)

    prior_trach = processing.previous_in_group(df, PATIENT_ID, FIRST_TRACH_DTTM)
    within_lookback = (df[ADMISSION_DTTM] - prior_trach) <= pd.Timedelta(days=lookback_days)

    imputed = df[FIRST_TRACH_DTTM].isna() & prior_trach.notna() & within_lookback
    df[TRACH_IMPUTED] = imputed
    df[FIRST_TRACH_DTTM] = df[FIRST_TRACH_DTTM].mask(imputed, prior_trach)

    logging.info("Tracheostomy evidence in {} hospitalizations, {} of them imputed from a prior admission".format(
        df[FIRST_TRACH_DTTM].notna().sum(), imputed.sum()))

    return df[[PATIENT_ID, HOSP_ID, FIRST_TRACH_DTTM, TRACH_IMPUTED]]
