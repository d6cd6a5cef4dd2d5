""" Inter-facility transfers and ventilation still ongoing at discharge"""

import logging

import gin
import pandas as pd

from imv_episodes.common import processing
from imv_episodes.common.constants import PATIENT_ID, HOSP_ID, ADMISSION_DTTM, DISCHARGE_DTTM, \
    DISCHARGE_CATEGORY, END_IMV, TRANSFER_OUT_FLAG, TRANSFER_STATUS, INTERNAL_TRANSFER, MISSED_TRACH, \
    TRANSFER_OUT, TRANSFER_IN, TRANSFER_IN_THEN_OUT, TRANSFER_DISPOSITIONS, RESOLVED_DISPOSITIONS, \
    TRANSFER_GAP_HOURS, DISCHARGE_VENT_HOURS

ONE_HOUR = pd.Timedelta(hours=1)


def disposition_in(col, dispositions):
    """Case insensitive membership test of discharge categories, missing is never a member"""
    normalized = col.astype(object).map(lambda x: x.strip().lower() if isinstance(x, str) else None)
    return normalized.isin([d.lower() for d in dispositions])


@gin.configurable('flag_transfers')
def flag_transfers(df_hosp, max_gap_hours=TRANSFER_GAP_HOURS, transfer_dispositions=TRANSFER_DISPOSITIONS):
    """
    Tags consecutive admissions of a patient that form one stay across facilities.

    An admission discharged to one of `transfer_dispositions` and followed by the patient's next admission
    within `max_gap_hours` is a 'Transfer Out', the next admission a 'Transfer In'. An admission that is both
    is a 'Transfer In then Out'. A 'Transfer In' following a 'Transfer Out' or 'Transfer In then Out' is an
    internal transfer.

    RETURNS: one row per hospitalization with transfer_status (missing when not a transfer) and
    internal_transfer
    """
    df = processing.sort_within_groups(df_hosp[[PATIENT_ID, HOSP_ID, ADMISSION_DTTM, DISCHARGE_DTTM,
                                                DISCHARGE_CATEGORY]], PATIENT_ID, ADMISSION_DTTM)

    next_admission = processing.next_in_group(df, PATIENT_ID, ADMISSION_DTTM)
    gap_hours = (next_admission - df[DISCHARGE_DTTM]) / ONE_HOUR
    df[TRANSFER_OUT_FLAG] = disposition_in(df[DISCHARGE_CATEGORY], transfer_dispositions) & (gap_hours < max_gap_hours)

    transfer_out = df[TRANSFER_OUT_FLAG]
    transfer_in = processing.previous_in_group(df, PATIENT_ID, TRANSFER_OUT_FLAG).eq(True)

    status = pd.Series(None, index=df.index, dtype=object)
    status.loc[transfer_out] = TRANSFER_OUT
    status.loc[transfer_in] = TRANSFER_IN
    status.loc[transfer_in & transfer_out] = TRANSFER_IN_THEN_OUT
    df[TRANSFER_STATUS] = status

    previous_status = processing.previous_in_group(df, PATIENT_ID, TRANSFER_STATUS)
    df[INTERNAL_TRANSFER] = (df[TRANSFER_STATUS] == TRANSFER_IN) & \
        previous_status.isin([TRANSFER_OUT, TRANSFER_IN_THEN_OUT])

    logging.info("Transfers out: {}, in: {}, in then out: {}".format(
        (status == TRANSFER_OUT).sum(), (status == TRANSFER_IN).sum(), (status == TRANSFER_IN_THEN_OUT).sum()))

    return df[[HOSP_ID, TRANSFER_STATUS, INTERNAL_TRANSFER]]


@gin.configurable('flag_missed_trach')
def flag_missed_trach(df_episodes, max_hours_to_discharge=DISCHARGE_VENT_HOURS,
                      resolved_dispositions=RESOLVED_DISPOSITIONS):
    """
    Flags episodes still on IMV within `max_hours_to_discharge` of discharge whose discharge is not one of
    `resolved_dispositions`, i.e. ventilation did not end within the admission.
    """
    df = df_episodes.copy()
    hours_to_discharge = (df[DISCHARGE_DTTM] - df[END_IMV]) / ONE_HOUR
    unresolved = ~disposition_in(df[DISCHARGE_CATEGORY], resolved_dispositions)

    df[MISSED_TRACH] = (hours_to_discharge <= max_hours_to_discharge) & unresolved
    return df


def exclude_flagged(df_episodes, flag_col):
    """Drops episodes where `flag_col` is True, missing flags pass through"""
    flagged = df_episodes[flag_col].eq(True)
    logging.info(f"Excluding {flagged.sum()} episodes flagged {flag_col}")
    return df_episodes[~flagged].reset_index(drop=True)
