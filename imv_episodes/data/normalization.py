""" Event normalizer: cleans the raw CLIF tables into the ordered inputs of the episode pipeline"""

import logging

import numpy as np
import pandas as pd

from imv_episodes.common import processing
from imv_episodes.common.constants import PATIENT_ID, HOSP_ID, RECORDED_DTTM, DEVICE_CATEGORY, ADMISSION_DTTM, \
    DISCHARGE_DTTM, AGE, DEATH_DTTM, RESP_COLUMNS, HOSP_COLUMNS, PATIENT_COLUMNS, RESP_TABLE, HOSP_TABLE, \
    PATIENT_TABLE
from imv_episodes.common.lookups import check_columns, to_naive_datetime
from imv_episodes.imputation import forward_filling


def normalize_category(col):
    """Strips and lower-cases categorical values, blank strings become missing"""
    values = col.astype(object).map(lambda x: x.strip().lower() if isinstance(x, str) else x)
    return values.mask(values == '', np.nan)


def _drop_missing(df, col, table):
    missing = df[col].isna()
    if missing.any():
        logging.warning(f"Dropping {missing.sum()} records of {table} without {col}")
        df = df[~missing]
    return df


def _drop_duplicated_ids(df, id_col, table):
    duplicated = df.duplicated(id_col, keep='first')
    if duplicated.any():
        logging.warning(f"Keeping first of duplicated {id_col} in {table}, dropping {duplicated.sum()} records")
        df = df[~duplicated]
    return df.reset_index(drop=True)


def normalize_respiratory_support(df_resp):
    """
    Returns respiratory support observations sorted by hospitalization and time, with blank device categories
    filled by LOCF within each hospitalization.
    """
    check_columns(df_resp, RESP_COLUMNS, RESP_TABLE)

    df = df_resp[RESP_COLUMNS].copy()
    df[RECORDED_DTTM] = to_naive_datetime(df[RECORDED_DTTM])
    df = _drop_missing(df, HOSP_ID, RESP_TABLE)
    df = _drop_missing(df, RECORDED_DTTM, RESP_TABLE)
    df[DEVICE_CATEGORY] = normalize_category(df[DEVICE_CATEGORY])

    df = processing.sort_within_groups(df, HOSP_ID, RECORDED_DTTM)
    n_missing = df[DEVICE_CATEGORY].isna().sum()
    df[DEVICE_CATEGORY] = forward_filling.locf_by_group(df, HOSP_ID, DEVICE_CATEGORY)

    logging.info("Filled {} of {} missing device categories by LOCF".format(
        n_missing - df[DEVICE_CATEGORY].isna().sum(), n_missing))
    return df


def normalize_hospitalizations(df_hosp):
    check_columns(df_hosp, HOSP_COLUMNS, HOSP_TABLE)

    df = df_hosp[HOSP_COLUMNS].copy()
    df = _drop_missing(df, HOSP_ID, HOSP_TABLE)
    df[ADMISSION_DTTM] = to_naive_datetime(df[ADMISSION_DTTM])
    df[DISCHARGE_DTTM] = to_naive_datetime(df[DISCHARGE_DTTM])
    df[AGE] = pd.to_numeric(df[AGE])
    return _drop_duplicated_ids(df, HOSP_ID, HOSP_TABLE)


def normalize_patients(df_patient):
    check_columns(df_patient, PATIENT_COLUMNS, PATIENT_TABLE)

    df = df_patient[PATIENT_COLUMNS].copy()
    df[DEATH_DTTM] = to_naive_datetime(df[DEATH_DTTM])
    return _drop_duplicated_ids(df, PATIENT_ID, PATIENT_TABLE)


def check_patient_links(df_hosp, df_patient):
    """Counts hospitalizations whose patient is not in the patient table. They are kept."""
    unknown = ~df_hosp[PATIENT_ID].isin(df_patient[PATIENT_ID])
    if unknown.any():
        logging.warning(f"{unknown.sum()} hospitalizations refer to patients missing from {PATIENT_TABLE}")
    return int(unknown.sum())
