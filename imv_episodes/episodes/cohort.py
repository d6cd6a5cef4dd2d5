""" Cohort restriction: adult hospitalizations with IMV, observed up to the tracheostomy"""

import logging

import gin

from imv_episodes.common.constants import HOSP_ID, RECORDED_DTTM, DEVICE_CATEGORY, AGE, FIRST_TRACH_DTTM, \
    IMV_DEVICE, ADULT_AGE


def imv_hospitalization_ids(df_resp):
    return df_resp.loc[df_resp[DEVICE_CATEGORY] == IMV_DEVICE, HOSP_ID].unique()


@gin.configurable('select_adult_imv_hospitalizations')
def select_adult_imv_hospitalizations(df_resp, df_hosp, min_age=ADULT_AGE):
    """Hospitalizations of adults with at least one IMV observation"""
    adult = df_hosp[AGE] >= min_age
    with_imv = df_hosp[HOSP_ID].isin(imv_hospitalization_ids(df_resp))

    logging.info("Adult hospitalizations: {}, with IMV: {}".format(adult.sum(), (adult & with_imv).sum()))
    return df_hosp[adult & with_imv].reset_index(drop=True)


def restrict_observations(df_resp, df_hosp):
    return df_resp[df_resp[HOSP_ID].isin(df_hosp[HOSP_ID])].reset_index(drop=True)


def truncate_to_pre_trach(df_resp, df_trach):
    """
    Drops every observation at or after the first tracheostomy time of its hospitalization. Hospitalizations
    without tracheostomy keep all observations.
    """
    df = df_resp.merge(df_trach[[HOSP_ID, FIRST_TRACH_DTTM]], how='left', on=HOSP_ID)
    keep = df[FIRST_TRACH_DTTM].isna() | (df[RECORDED_DTTM] < df[FIRST_TRACH_DTTM])

    logging.info(f"Dropping {(~keep).sum()} observations recorded after tracheostomy")
    return df.loc[keep, list(df_resp.columns)].reset_index(drop=True)


def drop_trach_without_imv(df_resp, df_hosp, df_trach):
    """
    Removes tracheostomy hospitalizations left without any IMV observation before the tracheostomy.

    df_resp: observations already truncated to the pre-tracheostomy window, so IMV recorded only after the
    tracheostomy does not count
    """
    trach_ids = df_trach.loc[df_trach[FIRST_TRACH_DTTM].notna(), HOSP_ID]
    no_imv = ~df_hosp[HOSP_ID].isin(imv_hospitalization_ids(df_resp))
    to_drop = df_hosp[HOSP_ID].isin(trach_ids) & no_imv

    logging.info(f"Dropping {to_drop.sum()} tracheostomy hospitalizations without IMV before tracheostomy")
    return df_hosp[~to_drop].reset_index(drop=True)
