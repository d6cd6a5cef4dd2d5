import logging
from pathlib import Path

import pandas as pd

from imv_episodes.common import lookups, processing
from imv_episodes.common.constants import PATIENT_ID, HOSP_ID, ADMISSION_DTTM, FIRST_TRACH_DTTM, \
    INTERNAL_TRANSFER, MISSED_TRACH, OUTPUT_COLUMNS, RESP_TABLE, HOSP_TABLE, PATIENT_TABLE, RESP_COLUMNS, \
    HOSP_COLUMNS, PATIENT_COLUMNS, EPISODES_FILE_SUFFIX, ATTRITION_FILE_SUFFIX
from imv_episodes.data import normalization
from imv_episodes.episodes import cohort, segmentation, tracheostomy, transfers


class CohortAttrition:
    """Ordered record of how many hospitalizations and patients remain after each cohort step"""

    def __init__(self):
        self.steps = []

    def record(self, step, df):
        n_hosp = df[HOSP_ID].nunique()
        n_patients = df[PATIENT_ID].nunique()
        logging.info(f"{step}: {n_hosp} hospitalizations, {n_patients} patients")
        self.steps.append({'step': step, 'hospitalizations': n_hosp, 'patients': n_patients})

    def to_frame(self):
        return pd.DataFrame(self.steps, columns=['step', 'hospitalizations', 'patients'])


def read_tables(data_dir, file_type):
    df_resp = lookups.read_clif_table(data_dir, RESP_TABLE, file_type, RESP_COLUMNS)
    df_hosp = lookups.read_clif_table(data_dir, HOSP_TABLE, file_type, HOSP_COLUMNS)
    df_patient = lookups.read_clif_table(data_dir, PATIENT_TABLE, file_type, PATIENT_COLUMNS)
    return df_resp, df_hosp, df_patient


def generate_episodes(df_resp_raw, df_hosp_raw, df_patient_raw):
    """
    Derives the index IMV episode of every eligible hospitalization from the raw CLIF tables.

    RETURNS: (episodes with OUTPUT_COLUMNS, cohort attrition table)
    """
    attrition = CohortAttrition()

    df_resp = normalization.normalize_respiratory_support(df_resp_raw)
    df_hosp = normalization.normalize_hospitalizations(df_hosp_raw)
    df_patient = normalization.normalize_patients(df_patient_raw)
    normalization.check_patient_links(df_hosp, df_patient)
    attrition.record('All hospitalizations', df_hosp)

    df_trach = tracheostomy.resolve_tracheostomy(df_resp, df_hosp)

    df_cohort = cohort.select_adult_imv_hospitalizations(df_resp, df_hosp)
    attrition.record('Adults with IMV', df_cohort)

    df_resp_cohort = cohort.restrict_observations(df_resp, df_cohort)
    df_resp_cohort = cohort.truncate_to_pre_trach(df_resp_cohort, df_trach)
    df_cohort = cohort.drop_trach_without_imv(df_resp_cohort, df_cohort, df_trach)
    df_resp_cohort = cohort.restrict_observations(df_resp_cohort, df_cohort)
    attrition.record('IMV before tracheostomy', df_cohort)

    df_index = segmentation.segment_imv_episodes(df_resp_cohort)

    df_episodes = (df_cohort.
                   merge(df_index, how='inner', on=HOSP_ID).
                   merge(df_trach[[HOSP_ID, FIRST_TRACH_DTTM]], how='left', on=HOSP_ID).
                   merge(transfers.flag_transfers(df_hosp), how='left', on=HOSP_ID))
    attrition.record('Index IMV episode of at least 24h', df_episodes)

    df_episodes = transfers.flag_missed_trach(df_episodes)
    df_episodes = transfers.exclude_flagged(df_episodes, MISSED_TRACH)
    attrition.record('Excluding missed tracheostomy', df_episodes)

    df_episodes = transfers.exclude_flagged(df_episodes, INTERNAL_TRANSFER)
    attrition.record('Excluding internal transfers', df_episodes)

    df_episodes = processing.sort_within_groups(df_episodes, PATIENT_ID, ADMISSION_DTTM)
    return df_episodes[OUTPUT_COLUMNS], attrition.to_frame()


def episodes_file_name(site):
    return f'{site}_{EPISODES_FILE_SUFFIX}'


def attrition_file_name(site):
    return f'{site}_{ATTRITION_FILE_SUFFIX}'


def write_episodes(df_episodes, df_attrition, output_dir: Path, site):
    episodes_path = Path(output_dir) / episodes_file_name(site)
    attrition_path = Path(output_dir) / attrition_file_name(site)

    logging.info(f"Writing {len(df_episodes)} episodes to {episodes_path}")
    df_episodes.to_csv(episodes_path, index=False, compression='gzip')
    df_attrition.to_csv(attrition_path, index=False)
