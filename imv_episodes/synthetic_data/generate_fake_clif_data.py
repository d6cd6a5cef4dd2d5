#!/usr/bin/env python
# coding: utf-8

import argparse
import datetime
from pathlib import Path

import numpy as np
import pandas as pd
from tqdm import tqdm

from imv_episodes.common import lookups
from imv_episodes.common.constants import PATIENT_ID, HOSP_ID, RECORDED_DTTM, DEVICE_CATEGORY, TRACH_FLAG, \
    ADMISSION_DTTM, DISCHARGE_DTTM, AGE, DISCHARGE_CATEGORY, DEATH_DTTM, RESP_TABLE, HOSP_TABLE, PATIENT_TABLE, \
    SUPPORTED_FILE_TYPES

DEVICES = ['IMV', 'NIPPV', 'High Flow NC', 'Nasal Cannula', 'Room Air']
DEVICE_WEIGHTS = [0.35, 0.1, 0.1, 0.25, 0.2]
DISPOSITIONS = ['Home', 'Expired', 'Hospice', 'Skilled Nursing Facility', 'Acute Care Hospital', 'Other']
DISPOSITION_WEIGHTS = [0.45, 0.15, 0.05, 0.15, 0.1, 0.1]


def get_date_in_range(start: datetime.datetime, end: datetime.datetime, n):
    return pd.to_datetime(np.random.randint(int(start.timestamp()), int(end.timestamp()), n, dtype=np.int64), unit='s')


def generate_fake_patients(nr_patients, death_ratio=0.2):
    pids = pd.Series(range(0, nr_patients)) + 1

    death_dttm = pd.Series(get_date_in_range(datetime.datetime(2101, 1, 1), datetime.datetime(2110, 1, 1),
                                             nr_patients))
    death_dttm[np.random.rand(nr_patients) >= death_ratio] = pd.NaT

    return pd.DataFrame({PATIENT_ID: pids,
                         DEATH_DTTM: death_dttm})


def generate_fake_hospitalizations(df_patients, max_admissions=3, transfer_ratio=0.2):
    """
    Admissions of every patient in chronological order. With probability `transfer_ratio` an admission is
    discharged to an acute care hospital and the next one starts a few hours later.
    """
    rows = []
    hosp_id = 1000
    for pid in df_patients[PATIENT_ID]:
        age = np.random.randint(15, 90)
        admission = get_date_in_range(datetime.datetime(2100, 1, 1), datetime.datetime(2100, 6, 1), 1)[0]

        for _ in range(np.random.randint(1, max_admissions + 1)):
            discharge = admission + pd.Timedelta(hours=np.random.randint(12, 20 * 24))
            is_transfer = np.random.rand() < transfer_ratio
            category = 'Acute Care Hospital' if is_transfer else str(np.random.choice(DISPOSITIONS,
                                                                                     p=DISPOSITION_WEIGHTS))
            rows.append({PATIENT_ID: pid,
                         HOSP_ID: hosp_id,
                         ADMISSION_DTTM: admission,
                         DISCHARGE_DTTM: discharge,
                         AGE: age,
                         DISCHARGE_CATEGORY: category})
            hosp_id += 1

            if category == 'Expired':
                break
            gap_hours = np.random.randint(1, 20) if is_transfer else np.random.randint(24, 200 * 24)
            admission = discharge + pd.Timedelta(hours=gap_hours)

    return pd.DataFrame(rows)


def get_timestamps(admission, discharge, max_step_hours=4.0):
    duration = (discharge - admission) / pd.Timedelta(hours=1)

    offsets = []
    cur_time = np.random.uniform(0, max_step_hours)
    while cur_time < duration:
        offsets.append(cur_time)
        cur_time += np.random.uniform(0.25, max_step_hours)

    return pd.Series(admission + pd.to_timedelta(offsets, unit='h')).dt.floor('min')


def get_devices(length, trach_ratio=0.1, blank_ratio=0.15, mean_block=6):
    """Blocks of devices with blank entries, ending in a trach collar for some hospitalizations"""
    devices = []
    while len(devices) < length:
        block = str(np.random.choice(DEVICES, p=DEVICE_WEIGHTS))
        devices.extend([block] * np.random.randint(1, 2 * mean_block))
    devices = np.array(devices[:length], dtype=object)

    if length > 2 and np.random.rand() < trach_ratio:
        trach_start = np.random.randint(length // 2, length)
        devices[trach_start:] = 'Trach Collar'

    devices[np.random.rand(length) < blank_ratio] = None
    return devices


def get_fake_resp_data(hosp_id, admission, discharge):
    datetimes = get_timestamps(admission, discharge)
    devices = get_devices(len(datetimes))

    trach = np.zeros(len(datetimes), dtype=int)
    trach[devices == 'Trach Collar'] = np.random.randint(0, 2)

    return pd.DataFrame({HOSP_ID: hosp_id,
                         RECORDED_DTTM: datetimes,
                         DEVICE_CATEGORY: devices,
                         TRACH_FLAG: trach})


def generate_fake_tables(nr_patients):
    df_patients = generate_fake_patients(nr_patients)
    df_hosp = generate_fake_hospitalizations(df_patients)

    dfs = []
    for _, hosp in tqdm(df_hosp.iterrows(), total=len(df_hosp)):
        dfs.append(get_fake_resp_data(hosp[HOSP_ID], hosp[ADMISSION_DTTM], hosp[DISCHARGE_DTTM]))
    df_resp = pd.concat(dfs).reset_index(drop=True)

    return {RESP_TABLE: df_resp, HOSP_TABLE: df_hosp, PATIENT_TABLE: df_patients}


def write_tables(tables, output_dir: Path, file_type):
    output_dir.mkdir(exist_ok=True, parents=True)
    for table, df in tables.items():
        path = lookups.table_path(output_dir, table, file_type)
        if file_type == 'csv':
            df.to_csv(path, index=False)
        else:
            df.to_parquet(path, index=False)


def get_parser():
    parser = argparse.ArgumentParser(
        description='Generate fake CLIF respiratory support, hospitalization and patient tables')

    parser.add_argument('output_dir', help="directory to write the tables to", type=Path)
    parser.add_argument('--file-type', help="format of the tables", choices=SUPPORTED_FILE_TYPES,
                        default='parquet')
    parser.add_argument('--seed', help="random seed", type=int, default=40510)
    parser.add_argument('--nr-patients', help='number of patients to generate', type=int, default=100)

    return parser


def main():
    args = get_parser().parse_args()

    np.random.seed(args.seed)

    tables = generate_fake_tables(args.nr_patients)
    write_tables(tables, args.output_dir, args.file_type)


if __name__ == "__main__":
    main()
