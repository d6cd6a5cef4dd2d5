import logging
from pathlib import Path

import pandas as pd

from imv_episodes.common.constants import SUPPORTED_FILE_TYPES


def table_path(data_dir, table, file_type):
    return Path(data_dir) / f'{table}.{file_type}'


def check_columns(df, columns, table):
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"Table {table} is missing required columns {missing}")


def read_clif_table(data_dir, table, file_type, columns):
    """
    Reads one CLIF table from `data_dir` and restricts it to `columns`.

    data_dir: directory holding the tables as <table>.<file_type>
    file_type: 'csv' or 'parquet'
    """
    if file_type not in SUPPORTED_FILE_TYPES:
        raise ValueError(f"Unsupported file type {file_type}, expected one of {SUPPORTED_FILE_TYPES}")

    path = table_path(data_dir, table, file_type)
    if not path.exists():
        raise FileNotFoundError(f"Path {path} does not exist")

    logging.info(f"Reading {table} from {path}")
    if file_type == 'csv':
        df = pd.read_csv(path)
    else:
        df = pd.read_parquet(path, engine='pyarrow')

    check_columns(df, columns, table)
    return df[columns]


def to_naive_datetime(col):
    """Parses timestamps and drops the timezone. Tz-aware values are converted to UTC first."""
    return pd.to_datetime(col, utc=True).dt.tz_convert(None)
