import numpy as np
import pandas as pd
import pytest

from imv_episodes.common.constants import PATIENT_ID, HOSP_ID, RECORDED_DTTM, DEVICE_CATEGORY, TRACH_FLAG, \
    ADMISSION_DTTM, FIRST_TRACH_DTTM, TRACH_IMPUTED
from imv_episodes.episodes import tracheostomy

T0 = pd.Timestamp('2100-01-01')


def _resp(rows):
    """rows: (hospitalization_id, hours after T0, device, tracheostomy flag)"""
    return pd.DataFrame([{HOSP_ID: h, RECORDED_DTTM: T0 + pd.Timedelta(hours=t), DEVICE_CATEGORY: d, TRACH_FLAG: f}
                         for h, t, d, f in rows])


def _hosp(rows):
    """rows: (patient_id, hospitalization_id, days after T0 of the admission)"""
    return pd.DataFrame([{PATIENT_ID: p, HOSP_ID: h, ADMISSION_DTTM: T0 + pd.Timedelta(days=d)} for p, h, d in rows])


@pytest.mark.parametrize("value,expected",
                         ((1, True), (0, False), (1.0, True), (np.nan, False), (None, False),
                          ('1', True), ('0', False), ('True', True), ('false', False), (True, True)))
def test_trach_flag_set(value, expected):
    res = tracheostomy.trach_flag_set(pd.Series([value], dtype=object))
    assert res.tolist() == [expected]


def test_first_trach_time_is_earliest_of_flag_and_collar():
    df_resp = _resp([(1, 0, 'imv', 0),
                     (1, 5, 'imv', 1),
                     (1, 3, 'trach collar', 0),
                     (2, 0, 'imv', 0),
                     (2, 7, 'imv', 1),
                     (2, 9, 'trach collar', 1),
                     (3, 0, 'imv', 0)])

    res = tracheostomy.first_trach_times(df_resp)

    assert res[1] == T0 + pd.Timedelta(hours=3)
    assert res[2] == T0 + pd.Timedelta(hours=7)
    assert 3 not in res.index


def _resolve(df_resp, df_hosp):
    return tracheostomy.resolve_tracheostomy(df_resp, df_hosp).set_index(HOSP_ID)


@pytest.mark.parametrize("gap_days,imputed", ((30, True), (60, True), (61, False)))
def test_imputation_lookback(gap_days, imputed):
    df_resp = _resp([(1, 12, 'trach collar', 0),
                     (2, 0, 'imv', 0)])
    # the trach observation is 12 hours into the first admission
    df_hosp = _hosp([(1, 1, 0),
                     (1, 2, gap_days + 0.5)])

    res = _resolve(df_resp, df_hosp)

    assert res.loc[1, FIRST_TRACH_DTTM] == T0 + pd.Timedelta(hours=12)
    assert not res.loc[1, TRACH_IMPUTED]
    assert res.loc[2, TRACH_IMPUTED] == imputed
    if imputed:
        assert res.loc[2, FIRST_TRACH_DTTM] == T0 + pd.Timedelta(hours=12)
    else:
        assert pd.isna(res.loc[2, FIRST_TRACH_DTTM])


def test_imputation_looks_back_one_admission_only():
    df_resp = _resp([(1, 0, 'trach collar', 0),
                     (2, 0, 'imv', 0),
                     (3, 0, 'imv', 0)])
    df_hosp = _hosp([(1, 1, 0),
                     (1, 2, 10),
                     (1, 3, 20)])

    res = _resolve(df_resp, df_hosp)

    assert res.loc[2, TRACH_IMPUTED]
    assert not res.loc[3, TRACH_IMPUTED]
    assert pd.isna(res.loc[3, FIRST_TRACH_DTTM])


def test_imputation_only_forward_and_within_patient():
    df_resp = _resp([(2, 0, 'trach collar', 0),
                     (3, 0, 'imv', 0)])
    # admission 1 precedes the trach admission 2, admission 3 belongs to another patient
    df_hosp = _hosp([(1, 2, 10),
                     (1, 1, 0),
                     (2, 3, 11)])

    res = _resolve(df_resp, df_hosp)

    assert pd.isna(res.loc[1, FIRST_TRACH_DTTM])
    assert pd.isna(res.loc[3, FIRST_TRACH_DTTM])
    assert res[TRACH_IMPUTED].sum() == 0


def test_own_evidence_is_not_overridden():
    df_resp = _resp([(1, 0, 'trach collar', 0),
                     (2, 24 * 5 + 1, 'imv', 1)])
    df_hosp = _hosp([(1, 1, 0),
                     (1, 2, 5)])

    res = _resolve(df_resp, df_hosp)

    assert res.loc[2, FIRST_TRACH_DTTM] == T0 + pd.Timedelta(hours=24 * 5 + 1)
    assert not res.loc[2, TRACH_IMPUTED]


def test_no_trach_evidence_at_all():
    df_resp = _resp([(1, 0, 'imv', 0)])
    df_hosp = _hosp([(1, 1, 0)])

    res = _resolve(df_resp, df_hosp)

    assert pd.isna(res.loc[1, FIRST_TRACH_DTTM])
    assert not res.loc[1, TRACH_IMPUTED]
