import pandas as pd
import pytest

from imv_episodes.common.constants import PATIENT_ID, HOSP_ID, ADMISSION_DTTM, DISCHARGE_DTTM, \
    DISCHARGE_CATEGORY, END_IMV, TRANSFER_STATUS, INTERNAL_TRANSFER, MISSED_TRACH, TRANSFER_OUT, TRANSFER_IN, \
    TRANSFER_IN_THEN_OUT
from imv_episodes.episodes import transfers

T0 = pd.Timestamp('2100-01-01')


def _at(hours):
    return T0 + pd.Timedelta(hours=hours)


def _hosp(rows):
    """rows: (patient_id, hospitalization_id, admission hours, discharge hours, discharge category)"""
    return pd.DataFrame([{PATIENT_ID: p, HOSP_ID: h, ADMISSION_DTTM: _at(a), DISCHARGE_DTTM: _at(d),
                          DISCHARGE_CATEGORY: c} for p, h, a, d, c in rows])


def _flags(df_hosp):
    return transfers.flag_transfers(df_hosp).set_index(HOSP_ID)


def test_transfer_out_then_in():
    df_hosp = _hosp([(1, 1, 0, 100, 'Acute Care Hospital'),
                     (1, 2, 105, 200, 'Home')])

    res = _flags(df_hosp)

    assert res.loc[1, TRANSFER_STATUS] == TRANSFER_OUT
    assert res.loc[2, TRANSFER_STATUS] == TRANSFER_IN
    assert not res.loc[1, INTERNAL_TRANSFER]
    assert res.loc[2, INTERNAL_TRANSFER]


@pytest.mark.parametrize("category,gap,is_transfer",
                         (('Acute Care Hospital', 5, True),
                          ('Other', 23.9, True),
                          ('other', 5, True),
                          ('Acute Care Hospital', 24, False),
                          ('Home', 5, False),
                          (None, 5, False)))
def test_transfer_out_conditions(category, gap, is_transfer):
    df_hosp = _hosp([(1, 1, 0, 100, category),
                     (1, 2, 100 + gap, 200, 'Home')])

    res = _flags(df_hosp)

    if is_transfer:
        assert res.loc[1, TRANSFER_STATUS] == TRANSFER_OUT
        assert res.loc[2, TRANSFER_STATUS] == TRANSFER_IN
    else:
        assert res[TRANSFER_STATUS].isna().all()
        assert not res[INTERNAL_TRANSFER].any()


def test_transfer_chain():
    df_hosp = _hosp([(1, 1, 0, 100, 'Acute Care Hospital'),
                     (1, 2, 102, 200, 'Other'),
                     (1, 3, 210, 300, 'Home')])

    res = _flags(df_hosp)

    assert res[TRANSFER_STATUS].tolist() == [TRANSFER_OUT, TRANSFER_IN_THEN_OUT, TRANSFER_IN]
    assert res[INTERNAL_TRANSFER].tolist() == [False, False, True]


def test_transfers_stay_within_patient():
    # patient 2 is admitted right after patient 1 was transferred out
    df_hosp = _hosp([(1, 1, 0, 100, 'Acute Care Hospital'),
                     (2, 2, 101, 200, 'Home')])

    res = _flags(df_hosp)

    assert pd.isna(res.loc[1, TRANSFER_STATUS])
    assert pd.isna(res.loc[2, TRANSFER_STATUS])


def test_transfers_follow_admission_order():
    df_hosp = _hosp([(1, 2, 105, 200, 'Home'),
                     (1, 1, 0, 100, 'Acute Care Hospital')])

    res = _flags(df_hosp)

    assert res.loc[1, TRANSFER_STATUS] == TRANSFER_OUT
    assert res.loc[2, INTERNAL_TRANSFER]


def _episodes(rows):
    """rows: (hospitalization_id, end_imv hours, discharge hours, discharge category)"""
    return pd.DataFrame([{HOSP_ID: h, END_IMV: _at(e), DISCHARGE_DTTM: _at(d), DISCHARGE_CATEGORY: c}
                         for h, e, d, c in rows])


@pytest.mark.parametrize("hours_to_discharge,category,missed",
                         ((1, 'Home', True),
                          (2, 'Skilled Nursing Facility', True),
                          (2.5, 'Home', False),
                          (0, 'Expired', False),
                          (0, 'hospice', False),
                          (0, 'Acute Care Hospital', False),
                          (0, 'Other', False),
                          (0, None, True)))
def test_missed_trach(hours_to_discharge, category, missed):
    df_episodes = _episodes([(1, 100, 100 + hours_to_discharge, category)])

    res = transfers.flag_missed_trach(df_episodes)

    assert res.loc[0, MISSED_TRACH] == missed
    assert MISSED_TRACH not in df_episodes.columns


def test_exclude_flagged_passes_missing():
    df = pd.DataFrame({HOSP_ID: [1, 2, 3, 4], INTERNAL_TRANSFER: [True, False, None, True]})

    res = transfers.exclude_flagged(df, INTERNAL_TRANSFER)

    assert res[HOSP_ID].tolist() == [2, 3]
