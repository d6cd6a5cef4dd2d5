# CLIF table names
RESP_TABLE = 'clif_respiratory_support'
HOSP_TABLE = 'clif_hospitalization'
PATIENT_TABLE = 'clif_patient'
SUPPORTED_FILE_TYPES = ('csv', 'parquet')

# Common column names
PATIENT_ID = 'patient_id'
HOSP_ID = 'hospitalization_id'
RECORDED_DTTM = 'recorded_dttm'
DEVICE_CATEGORY = 'device_category'
TRACH_FLAG = 'tracheostomy'
ADMISSION_DTTM = 'admission_dttm'
DISCHARGE_DTTM = 'discharge_dttm'
AGE = 'age_at_admission'
DISCHARGE_CATEGORY = 'discharge_category'
DEATH_DTTM = 'death_dttm'

RESP_COLUMNS = [HOSP_ID, RECORDED_DTTM, DEVICE_CATEGORY, TRACH_FLAG]
HOSP_COLUMNS = [PATIENT_ID, HOSP_ID, ADMISSION_DTTM, DISCHARGE_DTTM, AGE, DISCHARGE_CATEGORY]
PATIENT_COLUMNS = [PATIENT_ID, DEATH_DTTM]

# Derived columns
FIRST_TRACH_DTTM = 'first_trach_dttm'
TRACH_IMPUTED = 'trach_imputed'
ON_IMV = 'on_imv'
RUN_ID = 'run_id'
NEXT_DTTM = 'next_recorded_dttm'
BEGIN_IMV = 'begin_imv'
END_IMV = 'end_imv'
COMBINE = 'combine'
MERGE_GROUP = 'merge_group'
N_RUNS = 'n_runs'
TOTAL_IMV_TIME = 'total_imv_time'
TRANSFER_OUT_FLAG = 'transfer_out'
TRANSFER_STATUS = 'transfer_status'
INTERNAL_TRANSFER = 'internal_transfer'
MISSED_TRACH = 'missed_trach'

# Device vocabulary, stored lower-cased after normalization
IMV_DEVICE = 'imv'
TRACH_COLLAR_DEVICE = 'trach collar'

# Transfer tags
TRANSFER_OUT = 'Transfer Out'
TRANSFER_IN = 'Transfer In'
TRANSFER_IN_THEN_OUT = 'Transfer In then Out'

# Discharge dispositions
TRANSFER_DISPOSITIONS = ('Acute Care Hospital', 'Other')
RESOLVED_DISPOSITIONS = ('Expired', 'Other', 'Acute Care Hospital', 'Hospice')

# Cohort thresholds
ADULT_AGE = 18
TRACH_LOOKBACK_DAYS = 60
MERGE_GAP_HOURS = 24
MIN_IMV_HOURS = 24
TRANSFER_GAP_HOURS = 24
DISCHARGE_VENT_HOURS = 2

OUTPUT_COLUMNS = [PATIENT_ID,
                  HOSP_ID,
                  ADMISSION_DTTM,
                  DISCHARGE_DTTM,
                  BEGIN_IMV,
                  END_IMV,
                  TOTAL_IMV_TIME,
                  FIRST_TRACH_DTTM,
                  DISCHARGE_CATEGORY,
                  TRANSFER_STATUS]

EPISODES_FILE_SUFFIX = 'imv_episodes.csv.gz'
ATTRITION_FILE_SUFFIX = 'cohort_attrition.csv'
