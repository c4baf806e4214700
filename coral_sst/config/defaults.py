# coral_sst/config/defaults.py
"""Default configuration values.

The study defaults reproduce the Southern Florida reef analysis: GCOM-C
SGLI L3 SST (V2 then V3), 2018-2023, bleaching threshold 30.148 C.
"""

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

PATHS = {
    'project_root': str(PROJECT_ROOT),
    'data_dir': str(PROJECT_ROOT / 'data'),
    'logs_dir': os.getenv('CORAL_SST_LOGS_DIR', str(PROJECT_ROOT / 'logs')),
    'output_dir': str(PROJECT_ROOT / 'outputs'),
}

LOGGING = {
    'level': os.getenv('CORAL_SST_LOG_LEVEL', 'INFO'),
    'file_enabled': True,
    'file_name': 'coral_sst.log',
    'max_file_size': 50 * 1024 * 1024,  # 50MB
    'backup_count': 5,
}

PROCESSING = {
    'max_workers': 4,  # thread pool for per-month and per-raster work
}

# Retry policy for transient raster source failures
RETRY = {
    'max_attempts': 3,
    'delay': 1.0,  # seconds
    'backoff': 2.0,
}

ANALYSIS = {
    'band': 'SST',  # logical band every source is scaled into
    'anomaly_suffix': '_Anomaly',
}

STUDY = {
    'name': 'southern_florida',
    # (min_x, min_y, max_x, max_y) in the grid's coordinates
    'area': [-83.0468, 24.352, -80.1135, 25.3439],
    'start_date': '2018-01-01',
    'end_date': '2024-01-01',
    'sample_point': [-81.2132, 24.7198],
    'sample_region': None,  # falls back to 'area'
}

# Listed oldest first; later sources win on identical timestamps
SOURCES = [
    {
        'name': 'gcomc_v2',
        'collection_id': 'JAXA/GCOM-C/L3/OCEAN/SST/V2',
        'band': 'SST_AVE',
        'multiplier': 0.0012,
        'offset': -10.0,
        'start_date': '2018-01-01',
        'end_date': '2021-11-28',
    },
    {
        'name': 'gcomc_v3',
        'collection_id': 'JAXA/GCOM-C/L3/OCEAN/SST/V3',
        'band': 'SST_AVE',
        'multiplier': 0.0012,
        'offset': -10.0,
        'start_date': '2021-11-29',
        'end_date': '2023-07-31',
    },
]

THRESHOLD = {
    'value': 30.148,  # maximum monthly mean (August); null derives it from the climatology
    'band_name': 'Bleaching_Threshold',
}

CLASSIFICATION = {
    'start_date': '2023-07-01',
    'end_date': '2023-07-31',
    'valid_range': [0.0, 40.0],
}

CHARTS = {
    'doy_start': 1,
    'doy_end': 365,
}
