"""
Runtime settings loaded from the environment.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

CONFIG_DIR = Path(__file__).resolve().parent

# Get settings from environment
thresholds_path = os.getenv("CASHEW_QC_THRESHOLDS_PATH", str(CONFIG_DIR / "thresholds.yaml"))
column_mappings_path = os.getenv("CASHEW_QC_COLUMN_MAPPINGS_PATH", str(CONFIG_DIR / "column_mappings.yaml"))
export_dir = os.getenv("CASHEW_QC_EXPORT_DIR", "./exports")
log_level = os.getenv("CASHEW_QC_LOG_LEVEL", "INFO")


class Settings:
    thresholds_path = thresholds_path
    column_mappings_path = column_mappings_path
    export_dir = export_dir
    log_level = log_level


settings = Settings()
