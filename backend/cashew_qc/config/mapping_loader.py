"""
Utilities for loading sheet/column mapping configuration used by workbook ingestion.
"""
from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cashew_qc.config.settings import settings


def _slugify(value: Optional[str]) -> str:
    if not value:
        return ""
    return re.sub(r"[^a-z0-9]+", "", value.lower())


@lru_cache()
def load_mapping_config() -> Dict[str, Any]:
    config_path = Path(settings.column_mappings_path)
    if not config_path.exists():
        return {}
    with open(config_path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def get_record_kind_for_sheet(sheet_name: Optional[str]) -> Optional[str]:
    """Resolve a sheet name (or CSV stem) to bills / containers / cutting_tests."""
    candidate_slug = _slugify(sheet_name)
    if not candidate_slug:
        return None
    sheets = load_mapping_config().get("sheets") or {}
    for cfg_name, kind in sheets.items():
        if _slugify(cfg_name) == candidate_slug:
            return kind
    # Longest configured name first so "cutting tests" wins over "cutting"
    for cfg_name, kind in sorted(sheets.items(), key=lambda item: -len(_slugify(item[0]))):
        cfg_slug = _slugify(cfg_name)
        if cfg_slug and cfg_slug in candidate_slug:
            return kind
    return None


def get_column_mapping_for_kind(record_kind: str) -> Dict[str, str]:
    columns = load_mapping_config().get("columns") or {}
    return dict(columns.get(record_kind) or {})
