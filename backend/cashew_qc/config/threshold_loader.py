"""
Utilities for loading the alert threshold configuration.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml

from cashew_qc.config.settings import settings


@dataclass(frozen=True)
class Thresholds:
    # Container weighment
    gross_discrepancy_kg: Decimal = Decimal("10")
    tare_discrepancy_kg: Decimal = Decimal("5")
    net_discrepancy_kg: Decimal = Decimal("10")
    tare_ratio_of_gross: Decimal = Decimal("0.3")
    dunnage_ratio_of_gross: Decimal = Decimal("0.2")

    # Moisture tiers and dashboard buckets (%)
    moisture_high: Decimal = Decimal("11")
    moisture_critical: Decimal = Decimal("15")
    moisture_low: Decimal = Decimal("5")
    moisture_bucket_low_max: Decimal = Decimal("8")
    moisture_bucket_medium_max: Decimal = Decimal("11")
    moisture_high_filter: Decimal = Decimal("11")

    # Cutting test weights (g)
    sample_loss_warning_g: Decimal = Decimal("5")
    sample_loss_critical_g: Decimal = Decimal("50")
    nut_to_kernel_ratio: Decimal = Decimal("3.3")
    defective_kernel_warning_g: Decimal = Decimal("5")
    defective_kernel_critical_g: Decimal = Decimal("20")
    good_kernel_warning_g: Decimal = Decimal("10")
    good_kernel_critical_g: Decimal = Decimal("30")

    # Outturn band (lbs/80kg)
    outturn_high: Decimal = Decimal("55")
    outturn_low: Decimal = Decimal("30")
    outturn_critical_low: Decimal = Decimal("20")

    # Share of the sample weight the components must account for
    weight_accounted_low: Decimal = Decimal("0.8")
    weight_accounted_high: Decimal = Decimal("1.2")


# yaml section -> {yaml key: Thresholds field}
_YAML_KEYS: Dict[str, Dict[str, str]] = {
    "container": {
        "gross_discrepancy_kg": "gross_discrepancy_kg",
        "tare_discrepancy_kg": "tare_discrepancy_kg",
        "net_discrepancy_kg": "net_discrepancy_kg",
        "tare_ratio_of_gross": "tare_ratio_of_gross",
        "dunnage_ratio_of_gross": "dunnage_ratio_of_gross",
    },
    "moisture": {
        "high": "moisture_high",
        "critical": "moisture_critical",
        "low": "moisture_low",
        "bucket_low_max": "moisture_bucket_low_max",
        "bucket_medium_max": "moisture_bucket_medium_max",
        "high_filter": "moisture_high_filter",
    },
    "sample_weight": {
        "loss_warning_g": "sample_loss_warning_g",
        "loss_critical_g": "sample_loss_critical_g",
    },
    "kernel": {
        "nut_to_kernel_ratio": "nut_to_kernel_ratio",
        "defective_warning_g": "defective_kernel_warning_g",
        "defective_critical_g": "defective_kernel_critical_g",
        "good_warning_g": "good_kernel_warning_g",
        "good_critical_g": "good_kernel_critical_g",
    },
    "outturn": {
        "high": "outturn_high",
        "low": "outturn_low",
        "critical_low": "outturn_critical_low",
    },
    "weight_accounting": {
        "low": "weight_accounted_low",
        "high": "weight_accounted_high",
    },
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def thresholds_from_config(config: Dict[str, Any]) -> Thresholds:
    """Build a Thresholds object from a parsed yaml mapping."""
    known = {f.name for f in fields(Thresholds)}
    values: Dict[str, Decimal] = {}
    for section, keys in _YAML_KEYS.items():
        section_cfg = config.get(section) or {}
        for yaml_key, field_name in keys.items():
            if field_name not in known or section_cfg.get(yaml_key) is None:
                continue
            # str() first so 0.3 stays 0.3 and not its binary expansion
            values[field_name] = Decimal(str(section_cfg[yaml_key]))
    return Thresholds(**values)


@lru_cache()
def get_thresholds() -> Thresholds:
    return thresholds_from_config(_load_yaml(Path(settings.thresholds_path)))


def clear_threshold_cache() -> None:
    get_thresholds.cache_clear()
