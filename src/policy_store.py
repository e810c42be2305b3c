"""Billing policy file (policy.yaml).

The policy holds the rating thresholds for the letter campaigns and the
discount campaign:

    reminder_max_rating: 50       # reminder letters at or below
    appreciation_min_rating: 80   # appreciation letters at or above
    discount_min_rating: 90       # discount awarded at or above
    discount_percent: 10.0        # permanent cut to base_fee

Keys left out of the file keep their defaults.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from models import BillingPolicy

logger = logging.getLogger(__name__)


def save_policy(path: Path, policy: BillingPolicy) -> None:
    """Write the thresholds in field order so the file stays hand-editable."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(policy.model_dump(), f, default_flow_style=False, sort_keys=False)


def load_policy(path: Path) -> BillingPolicy:
    """Read the campaign thresholds, falling back to defaults when no file exists.

    Out-of-range thresholds raise pydantic's ValidationError.
    """
    if not path.exists():
        logger.info("policy file not found, using default thresholds: %s", path)
        return BillingPolicy()
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    policy = BillingPolicy.model_validate(data)
    logger.info(
        "policy loaded: reminder<=%d appreciation>=%d discount>=%d (%s%%)",
        policy.reminder_max_rating,
        policy.appreciation_min_rating,
        policy.discount_min_rating,
        policy.discount_percent,
    )
    return policy
