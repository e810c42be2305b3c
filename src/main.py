"""Gym billing batch entry point.

Loads the member file and the billing policy, then logs the load result,
the reminder / appreciation letter targets and the total monthly billing.
With GYM_AWARD_DISCOUNTS set, the discount campaign is run and the member
file is saved afterwards. The interactive menu is a separate presentation
layer built on the same modules.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from batch_ops import award_discounts, filter_at_or_above, filter_at_or_below
from billing import billing_statement, format_money
from member_store import MemberStore
from policy_store import load_policy
from record_codec import RecordIOError, load, save

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
log = logging.getLogger("gym-billing")

# Configuration via environment variables
DATA_FILE = Path(os.environ.get("GYM_DATA_FILE", "members.csv"))
POLICY_FILE = Path(os.environ.get("GYM_POLICY_FILE", "policy.yaml"))
AWARD_DISCOUNTS = os.environ.get("GYM_AWARD_DISCOUNTS", "").strip().lower() in ("1", "true", "yes")


def main(
    data_file: Path = DATA_FILE,
    policy_file: Path = POLICY_FILE,
    run_discounts: bool = AWARD_DISCOUNTS,
) -> int:
    log.info("=== Gym billing starting ===")
    log.info("Data: %s | Policy: %s", data_file, policy_file)

    policy = load_policy(policy_file)
    store = MemberStore()
    try:
        result = load(store, data_file)
    except RecordIOError as e:
        log.error("Failed to load members: %s", e)
        return 1

    if result.created:
        log.info("Created empty member file %s", data_file)
    for err in result.errors:
        log.warning("Skipped %s", err)
    log.info("Members: %d", store.count())

    reminders = filter_at_or_below(store, policy.reminder_max_rating)
    log.info("Reminder letters (rating <= %d): %d", reminders.threshold, reminders.count)
    appreciations = filter_at_or_above(store, policy.appreciation_min_rating)
    log.info("Appreciation letters (rating >= %d): %d", appreciations.threshold, appreciations.count)

    if run_discounts:
        awarded = award_discounts(store, policy.discount_min_rating, policy.discount_percent)
        log.info(
            "Discounts awarded (rating >= %d, %s%%): %d",
            policy.discount_min_rating, policy.discount_percent, awarded,
        )
        try:
            save(store, data_file)
        except RecordIOError as e:
            log.error("Failed to save members: %s", e)
            return 1

    statement = billing_statement(store)
    log.info("Total monthly billing: %s", format_money(statement.total))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
