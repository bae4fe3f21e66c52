# ===== seed_availability.py =====
"""
Seed the default weekly schedule.

    python -m bookingdesk.seed_availability [--force]

Existing working hours are left alone unless --force is given.
"""
import argparse
import logging

from bookingdesk.config.database import SessionLocal, create_tables
from bookingdesk.models.availability import WorkingHours, DAY_NAMES
from bookingdesk.utils.my_logging import setup_logging

logger = logging.getLogger(__name__)

# (day_of_week, enabled, start, end); 0=Sunday
DEFAULT_WORKING_HOURS = [
    (1, True, "09:00", "17:00"),
    (2, True, "09:00", "17:00"),
    (3, True, "09:00", "17:00"),
    (4, True, "09:00", "17:00"),
    (5, True, "09:00", "17:00"),
    (6, True, "10:00", "14:00"),
    (0, False, "09:00", "17:00"),
]


def seed_working_hours(db, force: bool = False) -> int:
    """Insert the default schedule; returns the number of rows written"""
    existing = db.query(WorkingHours).count()
    if existing:
        if not force:
            logger.info(f"Found {existing} working hours entries, skipping seed (use --force to override)")
            return 0
        logger.info("Clearing existing working hours...")
        db.query(WorkingHours).delete()

    db.add_all([
        WorkingHours(
            day_of_week=day,
            day_name=DAY_NAMES[day],
            enabled=enabled,
            start_time=start,
            end_time=end,
        )
        for day, enabled, start, end in DEFAULT_WORKING_HOURS
    ])
    db.commit()
    logger.info("Seeded default working hours: Mon-Fri 09:00-17:00, Sat 10:00-14:00, Sun closed")
    return len(DEFAULT_WORKING_HOURS)


def main():
    parser = argparse.ArgumentParser(description="Seed default working hours")
    parser.add_argument("--force", action="store_true", help="Replace existing working hours")
    args = parser.parse_args()

    setup_logging()
    create_tables()
    db = SessionLocal()
    try:
        seed_working_hours(db, force=args.force)
    except Exception:
        db.rollback()
        logger.exception("Error seeding working hours")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
