"""Admin operations on the scheduling rules read by the availability engine"""
import logging
from typing import List, Optional, Type

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookingdesk.core.exceptions import NotFoundError
from bookingdesk.models.availability import (
    BlackoutDate,
    BreakTime,
    DAY_NAMES,
    RecurringPattern,
    WorkingHours,
)
from bookingdesk.schemas.availability import (
    BlackoutDateCreate,
    BlackoutDateUpdate,
    BreakTimeCreate,
    BreakTimeUpdate,
    RecurringPatternCreate,
    RecurringPatternUpdate,
    WorkingHoursUpdate,
    WorkingHoursUpsert,
)

logger = logging.getLogger(__name__)


class RuleAdminService:
    """Create, list, update and delete scheduling rules"""

    # Working hours -----------------------------------------------------

    @staticmethod
    def list_working_hours(db: Session) -> List[WorkingHours]:
        return db.query(WorkingHours).order_by(WorkingHours.day_of_week).all()

    @staticmethod
    def upsert_working_hours(db: Session, data: WorkingHoursUpsert) -> WorkingHours:
        """Create or replace the hours of one weekday"""
        hours = RuleAdminService._find_working_hours(db, data.day_of_week)
        if hours is None:
            try:
                return RuleAdminService._save_working_hours(db, WorkingHours(day_of_week=data.day_of_week), data)
            except IntegrityError:
                # Another request created the weekday first; overwrite it instead
                db.rollback()
                logger.info(f"Working hours for day {data.day_of_week} created concurrently, updating instead")
                hours = RuleAdminService._find_working_hours(db, data.day_of_week)
                if hours is None:
                    raise
        return RuleAdminService._save_working_hours(db, hours, data)

    @staticmethod
    def update_working_hours(db: Session, day_of_week: int, data: WorkingHoursUpdate) -> WorkingHours:
        """Change some fields of an existing weekday"""
        hours = RuleAdminService._find_working_hours(db, day_of_week)
        if not hours:
            raise NotFoundError(f"Working hours not found for day {day_of_week}")
        merged = RuleAdminService._merge(hours, data, WorkingHoursUpsert)
        return RuleAdminService._save_working_hours(db, hours, merged)

    @staticmethod
    def delete_working_hours(db: Session, day_of_week: int) -> None:
        hours = RuleAdminService._find_working_hours(db, day_of_week)
        if not hours:
            raise NotFoundError(f"Working hours not found for day {day_of_week}")
        db.delete(hours)
        db.commit()
        logger.info(f"Deleted working hours for day {day_of_week}")

    @staticmethod
    def _find_working_hours(db: Session, day_of_week: int) -> Optional[WorkingHours]:
        return db.query(WorkingHours).filter_by(day_of_week=day_of_week).first()

    @staticmethod
    def _save_working_hours(db: Session, hours: WorkingHours, data: WorkingHoursUpsert) -> WorkingHours:
        if hours.id is None:
            db.add(hours)
        hours.day_name = DAY_NAMES[data.day_of_week]
        hours.enabled = data.enabled
        hours.start_time = data.start_time
        hours.end_time = data.end_time

        db.commit()
        db.refresh(hours)
        logger.info(f"Working hours for {hours.day_name} set to {hours.start_time}-{hours.end_time} (enabled={hours.enabled})")
        return hours

    # Breaks, blackouts, recurring patterns -----------------------------

    @staticmethod
    def list_breaks(db: Session) -> List[BreakTime]:
        return db.query(BreakTime).order_by(BreakTime.start_time, BreakTime.id).all()

    @staticmethod
    def create_break(db: Session, data: BreakTimeCreate) -> BreakTime:
        return RuleAdminService._create(db, BreakTime(**data.model_dump()))

    @staticmethod
    def update_break(db: Session, break_id: int, data: BreakTimeUpdate) -> BreakTime:
        return RuleAdminService._update(db, BreakTime, break_id, data, BreakTimeCreate)

    @staticmethod
    def list_blackout_dates(db: Session, active_only: bool = False) -> List[BlackoutDate]:
        query = db.query(BlackoutDate)
        if active_only:
            query = query.filter(BlackoutDate.is_active == True)
        return query.order_by(BlackoutDate.start_date).all()

    @staticmethod
    def create_blackout_date(db: Session, data: BlackoutDateCreate) -> BlackoutDate:
        return RuleAdminService._create(db, BlackoutDate(**data.model_dump()))

    @staticmethod
    def update_blackout_date(db: Session, blackout_id: int, data: BlackoutDateUpdate) -> BlackoutDate:
        return RuleAdminService._update(db, BlackoutDate, blackout_id, data, BlackoutDateCreate)

    @staticmethod
    def list_recurring_patterns(db: Session, active_only: bool = False) -> List[RecurringPattern]:
        query = db.query(RecurringPattern)
        if active_only:
            query = query.filter(RecurringPattern.is_active == True)
        return query.order_by(RecurringPattern.id.desc()).all()

    @staticmethod
    def create_recurring_pattern(db: Session, data: RecurringPatternCreate) -> RecurringPattern:
        return RuleAdminService._create(db, RecurringPattern(**data.model_dump()))

    @staticmethod
    def update_recurring_pattern(db: Session, pattern_id: int, data: RecurringPatternUpdate) -> RecurringPattern:
        return RuleAdminService._update(db, RecurringPattern, pattern_id, data, RecurringPatternCreate)

    @staticmethod
    def delete_rule(db: Session, model: Type, rule_id: int) -> None:
        rule = RuleAdminService._get_rule(db, model, rule_id)
        description = repr(rule)
        db.delete(rule)
        db.commit()
        logger.info(f"Deleted {description}")

    @staticmethod
    def _get_rule(db: Session, model: Type, rule_id: int):
        rule = db.query(model).filter(model.id == rule_id).first()
        if not rule:
            raise NotFoundError(f"{model.__name__} {rule_id} not found")
        return rule

    @staticmethod
    def _create(db: Session, rule):
        db.add(rule)
        db.commit()
        db.refresh(rule)
        logger.info(f"Created {rule!r}")
        return rule

    @staticmethod
    def _update(db: Session, model: Type, rule_id: int, data: BaseModel, schema: Type[BaseModel]):
        rule = RuleAdminService._get_rule(db, model, rule_id)
        merged = RuleAdminService._merge(rule, data, schema)
        for field, value in merged.model_dump().items():
            setattr(rule, field, value)
        db.commit()
        db.refresh(rule)
        logger.info(f"Updated {rule!r}: {sorted(data.model_dump(exclude_unset=True))}")
        return rule

    @staticmethod
    def _merge(rule, data: BaseModel, schema: Type[BaseModel]) -> BaseModel:
        """
        Overlay the fields set on a partial update onto the stored record and
        validate the result as a whole, so cross-field rules (start before end,
        date order) still hold. Raises pydantic's ValidationError.
        """
        current = {field: getattr(rule, field) for field in schema.model_fields}
        current.update(data.model_dump(exclude_unset=True))
        return schema.model_validate(current)
