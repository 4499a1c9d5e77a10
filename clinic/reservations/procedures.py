"""
Atomic slot procedures.

Every status change on an existing slot is a single conditional UPDATE so
two concurrent callers can never both win. Rows that do not exist yet are
inserted and the unique (date, time_slot) constraint decides the race.
"""
from datetime import timedelta
from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from clinic import db
from clinic.models.availability import (Slot, WorkingHours, SLOT_AVAILABLE, SLOT_BLOCKED, SLOT_BOOKED,
                                        DEFAULT_BLOCK_REASON, day_of_week)
from clinic.reservations.errors import SlotUnavailable, DuplicateBooking, ValidationFailed

# Longest span, in days, one generation request may cover
MAX_GENERATION_DAYS = 366

def _find_slot(slot_date, slot_time):
    return Slot.query.filter_by(date=slot_date, time_slot=slot_time).first()

def _transition(slot_date, slot_time, from_status, **values):
    """Move a slot out of from_status; returns True when a row changed"""
    stmt = (
        update(Slot)
        .where(Slot.date == slot_date, Slot.time_slot == slot_time, Slot.status == from_status)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).rowcount == 1

def block_slot(slot_date, slot_time, reason=None, _retry=True):
    """
    Block a slot unless it is blocked already.

    Returns True when the slot was blocked by this call and False when it
    was already blocked (the stored reason is left alone). Booked slots
    cannot be blocked.
    """
    reason = reason or DEFAULT_BLOCK_REASON

    if _transition(slot_date, slot_time, SLOT_AVAILABLE,
                   status=SLOT_BLOCKED, blocked_reason=reason, booking_id=None):
        db.session.commit()
        return True

    existing = _find_slot(slot_date, slot_time)
    if existing is None:
        db.session.add(Slot(slot_date, slot_time, status=SLOT_BLOCKED, blocked_reason=reason))
        try:
            db.session.commit()
            return True
        except IntegrityError:
            # Row created concurrently, decide again against it
            db.session.rollback()
            if not _retry:
                raise
            return block_slot(slot_date, slot_time, reason, _retry=False)

    if existing.status == SLOT_BLOCKED:
        return False
    raise SlotUnavailable('This time is booked and cannot be blocked.')

def unblock_slot(slot_date, slot_time):
    """
    Make a blocked slot available again.

    Returns False when the slot was not blocked (missing rows count as
    available already).
    """
    if _transition(slot_date, slot_time, SLOT_BLOCKED,
                   status=SLOT_AVAILABLE, blocked_reason=None, booking_id=None):
        db.session.commit()
        return True
    return False

def claim_slot(slot_date, slot_time, booking_id):
    """
    Mark a slot as booked by booking_id inside the caller's transaction.

    The caller commits or rolls back. Raises SlotUnavailable when the slot
    stopped being available and DuplicateBooking when another request
    created the row first.
    """
    if _transition(slot_date, slot_time, SLOT_AVAILABLE,
                   status=SLOT_BOOKED, booking_id=booking_id, blocked_reason=None):
        return

    if _find_slot(slot_date, slot_time) is not None:
        raise SlotUnavailable()

    db.session.add(Slot(slot_date, slot_time, status=SLOT_BOOKED, booking_id=booking_id))
    try:
        db.session.flush()
    except IntegrityError as e:
        raise DuplicateBooking() from e

def _fill_day(day, times):
    existing = {row.time_slot for row in db.session.query(Slot.time_slot).filter(Slot.date == day)}
    created = 0
    for slot_time in times:
        if slot_time not in existing:
            db.session.add(Slot(day, slot_time))
            created += 1
    db.session.commit()
    return created

def generate_slots_for_period(start_date, end_date):
    """
    Create the missing available slots between two dates, inclusive.

    Times come from each weekday's working hours. Rows that already exist
    keep their status, so booked and blocked slots survive regeneration.
    Returns the number of rows created.
    """
    if end_date < start_date:
        raise ValidationFailed('The end date must not be before the start date.')
    if (end_date - start_date).days >= MAX_GENERATION_DAYS:
        raise ValidationFailed(f'Slots can be generated for at most {MAX_GENERATION_DAYS} days at a time.')

    hours = WorkingHours.get_working_hours()
    created = 0
    day = start_date
    while day <= end_date:
        working_hours = hours.get(day_of_week(day))
        times = working_hours.slot_times() if working_hours else []
        if times:
            try:
                created += _fill_day(day, times)
            except IntegrityError:
                # Another generation run filled part of this day
                db.session.rollback()
                created += _fill_day(day, times)
        day += timedelta(days=1)

    current_app.logger.info(f"Generated {created} slots from {start_date} to {end_date}")
    return created
