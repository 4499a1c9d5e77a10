import pytest
from datetime import date, time, timedelta
from clinic import db
from clinic.models.availability import (WorkingHours, Slot, SLOT_AVAILABLE, SLOT_BLOCKED, SLOT_BOOKED,
                                        MONDAY, SUNDAY, SATURDAY, day_of_week)
from clinic.reservations.errors import ValidationFailed
from tests.conftest import MONDAY_DATE


def test_day_of_week_uses_sunday_as_zero():
    assert day_of_week(date(2024, 6, 9)) == SUNDAY
    assert day_of_week(MONDAY_DATE) == MONDAY
    assert day_of_week(date(2024, 6, 15)) == SATURDAY


def test_slot_times_skip_break():
    hours = WorkingHours(day_of_week=MONDAY, is_open=True, open_time=time(9, 0), close_time=time(13, 0),
                         break_start=time(11, 0), break_end=time(12, 0), slot_duration=60)
    assert hours.slot_times() == [time(9, 0), time(10, 0), time(12, 0)]


def test_slot_times_empty_when_closed():
    hours = WorkingHours(day_of_week=SUNDAY, is_open=False)
    assert hours.slot_times() == []


def test_generated_monday_has_twenty_available_slots(reservations, monday_hours):
    created = reservations.generate_slots(MONDAY_DATE, MONDAY_DATE)

    slots = reservations.get_available_slots(MONDAY_DATE, 30)
    assert created == 20
    assert len(slots) == 20
    assert all(slot.available for slot in slots)
    assert slots[0].time == time(8, 0)
    assert slots[1].time == time(8, 30)
    assert slots[-1].time == time(17, 30)


def test_dates_without_generated_slots_are_empty(reservations, monday_hours):
    # Working hours alone do not make slots
    assert reservations.get_available_slots(MONDAY_DATE) == []


def test_days_without_working_hours_get_no_slots(reservations, monday_hours):
    sunday = MONDAY_DATE - timedelta(days=1)
    created = reservations.generate_slots(sunday, MONDAY_DATE + timedelta(days=1))

    assert created == 20
    assert Slot.query.filter_by(date=sunday).count() == 0


def test_regeneration_preserves_existing_status(reservations, monday_hours, make_service, book):
    reservations.generate_slots(MONDAY_DATE, MONDAY_DATE)
    service = make_service()
    book(MONDAY_DATE, time(10, 0), [service])
    reservations.block_slot(MONDAY_DATE, time(14, 0), 'maintenance')

    created = reservations.generate_slots(MONDAY_DATE, MONDAY_DATE + timedelta(days=7))

    # Only the following Monday is new
    assert created == 20
    booked = Slot.query.filter_by(date=MONDAY_DATE, time_slot=time(10, 0)).one()
    blocked = Slot.query.filter_by(date=MONDAY_DATE, time_slot=time(14, 0)).one()
    assert booked.status == SLOT_BOOKED
    assert booked.booking_id is not None
    assert blocked.status == SLOT_BLOCKED
    assert blocked.blocked_reason == 'maintenance'
    assert Slot.query.filter_by(date=MONDAY_DATE).count() == 20


def test_regeneration_fills_new_times_after_hours_change(reservations, monday_hours):
    reservations.generate_slots(MONDAY_DATE, MONDAY_DATE)

    monday_hours.close_time = time(19, 0)
    db.session.commit()
    created = reservations.generate_slots(MONDAY_DATE, MONDAY_DATE)

    assert created == 2
    times = [slot.time for slot in reservations.get_available_slots(MONDAY_DATE)]
    assert times[-2:] == [time(18, 0), time(18, 30)]


def test_generate_rejects_reversed_range(reservations, monday_hours):
    with pytest.raises(ValidationFailed):
        reservations.generate_slots(MONDAY_DATE, MONDAY_DATE - timedelta(days=1))


def test_ensure_defaults_creates_every_weekday(app):
    created = WorkingHours.ensure_defaults()

    assert len(created) == 7
    hours = WorkingHours.get_working_hours()
    assert hours[MONDAY].is_open
    assert hours[MONDAY].slot_times()[0] == time(9, 0)
    assert not hours[SUNDAY].is_open
    assert WorkingHours.ensure_defaults() == []


def test_generated_rows_are_available(reservations, monday_hours):
    reservations.generate_slots(MONDAY_DATE, MONDAY_DATE)
    statuses = {slot.status for slot in Slot.query.filter_by(date=MONDAY_DATE)}
    assert statuses == {SLOT_AVAILABLE}


def test_generate_caps_span(reservations, monday_hours):
    # A full year, inclusive of both ends
    year_end = MONDAY_DATE + timedelta(days=365)
    assert reservations.generate_slots(MONDAY_DATE, year_end) > 0

    with pytest.raises(ValidationFailed) as excinfo:
        reservations.generate_slots(MONDAY_DATE, MONDAY_DATE + timedelta(days=366))
    assert '366 days' in excinfo.value.message
    assert Slot.query.filter(Slot.date > year_end).count() == 0
