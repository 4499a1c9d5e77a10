import threading
import pytest
from datetime import time
from decimal import Decimal
from clinic import create_app, db
from clinic.models.availability import Slot, WorkingHours, MONDAY, SLOT_BOOKED
from clinic.models.booking import Booking
from clinic.models.service import Service
from clinic.reservations import SlotReservationService, BookingRequest, CustomerInfo, ReservationError
from tests.conftest import MONDAY_DATE

ATTEMPTS = 8


@pytest.fixture
def file_app(tmp_path):
    """App on a file database so every thread gets its own connection"""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{tmp_path / "race.db"}',
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'check_same_thread': False, 'timeout': 30}},
        'WTF_CSRF_ENABLED': False,
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.mark.parametrize('pregenerated', [True, False])
def test_concurrent_bookings_have_one_winner(file_app, pregenerated):
    service = SlotReservationService()
    db.session.add(WorkingHours(day_of_week=MONDAY, is_open=True, open_time=time(8, 0),
                                close_time=time(18, 0), slot_duration=30))
    massage = Service(name='Massage', price=Decimal('50.00'), duration_minutes=30)
    db.session.add(massage)
    db.session.commit()
    if pregenerated:
        service.generate_slots(MONDAY_DATE, MONDAY_DATE)
    lines = service.build_lines([massage.id])
    db.session.close()

    barrier = threading.Barrier(ATTEMPTS)
    outcomes = []
    outcomes_lock = threading.Lock()

    def attempt(n):
        request = BookingRequest(date=MONDAY_DATE, time=time(10, 0),
                                 customer=CustomerInfo(name=f'Customer {n}', phone=f'1199999{n:04d}'),
                                 lines=lines)
        with file_app.app_context():
            barrier.wait()
            try:
                result = SlotReservationService().create_booking(request)
                outcome = ('ok', result.booking_id)
            except ReservationError as e:
                outcome = (e.code, None)
            except Exception as e:
                outcome = (repr(e), None)
            finally:
                db.session.remove()
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt, args=(n,)) for n in range(ATTEMPTS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    winners = [booking_id for code, booking_id in outcomes if code == 'ok']
    losers = [code for code, _ in outcomes if code != 'ok']
    assert len(winners) == 1
    assert set(losers) <= {'SLOT_UNAVAILABLE', 'DUPLICATE_BOOKING'}
    assert len(losers) == ATTEMPTS - 1

    db.session.expire_all()
    assert Booking.query.count() == 1
    slot = Slot.query.filter_by(date=MONDAY_DATE, time_slot=time(10, 0)).one()
    assert slot.status == SLOT_BOOKED
    assert slot.booking_id == winners[0]
