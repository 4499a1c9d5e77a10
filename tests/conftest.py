import pytest
from datetime import date, time, timedelta
from decimal import Decimal
from clinic import create_app, db
from clinic.models.user import User
from clinic.models.service import Service
from clinic.models.availability import WorkingHours, MONDAY, DAY_NAMES
from clinic.reservations import SlotReservationService, BookingRequest, CustomerInfo

# 2024-06-10 is a Monday
MONDAY_DATE = date(2024, 6, 10)

ADMIN_EMAIL = 'admin@serenityclinic.com'
ADMIN_PASSWORD = 'correct-horse-battery'

@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'WTF_CSRF_ENABLED': False,
        'SLOT_GENERATION_DAYS': 14,
        'REVIEWS_AUTO_APPROVE': True,
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def admin_client(app, client):
    user = User(email=ADMIN_EMAIL, first_name='Ana', last_name='Souza', password=ADMIN_PASSWORD)
    db.session.add(user)
    db.session.commit()
    response = client.post('/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return client

@pytest.fixture
def reservations(app):
    return SlotReservationService()

@pytest.fixture
def make_service(app):
    def _make(name='Massage', price='50.00', duration=30, category='therapy', **kwargs):
        service = Service(name=name, price=Decimal(price), duration_minutes=duration, category=category, **kwargs)
        db.session.add(service)
        db.session.commit()
        return service
    return _make

@pytest.fixture
def monday_hours(app):
    """Monday 08:00-18:00, no break, 30 minute slots"""
    hours = WorkingHours(day_of_week=MONDAY, is_open=True, open_time=time(8, 0),
                         close_time=time(18, 0), slot_duration=30)
    db.session.add(hours)
    db.session.commit()
    return hours

@pytest.fixture
def open_every_day(app):
    """09:00-12:00 with 60 minute slots on every weekday"""
    for day in DAY_NAMES:
        db.session.add(WorkingHours(day_of_week=day, is_open=True, open_time=time(9, 0),
                                    close_time=time(12, 0), slot_duration=60))
    db.session.commit()

@pytest.fixture
def future_date():
    return date.today() + timedelta(days=7)

@pytest.fixture
def book(reservations):
    """Create a booking through the reservation service"""
    def _book(slot_date, slot_time, services, phone='11999990000', name='Maria Silva', email=None, notes=None):
        request = BookingRequest(
            date=slot_date,
            time=slot_time,
            customer=CustomerInfo(name=name, phone=phone, email=email),
            lines=reservations.build_lines([s.id for s in services]),
            notes=notes
        )
        return reservations.create_booking(request)
    return _book
