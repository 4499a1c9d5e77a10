import pytest
from datetime import date, timedelta
from clinic import db
from clinic.models.booking import Booking
from clinic.models.customer import Customer
from clinic.models.review import Review


@pytest.fixture
def bookable(reservations, open_every_day, future_date, make_service):
    """Slots at 09:00, 10:00 and 11:00 on the future date and one active service"""
    reservations.generate_slots(future_date, future_date)
    return make_service(name='Massage', price='50.00', duration=60)


def booking_payload(slot_date, service_ids, **overrides):
    payload = {
        'date': slot_date.isoformat(),
        'time': '10:00',
        'name': 'Maria Silva',
        'phone': '(11) 99999-0000',
        'email': 'maria@gmail.com',
        'notes': 'First visit',
        'service_ids': service_ids
    }
    payload.update(overrides)
    return payload


def test_services_lists_active_only(client, make_service):
    make_service(name='Massage', category='therapy')
    make_service(name='Acupuncture', category='alternative')
    make_service(name='Old therapy', is_active=False)

    response = client.get('/api/services')

    assert response.status_code == 200
    names = [s['name'] for s in response.get_json()['services']]
    assert names == ['Acupuncture', 'Massage']


def test_slots_for_date(client, bookable, future_date):
    response = client.get(f'/api/slots?date={future_date.isoformat()}&duration=60')

    assert response.status_code == 200
    data = response.get_json()
    assert data['date'] == future_date.isoformat()
    assert data['duration'] == 60
    assert data['slots'] == [
        {'time': '09:00', 'available': True},
        {'time': '10:00', 'available': True},
        {'time': '11:00', 'available': True},
    ]


def test_slots_for_date_without_generation_is_empty(client):
    response = client.get('/api/slots?date=2030-01-07')

    assert response.status_code == 200
    assert response.get_json()['slots'] == []


def test_slots_reject_bad_date(client):
    response = client.get('/api/slots?date=07/01/2030')

    assert response.status_code == 400
    assert response.get_json()['error']['code'] == 'VALIDATION_ERROR'


def test_create_booking(client, bookable, future_date):
    response = client.post('/api/bookings', json=booking_payload(future_date, [bookable.id]))

    assert response.status_code == 201
    data = response.get_json()
    assert data['partial'] is False
    assert data['warnings'] == []
    assert data['total_price'] == 50.0
    assert data['total_duration_minutes'] == 60

    booking = db.session.get(Booking, data['id'])
    assert booking.notes == 'First visit'
    assert booking.customer.phone == '11999990000'
    assert booking.customer.email == 'maria@gmail.com'

    slots = client.get(f'/api/slots?date={future_date.isoformat()}').get_json()['slots']
    assert {'time': '10:00', 'available': False} in slots


def test_booking_taken_slot_returns_conflict(client, bookable, future_date):
    client.post('/api/bookings', json=booking_payload(future_date, [bookable.id]))

    response = client.post('/api/bookings', json=booking_payload(
        future_date, [bookable.id], name='Joana Lima', phone='11988887777'))

    assert response.status_code == 409
    error = response.get_json()['error']
    assert error['code'] == 'SLOT_UNAVAILABLE'
    assert error['title']
    assert error['message']
    assert Booking.query.count() == 1


def test_booking_requires_fields(client, bookable, future_date):
    response = client.post('/api/bookings', json={'date': future_date.isoformat(), 'time': '10:00'})

    assert response.status_code == 400
    error = response.get_json()['error']
    assert error['code'] == 'VALIDATION_ERROR'
    assert set(error['details']) >= {'name', 'phone', 'service_ids'}
    assert Customer.query.count() == 0


def test_booking_rejects_past_date(client, bookable):
    yesterday = date.today() - timedelta(days=1)

    response = client.post('/api/bookings', json=booking_payload(yesterday, [bookable.id]))

    assert response.status_code == 400
    assert 'date' in response.get_json()['error']['details']


def test_booking_rejects_short_phone(client, bookable, future_date):
    response = client.post('/api/bookings', json=booking_payload(future_date, [bookable.id], phone='12345'))

    assert response.status_code == 400
    assert 'phone' in response.get_json()['error']['details']


def test_booking_rejects_inactive_service(client, bookable, future_date, make_service):
    retired = make_service(name='Old therapy', is_active=False)

    response = client.post('/api/bookings', json=booking_payload(future_date, [bookable.id, retired.id]))

    assert response.status_code == 400
    assert 'service_ids' in response.get_json()['error']['details']
    assert Booking.query.count() == 0


def test_booking_rejects_non_object_body(client, bookable):
    response = client.post('/api/bookings', json=['not', 'an', 'object'])

    assert response.status_code == 400
    assert response.get_json()['error']['code'] == 'VALIDATION_ERROR'


def test_unknown_route_returns_json_error(client):
    response = client.get('/api/nothing-here')

    assert response.status_code == 404
    assert response.get_json()['error']['code'] == 'NOT_FOUND'


def test_review_once_per_reviewer(app, client):
    first = client.post('/api/reviews', json={'customer_name': 'Maria Silva', 'rating': 5,
                                              'comment': 'Wonderful massage.'})
    assert first.status_code == 201
    assert first.get_json()['approved'] is True
    assert client.get_cookie('reviewer_token') is not None

    second = client.post('/api/reviews', json={'customer_name': 'Maria S.', 'rating': 1,
                                               'comment': 'Changed my mind.'})
    assert second.status_code == 409
    assert second.get_json()['error']['code'] == 'DUPLICATE_REVIEW'

    # Another visitor has no token yet
    other = app.test_client().post('/api/reviews', json={'customer_name': 'Joana Lima', 'rating': 4,
                                                         'comment': 'Very relaxing.'})
    assert other.status_code == 201
    assert Review.query.count() == 2


def test_forged_reviewer_token_gets_a_new_identity(client):
    client.set_cookie('reviewer_token', 'forged-value')

    response = client.post('/api/reviews', json={'customer_name': 'Maria Silva', 'rating': 5,
                                                 'comment': 'Great.'})

    assert response.status_code == 201
    assert client.get_cookie('reviewer_token').value != 'forged-value'


def test_review_rating_must_be_in_range(client):
    response = client.post('/api/reviews', json={'customer_name': 'Maria Silva', 'rating': 6,
                                                 'comment': 'Too good.'})

    assert response.status_code == 400
    assert 'rating' in response.get_json()['error']['details']


def test_reviews_summary_counts_approved_only(app, client):
    db.session.add_all([
        Review('Maria Silva', 'a' * 32, 5, 'Wonderful.', approved=True),
        Review('Joana Lima', 'b' * 32, 4, 'Very good.', approved=True),
        Review('Pedro Alves', 'c' * 32, 1, 'Pending moderation.', approved=False),
    ])
    db.session.commit()

    data = client.get('/api/reviews').get_json()

    assert len(data['reviews']) == 2
    assert data['average_rating'] == 4.5
    assert data['distribution'] == {'1': 0, '2': 0, '3': 0, '4': 1, '5': 1}


def test_reviews_wait_for_approval_when_configured(app, client):
    app.config['REVIEWS_AUTO_APPROVE'] = False

    response = client.post('/api/reviews', json={'customer_name': 'Maria Silva', 'rating': 5,
                                                 'comment': 'Great.'})

    assert response.get_json()['approved'] is False
    assert client.get('/api/reviews').get_json()['reviews'] == []
