from flask import Blueprint, request, jsonify
from datetime import datetime
from clinic.models.service import Service
from clinic.booking.forms import BookingForm
from clinic.reservations import SlotReservationService, BookingRequest, CustomerInfo
from clinic.reservations.errors import ValidationFailed
from clinic.utils.audit import actor_context
from clinic.utils.forms import json_formdata, validate_or_raise

booking_bp = Blueprint('booking', __name__, url_prefix='/api')

def parse_date_arg(name='date'):
    value = request.args.get(name, '')
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise ValidationFailed(f'Invalid {name}. Use YYYY-MM-DD.')

@booking_bp.route('/slots')
def available_slots():
    """Slots of a date with their availability"""
    slot_date = parse_date_arg()
    duration = request.args.get('duration', 30, type=int)
    
    service = SlotReservationService(actor_context())
    slots = service.get_available_slots(slot_date, duration)
    
    return jsonify({
        'date': slot_date.isoformat(),
        'duration': duration,
        'slots': [slot.to_dict() for slot in slots]
    })

@booking_bp.route('/bookings', methods=['POST'])
def create_booking():
    """Book the selected services at a date and time"""
    form = BookingForm(formdata=json_formdata())
    
    # Populate form choices for services
    services = Service.query.filter_by(is_active=True).all()
    form.service_ids.choices = [(s.id, s.name) for s in services]
    
    validate_or_raise(form)
    
    service = SlotReservationService(actor_context())
    booking_request = BookingRequest(
        date=form.date.data,
        time=form.time.data,
        customer=CustomerInfo(
            name=form.name.data.strip(),
            phone=form.phone.data,
            email=form.email.data or None
        ),
        lines=service.build_lines(form.service_ids.data),
        notes=form.notes.data or None
    )
    result = service.create_booking(booking_request)
    
    response = result.to_dict()
    response['total_price'] = float(booking_request.total_price)
    response['total_duration_minutes'] = booking_request.total_duration
    return jsonify(response), 201
