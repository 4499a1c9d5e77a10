from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required
from sqlalchemy import func
from sqlalchemy.orm import joinedload, selectinload
from clinic import db
from clinic.models.service import Service
from clinic.models.booking import Booking, BookingService, BOOKING_STATUSES
from clinic.models.customer import Customer
from clinic.models.availability import WorkingHours, DAY_NAMES, day_of_week
from clinic.models.review import Review
from clinic.models.audit import AuditLog
from clinic.admin.forms import ServiceForm, BookingStatusForm, WorkingHoursForm, SlotForm, GenerateSlotsForm
from clinic.booking.routes import parse_date_arg
from clinic.reservations import SlotReservationService
from clinic.reservations.errors import NotFound, ServiceInUse, ValidationFailed
from clinic.utils.audit import log_audit, actor_context
from clinic.utils.forms import json_formdata, validate_or_raise
from datetime import date, datetime, timedelta

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

def get_or_404(model, id, message):
    instance = db.session.get(model, id)
    if instance is None:
        raise NotFound(message)
    return instance

def service_values(service):
    return {
        'name': service.name,
        'description': service.description,
        'price': service.price,
        'duration_minutes': service.duration_minutes,
        'category': service.category,
        'is_active': service.is_active,
        'is_popular': service.is_popular
    }

# Services

@admin_bp.route('/services')
@login_required
def services():
    """List all clinic services, inactive ones included"""
    services_list = Service.query.order_by(Service.category, Service.name).all()
    return jsonify({'services': [s.to_dict() for s in services_list]})

@admin_bp.route('/services', methods=['POST'])
@login_required
def create_service():
    """Create a new clinic service"""
    form = validate_or_raise(ServiceForm(formdata=json_formdata()))

    service = Service(
        name=form.name.data,
        description=form.description.data or None,
        price=form.price.data,
        duration_minutes=form.duration_minutes.data,
        category=form.category.data,
        is_active=form.is_active.data,
        is_popular=form.is_popular.data
    )

    db.session.add(service)
    db.session.commit()

    log_audit('create', 'service', entity_id=service.id, details=service_values(service),
              context=actor_context())

    return jsonify(service.to_dict()), 201

@admin_bp.route('/services/<int:service_id>', methods=['PUT', 'PATCH'])
@login_required
def update_service(service_id):
    """Update an existing service; omitted fields keep their value"""
    service = get_or_404(Service, service_id, 'Service not found.')
    form = validate_or_raise(ServiceForm(formdata=json_formdata(), obj=service))

    # Store old values for audit log
    old_values = service_values(service)

    form.populate_obj(service)
    service.description = service.description or None
    db.session.commit()

    log_audit('update', 'service', entity_id=service.id, details={
        'old_values': old_values,
        'new_values': service_values(service)
    }, context=actor_context())

    return jsonify(service.to_dict())

@admin_bp.route('/services/<int:service_id>', methods=['DELETE'])
@login_required
def delete_service(service_id):
    """Delete a service that no booking refers to"""
    service = get_or_404(Service, service_id, 'Service not found.')

    if BookingService.query.filter_by(service_id=service.id).first() is not None:
        raise ServiceInUse()

    details = service_values(service)
    db.session.delete(service)
    db.session.commit()

    log_audit('delete', 'service', entity_id=service_id, details=details, context=actor_context())

    return '', 204

# Bookings

@admin_bp.route('/bookings')
@login_required
def bookings():
    """View bookings, optionally for one date and status"""
    query = Booking.query.options(
        joinedload(Booking.customer),
        selectinload(Booking.lines).joinedload(BookingService.service)
    )

    # Apply filters
    if request.args.get('date'):
        query = query.filter(Booking.booking_date == parse_date_arg())

    status_filter = request.args.get('status', 'all')
    if status_filter != 'all':
        if status_filter not in BOOKING_STATUSES:
            raise ValidationFailed(f'Unknown booking status: {status_filter}')
        query = query.filter(Booking.status == status_filter)

    bookings_list = query.order_by(Booking.booking_date, Booking.booking_time).all()

    return jsonify({'bookings': [b.to_dict() for b in bookings_list]})

@admin_bp.route('/bookings/<int:booking_id>/status', methods=['POST'])
@login_required
def update_booking_status(booking_id):
    """Update the status of a booking"""
    form = validate_or_raise(BookingStatusForm(formdata=json_formdata()))

    service = SlotReservationService(actor_context())
    booking = service.update_booking_status(booking_id, form.status.data)

    return jsonify(booking.to_dict())

# Working hours

@admin_bp.route('/working-hours')
@login_required
def working_hours():
    """Working hours for every weekday"""
    WorkingHours.ensure_defaults()
    hours = WorkingHours.query.order_by(WorkingHours.day_of_week).all()
    return jsonify({'working_hours': [h.to_dict() for h in hours]})

@admin_bp.route('/working-hours/<int:day>', methods=['PUT', 'PATCH'])
@login_required
def update_working_hours(day):
    """
    Update one weekday and regenerate the upcoming slots.

    Closing a day clears its times. Slots already generated keep their
    status; only missing ones are added.
    """
    if day not in DAY_NAMES:
        raise NotFound('Unknown day of week.')

    WorkingHours.ensure_defaults()
    hours = WorkingHours.query.filter_by(day_of_week=day).first()
    form = validate_or_raise(WorkingHoursForm(formdata=json_formdata(), obj=hours))

    old_hours = hours.to_dict()

    form.populate_obj(hours)
    if not hours.is_open:
        hours.open_time = None
        hours.close_time = None
        hours.break_start = None
        hours.break_end = None
    db.session.commit()

    log_audit('update', 'working_hours', entity_id=hours.id, details={
        'old_hours': old_hours,
        'new_hours': hours.to_dict()
    }, context=actor_context())

    # Regenerate slots for the coming days
    today = date.today()
    end_date = today + timedelta(days=current_app.config['SLOT_GENERATION_DAYS'])
    created = SlotReservationService(actor_context()).generate_slots(today, end_date)

    return jsonify({'working_hours': hours.to_dict(), 'slots_created': created})

# Slots

@admin_bp.route('/slots')
@login_required
def slots():
    """Every slot of a date with its status and booking customer"""
    slot_date = parse_date_arg()
    service = SlotReservationService(actor_context())
    details = service.get_all_slots(slot_date)
    return jsonify({
        'date': slot_date.isoformat(),
        'slots': [detail.to_dict() for detail in details]
    })

@admin_bp.route('/slots/block', methods=['POST'])
@login_required
def block_slot():
    form = validate_or_raise(SlotForm(formdata=json_formdata()))
    service = SlotReservationService(actor_context())

    blocked = service.block_slot(form.date.data, form.time.data, form.reason.data or None)

    if blocked:
        return jsonify({'blocked': True, 'message': 'Time blocked successfully.'})
    return jsonify({'blocked': False, 'message': 'Time was already blocked.'})

@admin_bp.route('/slots/unblock', methods=['POST'])
@login_required
def unblock_slot():
    form = validate_or_raise(SlotForm(formdata=json_formdata()))
    service = SlotReservationService(actor_context())

    unblocked = service.unblock_slot(form.date.data, form.time.data)

    if unblocked:
        return jsonify({'unblocked': True, 'message': 'Time released successfully.'})
    return jsonify({'unblocked': False, 'message': 'Time was already available.'})

@admin_bp.route('/slots/generate', methods=['POST'])
@login_required
def generate_slots():
    """Generate the missing slots for a date range"""
    form = validate_or_raise(GenerateSlotsForm(formdata=json_formdata()))
    service = SlotReservationService(actor_context())

    created = service.generate_slots(form.start_date.data, form.end_date.data)

    return jsonify({
        'start_date': form.start_date.data.isoformat(),
        'end_date': form.end_date.data.isoformat(),
        'slots_created': created
    })

# Reviews

@admin_bp.route('/reviews')
@login_required
def reviews():
    """All reviews, newest first, pending ones included"""
    reviews_list = Review.query.order_by(Review.created_at.desc(), Review.id.desc()).all()
    return jsonify({'reviews': [r.to_dict() for r in reviews_list]})

@admin_bp.route('/reviews/<int:review_id>/approve', methods=['POST'])
@login_required
def approve_review(review_id):
    review = get_or_404(Review, review_id, 'Review not found.')
    review.approved = True
    db.session.commit()

    log_audit('approve', 'review', entity_id=review.id, context=actor_context())

    return jsonify(review.to_dict())

@admin_bp.route('/reviews/<int:review_id>', methods=['DELETE'])
@login_required
def delete_review(review_id):
    review = get_or_404(Review, review_id, 'Review not found.')
    details = review.to_dict()
    db.session.delete(review)
    db.session.commit()

    log_audit('delete', 'review', entity_id=review_id, details=details, context=actor_context())

    return '', 204

# Audit trail

@admin_bp.route('/audit-logs')
@login_required
def audit_logs():
    """View system audit logs with filtering options"""
    # Get filter parameters
    action_filter = request.args.get('action', '')
    entity_type_filter = request.args.get('entity_type', '')
    date_from = request.args.get('date_from', '')
    date_to = request.args.get('date_to', '')

    # Base query
    query = AuditLog.query

    # Apply filters
    if action_filter:
        query = query.filter(AuditLog.action == action_filter)

    if entity_type_filter:
        query = query.filter(AuditLog.entity_type == entity_type_filter)

    try:
        if date_from:
            query = query.filter(AuditLog.timestamp >= datetime.strptime(date_from, '%Y-%m-%d'))
        if date_to:
            # Add one day to include the entire end date
            date_to_obj = datetime.strptime(date_to, '%Y-%m-%d') + timedelta(days=1)
            query = query.filter(AuditLog.timestamp < date_to_obj)
    except ValueError:
        raise ValidationFailed('Invalid date format. Use YYYY-MM-DD.')

    # Order by timestamp (newest first)
    query = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())

    # Pagination
    page = request.args.get('page', 1, type=int)
    per_page = 50  # Number of logs per page
    pagination = query.paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'audit_logs': [entry.to_dict() for entry in pagination.items],
        'page': pagination.page,
        'pages': pagination.pages,
        'total': pagination.total
    })

# Analytics

REPORT_PERIODS = ('today', 'week', 'month', 'lastMonth', 'total')

def period_bounds(period, today):
    """
    Date range [start, end) of a report period around today.

    Weeks run Sunday to Saturday. 'total' has no bounds and gives
    (None, None).
    """
    if period == 'today':
        return today, today + timedelta(days=1)
    if period == 'week':
        week_start = today - timedelta(days=day_of_week(today))
        return week_start, week_start + timedelta(days=7)

    month_start = today.replace(day=1)
    if period == 'month':
        next_month = (month_start + timedelta(days=32)).replace(day=1)
        return month_start, next_month
    if period == 'lastMonth':
        last_month_start = (month_start - timedelta(days=1)).replace(day=1)
        return last_month_start, month_start
    if period == 'total':
        return None, None
    raise ValidationFailed(f'Unknown report period: {period}',
                           details={'period': list(REPORT_PERIODS)})

@admin_bp.route('/analytics')
@login_required
def analytics():
    """Booking count, revenue and customers for a report period"""
    period = request.args.get('period', 'total')
    start, end = period_bounds(period, date.today())

    # Base query with date filter
    period_filter = []
    if start is not None:
        period_filter = [Booking.booking_date >= start, Booking.booking_date < end]
    base_query = Booking.query.filter(*period_filter)

    total_bookings = base_query.count()

    revenue_value = base_query.with_entities(func.sum(Booking.total_price)).scalar()
    total_revenue = float(revenue_value) if revenue_value is not None else 0.0

    # One row per customer with bookings in the period
    last_booking = func.max(Booking.booking_date).label('last_booking')
    customers_breakdown = db.session.query(
        Customer.id,
        Customer.name,
        Customer.phone,
        Customer.email,
        func.count(Booking.id).label('bookings_count'),
        func.sum(Booking.total_price).label('total_spent'),
        last_booking
    ).select_from(Booking).join(
        Customer, Customer.id == Booking.customer_id
    ).filter(*period_filter).group_by(
        Customer.id, Customer.name, Customer.phone, Customer.email
    ).order_by(last_booking.desc(), Customer.id).all()

    customers = [{
        'id': row.id,
        'name': row.name,
        'phone': row.phone,
        'email': row.email,
        'bookings_count': row.bookings_count,
        'total_spent': float(row.total_spent or 0),
        'last_booking': row.last_booking.isoformat()
    } for row in customers_breakdown]

    return jsonify({
        'period': period,
        'start_date': start.isoformat() if start else None,
        'end_date': (end - timedelta(days=1)).isoformat() if end else None,
        'total_bookings': total_bookings,
        'total_revenue': total_revenue,
        'customers': customers
    })
