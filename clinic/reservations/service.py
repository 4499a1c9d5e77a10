from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload
from clinic import db
from clinic.models.availability import Slot
from clinic.models.booking import Booking, BookingService, BOOKING_STATUSES, STATUS_CONFIRMED
from clinic.models.customer import Customer, normalize_phone
from clinic.models.service import Service
from clinic.reservations import procedures
from clinic.reservations.errors import (ReservationError, SlotUnavailable, DuplicateBooking, CustomerError,
                                        CustomerSearchError, BookingError, SlotError, InternalError,
                                        ValidationFailed, NotFound)
from clinic.utils.audit import ActorContext, log_audit

# Partial success warnings on a created booking
WARNING_LINE_ITEMS_NOT_SAVED = 'LINE_ITEMS_NOT_SAVED'

@dataclass(frozen=True)
class TimeSlot:
    time: time
    available: bool

    def to_dict(self):
        return {'time': self.time.strftime('%H:%M'), 'available': self.available}


@dataclass(frozen=True)
class SlotDetail:
    time: time
    status: str
    reason: Optional[str] = None
    booking_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None

    def to_dict(self):
        result = {
            'time': self.time.strftime('%H:%M'),
            'status': self.status,
            'reason': self.reason,
            'booking_id': self.booking_id
        }
        if self.booking_id is not None:
            result['customer'] = {'name': self.customer_name, 'phone': self.customer_phone}
        return result


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    phone: str
    email: Optional[str] = None


@dataclass(frozen=True)
class ServiceLine:
    """A selected service with the price charged at booking time"""
    service_id: int
    price: Decimal
    duration_minutes: int


@dataclass(frozen=True)
class BookingRequest:
    date: date
    time: time
    customer: CustomerInfo
    lines: Sequence[ServiceLine]
    notes: Optional[str] = None

    @property
    def total_price(self):
        return sum((line.price for line in self.lines), Decimal('0'))

    @property
    def total_duration(self):
        return sum(line.duration_minutes for line in self.lines)


@dataclass(frozen=True)
class BookingResult:
    booking_id: int
    customer_id: int
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def partial(self):
        return bool(self.warnings)

    def to_dict(self):
        return {
            'id': self.booking_id,
            'customer_id': self.customer_id,
            'partial': self.partial,
            'warnings': list(self.warnings)
        }


class SlotReservationService:
    """
    Slot availability and booking creation.

    One instance serves one request; the actor context is only used for
    the audit trail.
    """

    def __init__(self, context=None):
        self.context = context or ActorContext()

    # Queries

    def get_available_slots(self, slot_date, duration=30) -> List[TimeSlot]:
        """
        Slots stored for a date with their availability, ordered by time.

        duration is informational; no slot merging happens here. Dates
        without generated slots give an empty list.
        """
        try:
            slots = Slot.query.filter_by(date=slot_date).order_by(Slot.time_slot).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error fetching slots for {slot_date}: {e}")
            raise SlotError() from e

        time_slots = [TimeSlot(time=slot.time_slot, available=slot.is_available()) for slot in slots]
        current_app.logger.debug(
            f"{sum(1 for s in time_slots if s.available)} available slots on {slot_date} "
            f"(requested duration {duration} min)"
        )
        return time_slots

    def get_all_slots(self, slot_date) -> List[SlotDetail]:
        """Full slot status for a date, with the customer of booked slots"""
        try:
            slots = (
                Slot.query
                .options(joinedload(Slot.booking).joinedload(Booking.customer))
                .filter_by(date=slot_date)
                .order_by(Slot.time_slot)
                .all()
            )
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error fetching slot details for {slot_date}: {e}")
            raise SlotError() from e

        details = []
        for slot in slots:
            customer = slot.booking.customer if slot.booking else None
            details.append(SlotDetail(
                time=slot.time_slot,
                status=slot.status,
                reason=slot.blocked_reason,
                booking_id=slot.booking_id,
                customer_name=customer.name if customer else None,
                customer_phone=customer.phone if customer else None
            ))
        return details

    # Booking

    def build_lines(self, service_ids) -> List[ServiceLine]:
        """Snapshot price and duration of the selected active services"""
        if not service_ids:
            raise ValidationFailed('Select at least one service.')

        services = Service.query.filter(Service.id.in_(service_ids), Service.is_active.is_(True)).all()
        by_id = {service.id: service for service in services}
        missing = [service_id for service_id in service_ids if service_id not in by_id]
        if missing:
            raise ValidationFailed('Some selected services are not available.',
                                   details={'service_ids': missing})

        return [
            ServiceLine(service_id=service_id, price=by_id[service_id].price,
                        duration_minutes=by_id[service_id].duration_minutes)
            for service_id in service_ids
        ]

    def create_booking(self, booking_request: BookingRequest) -> BookingResult:
        """
        Reserve a slot and record the booking.

        Raises a ReservationError subclass on failure. A booking whose
        service lines could not be saved is still returned, with a
        warning on the result.
        """
        try:
            return self._create_booking(booking_request)
        except ReservationError:
            raise
        except Exception as e:
            db.session.rollback()
            current_app.logger.exception(f"Unexpected error creating booking: {e}")
            raise InternalError() from e

    def _create_booking(self, req):
        if not req.lines:
            raise ValidationFailed('Select at least one service.')

        current_app.logger.info(f"Creating booking for {req.date} {req.time}")

        # Step 1: availability check
        try:
            existing_slot = Slot.query.filter_by(date=req.date, time_slot=req.time).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error checking slot {req.date} {req.time}: {e}")
            raise SlotError() from e

        if existing_slot is not None and not existing_slot.is_available():
            current_app.logger.info(f"Slot {req.date} {req.time} is {existing_slot.status}")
            raise SlotUnavailable()

        # Step 2: find or create the customer
        customer_id = self._resolve_customer(req.customer)

        # Step 3: booking row and slot claim commit together
        booking = Booking(
            customer_id=customer_id,
            booking_date=req.date,
            booking_time=req.time,
            total_price=req.total_price,
            total_duration_minutes=req.total_duration,
            notes=req.notes or None,
            status=STATUS_CONFIRMED
        )
        try:
            db.session.add(booking)
            db.session.flush()
            booking_id = booking.id
            procedures.claim_slot(req.date, req.time, booking_id)
            db.session.commit()
        except ReservationError:
            db.session.rollback()
            current_app.logger.info(f"Lost the race for slot {req.date} {req.time}")
            raise
        except IntegrityError as e:
            db.session.rollback()
            current_app.logger.info(f"Duplicate booking for {req.date} {req.time}: {e.orig}")
            raise DuplicateBooking() from e
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error creating booking: {e}")
            raise BookingError() from e

        current_app.logger.info(f"Booking {booking_id} created for customer {customer_id}")

        # Step 4: service lines, a failure here leaves the booking in place
        warnings = []
        try:
            for line in req.lines:
                db.session.add(BookingService(booking_id=booking_id, service_id=line.service_id, price=line.price))
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error adding services to booking {booking_id}: {e}")
            warnings.append(WARNING_LINE_ITEMS_NOT_SAVED)

        log_audit('create', 'booking', entity_id=booking_id, details={
            'date': req.date,
            'time': req.time,
            'customer_id': customer_id,
            'service_ids': [line.service_id for line in req.lines],
            'total_price': req.total_price,
            'warnings': warnings
        }, context=self.context)

        return BookingResult(booking_id=booking_id, customer_id=customer_id, warnings=tuple(warnings))

    def _resolve_customer(self, info):
        phone = normalize_phone(info.phone)
        if not phone:
            raise CustomerError('A phone number is required.')

        try:
            existing = Customer.query.filter_by(phone=phone).order_by(Customer.id).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error searching customer: {e}")
            raise CustomerSearchError() from e

        if existing is not None:
            current_app.logger.debug(f"Existing customer found: {existing.id}")
            return existing.id

        try:
            customer = Customer(name=info.name, phone=phone, email=info.email)
            db.session.add(customer)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error creating customer: {e}")
            raise CustomerError() from e

        current_app.logger.debug(f"New customer created: {customer.id}")
        return customer.id

    def update_booking_status(self, booking_id, status):
        """Set any status on a booking; the slot stays as it is"""
        if status not in BOOKING_STATUSES:
            raise ValidationFailed(f'Unknown booking status: {status}')

        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFound('Booking not found.')

        old_status = booking.status
        booking.status = status
        db.session.commit()

        log_audit('update_status', 'booking', entity_id=booking.id, details={
            'old_status': old_status,
            'new_status': status
        }, context=self.context)
        return booking

    # Slot administration

    def block_slot(self, slot_date, slot_time, reason=None):
        blocked = procedures.block_slot(slot_date, slot_time, reason)
        if blocked:
            log_audit('block', 'slot', details={'date': slot_date, 'time': slot_time, 'reason': reason},
                      context=self.context)
        return blocked

    def unblock_slot(self, slot_date, slot_time):
        unblocked = procedures.unblock_slot(slot_date, slot_time)
        if unblocked:
            log_audit('unblock', 'slot', details={'date': slot_date, 'time': slot_time},
                      context=self.context)
        return unblocked

    def generate_slots(self, start_date, end_date):
        created = procedures.generate_slots_for_period(start_date, end_date)
        log_audit('generate', 'slot', details={
            'start_date': start_date,
            'end_date': end_date,
            'created': created
        }, context=self.context)
        return created
