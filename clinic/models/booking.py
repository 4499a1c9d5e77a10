from clinic import db
from datetime import datetime

# Booking status constants
STATUS_PENDING = 'pending'
STATUS_CONFIRMED = 'confirmed'
STATUS_CANCELLED = 'cancelled'
STATUS_COMPLETED = 'completed'
STATUS_NO_SHOW = 'no_show'

BOOKING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELLED, STATUS_COMPLETED, STATUS_NO_SHOW)

class Booking(db.Model):
    __tablename__ = 'bookings'
    
    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False)
    booking_date = db.Column(db.Date, nullable=False)
    booking_time = db.Column(db.Time, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_CONFIRMED)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_duration_minutes = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Second guard against double booking behind the slot table
    __table_args__ = (
        db.UniqueConstraint('booking_date', 'booking_time', name='uq_booking_date_time'),
    )
    
    lines = db.relationship('BookingService', backref='booking', lazy='select',
                            cascade='all, delete-orphan')
    
    def __init__(self, customer_id, booking_date, booking_time, total_price, total_duration_minutes,
                 notes=None, status=STATUS_CONFIRMED):
        self.customer_id = customer_id
        self.booking_date = booking_date
        self.booking_time = booking_time
        self.total_price = total_price
        self.total_duration_minutes = total_duration_minutes
        self.notes = notes
        self.status = status
    
    def is_active(self):
        return self.status in (STATUS_PENDING, STATUS_CONFIRMED)
    
    def to_dict(self):
        return {
            'id': self.id,
            'customer': self.customer.to_dict() if self.customer else None,
            'date': self.booking_date.isoformat(),
            'time': self.booking_time.strftime('%H:%M'),
            'status': self.status,
            'total_price': float(self.total_price),
            'total_duration_minutes': self.total_duration_minutes,
            'notes': self.notes,
            'services': [line.to_dict() for line in self.lines],
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
    
    def __repr__(self):
        return f'<Booking {self.id}: {self.booking_date} {self.booking_time}>'


class BookingService(db.Model):
    """A service line on a booking, priced at booking time"""
    __tablename__ = 'booking_services'
    
    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey('bookings.id'), nullable=False)
    service_id = db.Column(db.Integer, db.ForeignKey('services.id'), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    service = db.relationship('Service')
    
    def __init__(self, booking_id, service_id, price):
        self.booking_id = booking_id
        self.service_id = service_id
        self.price = price
    
    def to_dict(self):
        return {
            'service_id': self.service_id,
            'name': self.service.name if self.service else None,
            'price': float(self.price)
        }
    
    def __repr__(self):
        return f'<BookingService {self.booking_id}:{self.service_id}>'
