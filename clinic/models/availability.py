from clinic import db
from datetime import datetime, date, time, timedelta

# Days of the week constants (0 = Sunday, 6 = Saturday)
SUNDAY = 0
MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6

DAY_NAMES = {
    SUNDAY: 'Sunday',
    MONDAY: 'Monday',
    TUESDAY: 'Tuesday',
    WEDNESDAY: 'Wednesday',
    THURSDAY: 'Thursday',
    FRIDAY: 'Friday',
    SATURDAY: 'Saturday'
}

# Slot status constants
SLOT_AVAILABLE = 'available'
SLOT_BLOCKED = 'blocked'
SLOT_BOOKED = 'booked'

SLOT_STATUSES = (SLOT_AVAILABLE, SLOT_BLOCKED, SLOT_BOOKED)

DEFAULT_BLOCK_REASON = 'Blocked by administrator'

def day_of_week(day):
    """Convert Python's Monday=0 weekday to the stored Sunday=0 indexing"""
    return (day.weekday() + 1) % 7


class WorkingHours(db.Model):
    __tablename__ = 'working_hours'
    
    id = db.Column(db.Integer, primary_key=True)
    day_of_week = db.Column(db.Integer, nullable=False, unique=True)  # 0-6 (Sunday-Saturday)
    is_open = db.Column(db.Boolean, default=False)
    open_time = db.Column(db.Time, nullable=True)
    close_time = db.Column(db.Time, nullable=True)
    break_start = db.Column(db.Time, nullable=True)
    break_end = db.Column(db.Time, nullable=True)
    slot_duration = db.Column(db.Integer, nullable=False, default=30)  # Minutes
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    def __init__(self, day_of_week, is_open=False, open_time=None, close_time=None,
                 break_start=None, break_end=None, slot_duration=30):
        self.day_of_week = day_of_week
        self.is_open = is_open
        self.open_time = open_time
        self.close_time = close_time
        self.break_start = break_start
        self.break_end = break_end
        self.slot_duration = slot_duration
    
    @classmethod
    def get_working_hours(cls):
        """Returns a dictionary of working hours by day of week"""
        hours = cls.query.all()
        result = {}
        for hour in hours:
            result[hour.day_of_week] = hour
        return result
    
    @classmethod
    def ensure_defaults(cls):
        """Create working hours for any missing weekday; returns the rows created"""
        existing_days = {hour.day_of_week for hour in cls.query.all()}
        created = []
        for day in DAY_NAMES:
            if day not in existing_days:
                is_open = day not in (SATURDAY, SUNDAY)  # Closed on weekends by default
                default_hours = cls(
                    day_of_week=day,
                    is_open=is_open,
                    open_time=time(9, 0) if is_open else None,  # 9:00 AM
                    close_time=time(17, 0) if is_open else None,  # 5:00 PM
                    slot_duration=30
                )
                db.session.add(default_hours)
                created.append(default_hours)
        if created:
            db.session.commit()
        return created

    def slot_times(self):
        """
        Times of day at which a slot starts on this weekday.
        
        Slots start at the opening time and every slot_duration minutes
        after it while the start is before closing time. Starts falling
        inside the break are skipped.
        """
        if not self.is_open or not self.open_time or not self.close_time or self.slot_duration <= 0:
            return []
        
        # Arithmetic on an arbitrary day, only the time part is kept
        anchor = date(2000, 1, 1)
        current = datetime.combine(anchor, self.open_time)
        close = datetime.combine(anchor, self.close_time)
        step = timedelta(minutes=self.slot_duration)
        
        times = []
        while current < close:
            slot_time = current.time()
            in_break = (self.break_start is not None and self.break_end is not None and
                        self.break_start <= slot_time < self.break_end)
            if not in_break:
                times.append(slot_time)
            current += step
        return times
    
    def to_dict(self):
        def fmt(value):
            return value.strftime('%H:%M') if value else None
        return {
            'day_of_week': self.day_of_week,
            'day_name': DAY_NAMES[self.day_of_week],
            'is_open': self.is_open,
            'open_time': fmt(self.open_time),
            'close_time': fmt(self.close_time),
            'break_start': fmt(self.break_start),
            'break_end': fmt(self.break_end),
            'slot_duration': self.slot_duration
        }
    
    def __repr__(self):
        if not self.is_open:
            return f'<WorkingHours: Day {self.day_of_week} - CLOSED>'
        return f'<WorkingHours: Day {self.day_of_week} - {self.open_time} to {self.close_time}>'


class Slot(db.Model):
    __tablename__ = 'slots'
    
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    time_slot = db.Column(db.Time, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=SLOT_AVAILABLE)
    booking_id = db.Column(db.Integer, db.ForeignKey('bookings.id'), nullable=True)
    blocked_reason = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    __table_args__ = (
        # Prevent two rows for the same bookable time
        db.UniqueConstraint('date', 'time_slot', name='uq_slot_date_time'),
        db.CheckConstraint("status in ('available', 'blocked', 'booked')", name='ck_slot_status'),
    )
    
    booking = db.relationship('Booking', foreign_keys=[booking_id])
    
    def __init__(self, date, time_slot, status=SLOT_AVAILABLE, booking_id=None, blocked_reason=None):
        self.date = date
        self.time_slot = time_slot
        self.status = status
        self.booking_id = booking_id
        self.blocked_reason = blocked_reason
    
    def is_available(self):
        return self.status == SLOT_AVAILABLE
    
    def __repr__(self):
        if self.status == SLOT_BLOCKED:
            return f'<Slot: {self.date} {self.time_slot} - BLOCKED ({self.blocked_reason})>'
        return f'<Slot: {self.date} {self.time_slot} - {self.status}>'
