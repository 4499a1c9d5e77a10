# Import all models here for easier imports elsewhere
from .user import User
from .service import Service
from .customer import Customer
from .booking import Booking, BookingService
from .availability import WorkingHours, Slot
from .review import Review
from .audit import AuditLog
