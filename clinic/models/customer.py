from clinic import db
from datetime import datetime
import re

def normalize_phone(phone):
    """Reduce a phone number to its digits so lookups ignore formatting"""
    return re.sub(r'\D', '', phone or '')

class Customer(db.Model):
    __tablename__ = 'customers'
    
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    # Lookup key for deduplication, not enforced unique
    phone = db.Column(db.String(20), nullable=False, index=True)
    email = db.Column(db.String(120), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    bookings = db.relationship('Booking', backref='customer', lazy='dynamic')
    
    def __init__(self, name, phone, email=None, notes=None):
        self.name = name
        self.phone = normalize_phone(phone)
        self.email = email or None
        self.notes = notes
    
    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'email': self.email
        }
    
    def __repr__(self):
        return f'<Customer {self.phone}>'
