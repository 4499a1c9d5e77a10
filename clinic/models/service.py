from clinic import db
from datetime import datetime

class Service(db.Model):
    __tablename__ = 'services'
    
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)  # Duration in minutes
    category = db.Column(db.String(50), nullable=False, default='general')
    is_active = db.Column(db.Boolean, default=True)
    is_popular = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    __table_args__ = (
        db.CheckConstraint('price >= 0', name='ck_service_price_non_negative'),
        db.CheckConstraint('duration_minutes > 0', name='ck_service_duration_positive'),
    )
    
    def __init__(self, name, price, duration_minutes, description=None, category='general',
                 is_active=True, is_popular=False):
        self.name = name
        self.price = price
        self.duration_minutes = duration_minutes
        self.description = description
        self.category = category
        self.is_active = is_active
        self.is_popular = is_popular
    
    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': float(self.price),
            'duration_minutes': self.duration_minutes,
            'category': self.category,
            'active': self.is_active,
            'popular': self.is_popular
        }
    
    def __repr__(self):
        return f'<Service {self.name}>'
