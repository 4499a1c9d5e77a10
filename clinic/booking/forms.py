from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, SelectMultipleField, DateField, TimeField
from wtforms.validators import DataRequired, Length, ValidationError, Email, Optional
from datetime import date
from clinic.models.customer import normalize_phone

class BookingForm(FlaskForm):
    """Form for booking one or more services at a slot"""
    date = DateField('Date', validators=[DataRequired()], format='%Y-%m-%d')
    time = TimeField('Time', validators=[DataRequired()], format='%H:%M')
    name = StringField('Name', validators=[DataRequired(), Length(min=2, max=120)])
    phone = StringField('Phone Number', validators=[DataRequired(), Length(max=20)])
    email = StringField('Email', validators=[Optional(), Email(), Length(max=120)])
    notes = TextAreaField('Notes', validators=[Length(max=500)])
    service_ids = SelectMultipleField('Services', coerce=int, validators=[DataRequired()])
    
    def validate_date(self, field):
        # Bookings are only taken for today onwards
        if field.data < date.today():
            raise ValidationError('Booking date cannot be in the past.')
    
    def validate_phone(self, field):
        if len(normalize_phone(field.data)) < 10:
            raise ValidationError('Invalid phone number.')
