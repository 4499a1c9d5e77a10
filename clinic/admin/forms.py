from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, DecimalField, IntegerField, DateField, TimeField, SelectField
from wtforms.validators import DataRequired, Length, Optional, NumberRange, ValidationError
from clinic.models.booking import BOOKING_STATUSES
from clinic.reservations.procedures import MAX_GENERATION_DAYS
from clinic.utils.forms import FlagField

class ServiceForm(FlaskForm):
    """Form for creating or updating a clinic service"""
    name = StringField('Service Name', validators=[DataRequired(), Length(max=100)])
    description = TextAreaField('Description', validators=[Optional(), Length(max=500)])
    price = DecimalField('Price', places=2, validators=[NumberRange(min=0, message='Price must be zero or more')])
    duration_minutes = IntegerField('Duration (minutes)', validators=[
        DataRequired(),
        NumberRange(min=5, message='Service duration must be at least 5 minutes')
    ])
    category = StringField('Category', default='general', validators=[DataRequired(), Length(max=50)])
    is_active = FlagField('Active', default=True)
    is_popular = FlagField('Popular', default=False)

class BookingStatusForm(FlaskForm):
    """Form for updating booking status"""
    status = SelectField('Status', validators=[DataRequired()],
                         choices=[(status, status.replace('_', ' ').title()) for status in BOOKING_STATUSES])

class WorkingHoursForm(FlaskForm):
    """Form for updating the working hours of one weekday"""
    is_open = FlagField('Open')
    open_time = TimeField('Opening Time', validators=[Optional()], format='%H:%M')
    close_time = TimeField('Closing Time', validators=[Optional()], format='%H:%M')
    break_start = TimeField('Break Start', validators=[Optional()], format='%H:%M')
    break_end = TimeField('Break End', validators=[Optional()], format='%H:%M')
    slot_duration = IntegerField('Slot Duration (minutes)', validators=[
        DataRequired(),
        NumberRange(min=5, max=240, message='Slot duration must be between 5 and 240 minutes')
    ])
    
    def validate(self, extra_validators=None):
        # Optional() stops the field chains, so cross-field checks live here
        if not super().validate(extra_validators):
            return False
        if not self.is_open.data:
            return True
        
        valid = True
        if not self.open_time.data or not self.close_time.data:
            self.close_time.errors.append('Opening and closing times are required when open.')
            valid = False
        elif self.close_time.data <= self.open_time.data:
            self.close_time.errors.append('Closing time must be after opening time.')
            valid = False
        
        if bool(self.break_start.data) != bool(self.break_end.data):
            self.break_end.errors.append('Set both break start and break end, or neither.')
            valid = False
        elif self.break_end.data and self.break_end.data <= self.break_start.data:
            self.break_end.errors.append('Break end must be after break start.')
            valid = False
        return valid

class SlotForm(FlaskForm):
    """Form identifying a slot to block or unblock"""
    date = DateField('Date', validators=[DataRequired()], format='%Y-%m-%d')
    time = TimeField('Time', validators=[DataRequired()], format='%H:%M')
    reason = StringField('Reason (optional)', validators=[Length(max=255)])

class GenerateSlotsForm(FlaskForm):
    """Form for generating slots over a date range"""
    start_date = DateField('Start Date', validators=[DataRequired()], format='%Y-%m-%d')
    end_date = DateField('End Date', validators=[DataRequired()], format='%Y-%m-%d')
    
    def validate_end_date(self, end_date):
        if self.start_date.data and end_date.data < self.start_date.data:
            raise ValidationError('End date must not be before start date.')
        if self.start_date.data and (end_date.data - self.start_date.data).days >= MAX_GENERATION_DAYS:
            raise ValidationError(f'Choose a range of at most {MAX_GENERATION_DAYS} days.')
