from flask import request
from werkzeug.datastructures import MultiDict
from wtforms import BooleanField
from clinic.reservations.errors import ValidationFailed

def json_formdata():
    """
    Request body as a MultiDict that WTForms can process
    
    JSON lists become repeated keys, null becomes an empty value and
    booleans become 'true'/'false'. Non-JSON requests use the form body.
    """
    if not request.is_json:
        return request.form
    
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationFailed('Request body must be a JSON object.')
    
    items = []
    for key, value in payload.items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            if item is None:
                item = ''
            elif isinstance(item, bool):
                item = 'true' if item else 'false'
            items.append((key, str(item)))
    return MultiDict(items)

def validate_or_raise(form):
    if not form.validate():
        raise ValidationFailed(details=form.errors)
    return form

class FlagField(BooleanField):
    """Boolean field that keeps its current value when the key is omitted"""
    def process_formdata(self, valuelist):
        if valuelist:
            super().process_formdata(valuelist)
