import json
from datetime import date, time
from decimal import Decimal

class DecimalEncoder(json.JSONEncoder):
    """
    Custom JSON encoder for money values and schedule fields
    Decimals become floats, dates and times use ISO format
    """
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (date, time)):
            return obj.isoformat()
        return super(DecimalEncoder, self).default(obj)
