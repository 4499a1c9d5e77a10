from flask import current_app
from itsdangerous import URLSafeSerializer, BadSignature
import uuid

REVIEWER_SALT = 'reviewer-token'

def get_token_serializer(salt):
    """Creates a secure token serializer using the app's secret key"""
    secret_key = current_app.config['SECRET_KEY']
    return URLSafeSerializer(secret_key, salt=salt)

def generate_reviewer_token():
    """Return (identifier, signed token) for a new reviewer"""
    identifier = uuid.uuid4().hex
    return identifier, get_token_serializer(REVIEWER_SALT).dumps(identifier)

def verify_reviewer_token(token):
    """Return the identifier inside a reviewer token, or None when it is not ours"""
    if not token:
        return None
    try:
        return get_token_serializer(REVIEWER_SALT).loads(token)
    except BadSignature:
        return None
