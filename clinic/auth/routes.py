from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from clinic.models.user import User
from clinic.auth.forms import LoginForm
from clinic.utils.audit import log_audit, actor_context
from clinic.utils.forms import json_formdata, validate_or_raise

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

def _auth_error(message):
    return jsonify({'error': {
        'code': 'INVALID_CREDENTIALS',
        'title': 'Login failed',
        'message': message
    }}), 401

@auth_bp.route('/login', methods=['POST'])
def login():
    form = validate_or_raise(LoginForm(formdata=json_formdata()))
    
    user = User.query.filter_by(email=form.email.data.lower()).first()
    
    if user and user.check_password(form.password.data):
        if not user.is_active:
            # Log failed login due to inactive account
            log_audit('attempt_failed', 'login', user.id, {
                'email': form.email.data,
                'reason': 'account_inactive'
            }, context=actor_context())
            return _auth_error('Your account is currently deactivated.')
        
        login_user(user, remember=form.remember_me.data)
        
        # Log successful login
        log_audit('perform', 'login', user.id, {
            'email': user.email,
            'remember_me': form.remember_me.data
        }, context=actor_context())
        
        return jsonify({'user': user.to_dict()})
    
    # Log failed login attempt
    log_audit('attempt_failed', 'login', user.id if user else None, {
        'email': form.email.data,
        'reason': 'invalid_credentials'
    }, context=actor_context())
    
    return _auth_error('Invalid email or password.')

@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    log_audit('perform', 'logout', current_user.id, {'email': current_user.email}, context=actor_context())
    
    logout_user()
    return jsonify({'message': 'You have been logged out.'})

@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'user': current_user.to_dict()})
