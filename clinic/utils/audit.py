from dataclasses import dataclass
from typing import Optional
from flask import request, current_app, has_request_context
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError
from clinic.models.audit import AuditLog
from clinic import db

@dataclass(frozen=True)
class ActorContext:
    """Who is acting and from where, resolved once per request"""
    user_id: Optional[int] = None
    ip_address: Optional[str] = None

def actor_context():
    """Build the actor context for the current request"""
    if not has_request_context():
        return ActorContext()
    user_id = current_user.id if current_user and current_user.is_authenticated else None
    return ActorContext(user_id=user_id, ip_address=request.remote_addr)

def log_audit(action, entity_type, entity_id=None, details=None, context=None):
    """
    Log an audit entry
    
    Parameters:
    - action: The action performed (e.g., 'create', 'update', 'block')
    - entity_type: The type of entity affected (e.g., 'booking', 'slot')
    - entity_id: ID of the affected entity (optional)
    - details: Additional details about the action (optional)
    - context: ActorContext of the caller (optional, anonymous when omitted)
    """
    context = context or ActorContext()
    try:
        audit_entry = AuditLog(
            user_id=context.user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            ip_address=context.ip_address
        )
        
        db.session.add(audit_entry)
        db.session.commit()
        
        return True
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to log audit entry: {e}")
        return False
