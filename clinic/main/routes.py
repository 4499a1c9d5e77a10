from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from clinic import db
from clinic.models.service import Service
from clinic.models.review import Review
from clinic.main.forms import ReviewForm
from clinic.reservations.errors import DuplicateReview
from clinic.utils.audit import log_audit, actor_context
from clinic.utils.forms import json_formdata, validate_or_raise
from clinic.utils.tokens import generate_reviewer_token, verify_reviewer_token

main_bp = Blueprint('main', __name__, url_prefix='/api')

REVIEWER_COOKIE = 'reviewer_token'

@main_bp.route('/services')
def services():
    """All active services, grouped by category"""
    services = Service.query.filter_by(is_active=True).order_by(Service.category, Service.name).all()
    return jsonify({'services': [s.to_dict() for s in services]})

@main_bp.route('/reviews')
def reviews():
    """Approved reviews, newest first, with the rating summary"""
    reviews = Review.query.filter_by(approved=True).order_by(Review.created_at.desc(), Review.id.desc()).all()
    
    distribution = {rating: 0 for rating in range(1, 6)}
    for review in reviews:
        distribution[review.rating] += 1
    
    average = db.session.query(func.avg(Review.rating)).filter(Review.approved.is_(True)).scalar()
    
    return jsonify({
        'reviews': [r.to_dict() for r in reviews],
        'average_rating': round(float(average), 1) if average is not None else None,
        'distribution': distribution
    })

@main_bp.route('/reviews', methods=['POST'])
def create_review():
    """Leave a review, once per reviewer token"""
    form = validate_or_raise(ReviewForm(formdata=json_formdata()))
    
    token = request.cookies.get(REVIEWER_COOKIE)
    identifier = verify_reviewer_token(token)
    if identifier is None:
        identifier, token = generate_reviewer_token()
    
    review = Review(
        customer_name=form.customer_name.data.strip(),
        customer_identifier=identifier,
        rating=form.rating.data,
        comment=form.comment.data,
        approved=current_app.config['REVIEWS_AUTO_APPROVE']
    )
    
    try:
        db.session.add(review)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateReview()
    
    log_audit('create', 'review', entity_id=review.id, details={
        'customer_name': review.customer_name,
        'rating': review.rating
    }, context=actor_context())
    
    response = jsonify(review.to_dict())
    response.set_cookie(REVIEWER_COOKIE, token, max_age=60 * 60 * 24 * 365 * 2,
                        httponly=True, samesite='Lax')
    return response, 201
