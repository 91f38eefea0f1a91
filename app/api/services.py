"""
Service Catalog Routes Blueprint

Public catalog browsing plus admin curation:
- /api/services: List (filters, sort, pagination) / create
- /api/services/featured: Featured services
- /api/services/categories: Categories with active counts
- /api/services/<service_id>: Get / update / deactivate
- /api/services/<service_id>/rating: Record a rating
"""

from flask import Blueprint, current_app, jsonify, request
import logging

import auth
from database.connection import get_db_session
from services.service_catalog import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ServiceCatalogRepository
from app.utils.helpers import get_float_arg, get_json_body, get_pagination

logger = logging.getLogger(__name__)

# Create blueprint
services_bp = Blueprint('services_bp', __name__)


def _catalog(session):
    return ServiceCatalogRepository(session, default_currency=current_app.config.get('DEFAULT_CURRENCY', 'USD'))


# ============================================================================
# PUBLIC CATALOG
# ============================================================================

@services_bp.route('/api/services', methods=['GET'])
def list_services():
    """List active services with filtering, sorting and pagination"""
    page, limit = get_pagination(default_limit=DEFAULT_PAGE_SIZE, max_limit=MAX_PAGE_SIZE)
    include_inactive = request.args.get('includeInactive') == 'true' and auth.is_admin()

    with get_db_session() as session:
        result = _catalog(session).list_services(
            category=request.args.get('category') or None,
            search=request.args.get('search') or None,
            min_price=get_float_arg('minPrice'),
            max_price=get_float_arg('maxPrice'),
            sort=request.args.get('sort', 'newest'),
            page=page,
            limit=limit,
            include_inactive=include_inactive
        )
    return jsonify({'success': True, **result})


@services_bp.route('/api/services/featured', methods=['GET'])
def featured_services():
    with get_db_session() as session:
        services = _catalog(session).list_featured()
    return jsonify({'success': True, 'services': services})


@services_bp.route('/api/services/categories', methods=['GET'])
def service_categories():
    with get_db_session() as session:
        categories = _catalog(session).list_categories()
    return jsonify({'success': True, 'categories': categories})


@services_bp.route('/api/services/<service_id>', methods=['GET'])
def get_service(service_id):
    """Get a service with related services; admins may see inactive ones"""
    with get_db_session() as session:
        result = _catalog(session).get_service(service_id, include_inactive=auth.is_admin())
    return jsonify({'success': True, **result})


# ============================================================================
# ADMIN CURATION
# ============================================================================

@services_bp.route('/api/services', methods=['POST'])
@auth.admin_required
def create_service():
    data = get_json_body()
    with get_db_session() as session:
        service = _catalog(session).create_service(data, created_by=auth.current_user_id())
    return jsonify({'success': True, 'message': 'Service created successfully', 'service': service}), 201


@services_bp.route('/api/services/<service_id>', methods=['PUT', 'PATCH'])
@auth.admin_required
def update_service(service_id):
    data = get_json_body()
    with get_db_session() as session:
        service = _catalog(session).update_service(service_id, data)
    return jsonify({'success': True, 'message': 'Service updated successfully', 'service': service})


@services_bp.route('/api/services/<service_id>', methods=['DELETE'])
@auth.admin_required
def deactivate_service(service_id):
    """Services are never deleted, only deactivated"""
    with get_db_session() as session:
        service = _catalog(session).deactivate_service(service_id)
    return jsonify({'success': True, 'message': 'Service deactivated successfully', 'service': service})


@services_bp.route('/api/services/<service_id>/rating', methods=['POST'])
@auth.admin_required
def rate_service(service_id):
    data = get_json_body()
    with get_db_session() as session:
        rating = _catalog(session).record_rating(service_id, data.get('rating'))
    return jsonify({'success': True, 'rating': rating})
