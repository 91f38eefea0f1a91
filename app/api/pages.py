"""
Page Routes Blueprint

Serves the single-page app shell for the guarded areas and applies the
same guard the SPA applies client-side:
- not logged in: redirect to /login?next=<path>
- wrong role: redirect to the caller's own dashboard
- otherwise: the built index.html from FRONTEND_DIST
"""

import os
from urllib.parse import quote

from flask import Blueprint, current_app, jsonify, redirect, request, send_from_directory
import logging

import auth

logger = logging.getLogger(__name__)

# Create blueprint
pages_bp = Blueprint('pages', __name__)

# Area prefix -> roles allowed in it
AREA_ROLES = {
    'client': ('client',),
    'admin': auth.STAFF_ROLES,
}


def _guard(area):
    """Return a redirect response if the caller may not enter the area, else None"""
    if not auth.is_authenticated():
        return redirect(f"/login?next={quote(request.full_path.rstrip('?'), safe='/?=&')}")
    role = auth.current_user_role()
    if role not in AREA_ROLES[area]:
        return redirect(auth.dashboard_for(role))
    return None


def _serve_shell(area):
    denied = _guard(area)
    if denied is not None:
        return denied

    dist = current_app.config.get('FRONTEND_DIST')
    if dist:
        dist = os.path.abspath(dist)
        if os.path.isfile(os.path.join(dist, 'index.html')):
            return send_from_directory(dist, 'index.html')

    # No SPA build next to the API (frontend served separately)
    return jsonify({
        'success': True,
        'area': area,
        'path': request.path,
        'frontend': current_app.config.get('FRONTEND_URL')
    })


# ============================================================================
# GUARDED SPA AREAS
# ============================================================================

@pages_bp.route('/client')
@pages_bp.route('/client/<path:path>')
def client_area(path=None):
    return _serve_shell('client')


@pages_bp.route('/admin')
@pages_bp.route('/admin/<path:path>')
def admin_area(path=None):
    return _serve_shell('admin')
