"""
API Blueprints Package

All HTTP route handlers for the marketplace, organized by domain.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

Marketplace:
- services.py    : Service catalog (/api/services)
- orders.py      : Orders, progress tracking, reviews (/api/orders)
- quotes.py      : Quotes and conversion into orders (/api/quotes)
- payments.py    : Payment processing (/api/payments)
- chat.py        : Chat threads and messages (/api/chat)

Other:
- admin.py       : Admin dashboard and user directory (/api/admin)
- auth_routes.py : Session login/logout/me (/api/auth)
- pages.py       : SPA shell with route guard (/client/*, /admin/*)

Real-time events live in app/realtime.py, health endpoints in
health_checks.py at the project root.
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
