"""
WSGI Entry Point for Gunicorn

Socket.IO needs a worker that supports long-lived connections, e.g.:
  gunicorn --worker-class gthread --threads 50 -w 1 wsgi:app

The Flask application is created in application.py.
"""

# Import the Flask app from application.py
from application import app  # noqa: F401
