"""
Health Check & Monitoring Endpoints
Liveness, readiness (database), process metrics and ping
"""
import os
import sys
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from flask import Blueprint, jsonify
import logging

from database.connection import check_db_connection

logger = logging.getLogger(__name__)

# Create Blueprint for health check routes
health_bp = Blueprint('health', __name__)

# Track application start time
START_TIME = time.time()

SERVICE_NAME = 'tubex-marketplace'


def get_system_metrics() -> Dict[str, Any]:
    """
    Get basic process metrics

    Returns:
        Dictionary of system metrics
    """
    try:
        process = psutil.Process()

        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': round(process.memory_info().rss / 1024 / 1024, 2),
            'memory_percent': round(process.memory_percent(), 2),
            'threads': process.num_threads(),
        }
    except psutil.Error as e:
        logger.warning(f"Failed to get system metrics: {e}")
        return {}


def get_uptime_seconds() -> float:
    return round(time.time() - START_TIME, 2)


def get_uptime() -> Dict[str, Any]:
    uptime_seconds = get_uptime_seconds()

    return {
        'uptime_seconds': uptime_seconds,
        'uptime_hours': round(uptime_seconds / 3600, 2),
        'started_at': datetime.fromtimestamp(START_TIME).isoformat()
    }


def database_available() -> bool:
    try:
        return check_db_connection()
    except RuntimeError:
        return False


def get_realtime_stats() -> Dict[str, Any]:
    from app.realtime import presence
    return {'online_users': len(presence.online_users())}


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Liveness check
    Returns 200 if the process is serving requests
    """
    return jsonify({
        'status': 'OK',
        'timestamp': datetime.utcnow().isoformat(),
        'uptime': get_uptime_seconds()
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Readiness probe
    Returns 200 once the database answers, 503 otherwise
    """
    database_ok = database_available()

    return jsonify({
        'status': 'ready' if database_ok else 'not_ready',
        'timestamp': datetime.utcnow().isoformat(),
        'checks': {
            'database': database_ok
        }
    }), 200 if database_ok else 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """
    Process metrics and application statistics
    """
    return jsonify({
        'timestamp': datetime.utcnow().isoformat(),
        'service': SERVICE_NAME,
        'environment': os.environ.get('FLASK_ENV', 'production'),
        'uptime': get_uptime(),
        'system': get_system_metrics(),
        'realtime': get_realtime_stats(),
        'database': database_available(),
        'python_version': sys.version.split()[0]
    }), 200


@health_bp.route('/ping', methods=['GET'])
def ping():
    return 'pong', 200


def register_health_checks(app):
    """
    Register health check blueprint with Flask app

    Args:
        app: Flask application instance
    """
    app.register_blueprint(health_bp, url_prefix='/api')
    logger.info("Health check endpoints registered")
    logger.info("Available endpoints: /api/health, /api/ready, /api/metrics, /api/ping")
