"""
Centralized Logging Configuration
Console output plus an optional rotating log file
"""
import logging
import logging.handlers
from pathlib import Path

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ('werkzeug', 'urllib3', 'engineio', 'engineio.server', 'socketio', 'socketio.server',
                 'sqlalchemy.engine')


def setup_logging(app):
    """
    Setup application-wide logging with console output and file rotation

    Args:
        app: Flask application instance
    """
    log_level = getattr(logging, app.config['LOG_LEVEL'].upper(), logging.INFO)
    formatter = logging.Formatter(app.config['LOG_FORMAT'])

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_path = None
    if app.config.get('LOG_TO_FILE', True):
        log_dir = Path('logs')
        log_dir.mkdir(exist_ok=True)
        log_path = log_dir / app.config['LOG_FILE']

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.info(f"Logging initialized at {logging.getLevelName(log_level)} level")
    if log_path:
        app.logger.info(f"Log file: {log_path}")

    return root_logger
