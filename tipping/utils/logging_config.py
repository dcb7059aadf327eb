"""
Logging setup for the tipping league.

Console output everywhere, rotating files when LOG_TO_FILE is set. Records
carry the request line and the acting user so a wager or evaluation log
entry can be traced back to who triggered it.
"""

import logging
import logging.handlers
import os

from flask import g, has_request_context, request

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers whose records also land in evaluations.log
EVALUATION_LOGGERS = ("tipping.services.evaluation",)


class RequestContextFilter(logging.Filter):
    """Attach method, path and user id to every record"""

    def filter(self, record):
        record.method = "-"
        record.path = "-"
        record.user_id = "-"

        if has_request_context():
            record.method = request.method
            record.path = request.path
            user_id = _current_user_id()
            if user_id is not None:
                record.user_id = user_id
        return True


def _current_user_id():
    # Only the user Flask-Login already loaded for this request; never query here
    user = g.get("_login_user")
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return user.get_id()


class LevelColorFormatter(logging.Formatter):
    """Colour the level name for the debug console"""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelno)
        if not color:
            return super().format(record)

        # Copy so other handlers never see the escape codes
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _rotating_handler(path, level, fmt, max_mb, backups):
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_mb * 1024 * 1024, backupCount=backups
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    handler.addFilter(RequestContextFilter())
    return handler


def _console_handler(app, level):
    handler = logging.StreamHandler()
    handler.setLevel(level)
    if app.debug:
        handler.setFormatter(
            LevelColorFormatter(
                LOG_FORMAT + " [%(filename)s:%(lineno)d]", datefmt="%H:%M:%S"
            )
        )
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(RequestContextFilter())
    return handler


def setup_logging(app):
    """
    Configure the root logger from the app config

    Honours LOG_LEVEL, LOG_TO_CONSOLE, LOG_TO_FILE and LOG_DIR. File logging
    writes three rotating files: tipping.log for everything, errors.log
    for ERROR and above, and evaluations.log for evaluation runs.

    Args:
        app: Flask application instance
    """
    level = getattr(logging, app.config.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if app.config.get("LOG_TO_CONSOLE", True):
        root.addHandler(_console_handler(app, level))

    if app.config.get("LOG_TO_FILE", False):
        log_dir = app.config.get("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)

        request_fmt = LOG_FORMAT + " [%(method)s %(path)s] [user=%(user_id)s]"
        root.addHandler(
            _rotating_handler(
                os.path.join(log_dir, "tipping.log"), level, request_fmt, 10, 5
            )
        )
        root.addHandler(
            _rotating_handler(
                os.path.join(log_dir, "errors.log"),
                logging.ERROR,
                request_fmt + " [%(pathname)s:%(lineno)d]",
                5,
                3,
            )
        )

        evaluation_handler = _rotating_handler(
            os.path.join(log_dir, "evaluations.log"), logging.INFO, request_fmt, 5, 10
        )
        for name in EVALUATION_LOGGERS:
            evaluation_logger = logging.getLogger(name)
            for handler in list(evaluation_logger.handlers):
                evaluation_logger.removeHandler(handler)
            evaluation_logger.addHandler(evaluation_handler)

    for noisy in ("werkzeug", "flask_limiter", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.info("Logging configured at %s", logging.getLevelName(level))


def get_logger(name):
    """Module logger, e.g. get_logger(__name__)"""
    return logging.getLogger(name)


class ContextualLogger:
    """
    Logger carrying key=value context, e.g. the event being evaluated.

    bind() returns a new logger so a service can scope its messages to one
    event without touching the module-level instance:

        log = logger.bind(kind="match", event_id=12)
        log.info("Evaluated 4 wagers")  # Evaluated 4 wagers [kind=match event_id=12]
    """

    def __init__(self, name, context=None):
        self.logger = get_logger(name)
        self.context = dict(context or {})

    def bind(self, **context):
        return ContextualLogger(self.logger.name, {**self.context, **context})

    def _with_context(self, message):
        if not self.context:
            return message
        pairs = " ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{message} [{pairs}]"

    def _log(self, level, message, **kwargs):
        self.logger.log(level, self._with_context(message), **kwargs)

    def debug(self, message, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message, **kwargs):
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, message, **kwargs)
