import logging
import os
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler

from asgi_correlation_id import correlation_id

from caseflow.core.config import settings

LOG_FILE_NAME = "caseflow.log"
LOGGING_FORMAT = (
    "%(asctime)s - [%(correlation_id)s] - user=%(acting_user)s - "
    "%(levelname)s - %(name)s - %(message)s"
)

# One mutable dict per request. Sync dependencies and endpoints run on copies
# of the request context, so they update the dict rather than rebinding.
request_log_context: ContextVar[dict | None] = ContextVar(
    "request_log_context", default=None
)


def bind_acting_user(user_id: int, role: str) -> None:
    context = request_log_context.get()
    if context is not None:
        context["acting_user"] = f"{user_id}:{role}"


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        context = request_log_context.get() or {}
        record.correlation_id = correlation_id.get() or "N/A"
        record.acting_user = context.get("acting_user", "-")
        return True


def setup_logging() -> logging.Logger:
    """
    Configure the root logger with a console handler and, outside tests, a
    rotating file handler under `settings.LOG_DIR`.
    """
    root = logging.getLogger()
    for handler in root.handlers:
        if any(isinstance(f, RequestContextFilter) for f in handler.filters):
            return root

    root.setLevel(settings.LOG_LEVEL)
    formatter = logging.Formatter(LOGGING_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.ENVIRONMENT != "testing":
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                os.path.join(settings.LOG_DIR, LOG_FILE_NAME),
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(RequestContextFilter())
        root.addHandler(handler)
    return root
