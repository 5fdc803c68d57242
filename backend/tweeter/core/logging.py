"""
Logging setup.

Handlers get a RedactingFilter so credentials and session tokens never reach
the log stream, even when a record's message or args include them.
"""
import logging
import re
from tweeter.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

SENSITIVE_KEYS = (
    "password",
    "currentPassword",
    "newPassword",
    "hashed_password",
    "session",
    "token",
)
REDACTED = "***"

_formatter = logging.Formatter()

# key=value, key: value, "key": "value" and 'key': 'value' pairs
_SENSITIVE_PATTERN = re.compile(
    r"""(?P<key>["']?(?:%s)["']?\s*[:=]\s*)(?P<value>"[^"]*"|'[^']*'|[^\s,;}&]+)"""
    % "|".join(re.escape(key) for key in SENSITIVE_KEYS),
    re.IGNORECASE,
)


def redact(text: str) -> str:
    """Mask the value of every sensitive key in ``text``"""
    def _mask(match: re.Match) -> str:
        value = match.group("value")
        quote = value[0] if value[:1] in ("'", '"') else ""
        return f"{match.group('key')}{quote}{REDACTED}{quote}"

    return _SENSITIVE_PATTERN.sub(_mask, text)


class RedactingFilter(logging.Filter):
    """Rewrite log records so sensitive values are masked"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None

        # Tracebacks are formatted here so exception text gets masked too
        if record.exc_info:
            record.exc_text = _formatter.formatException(record.exc_info)
            record.exc_info = None
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        if record.stack_info:
            record.stack_info = redact(record.stack_info)
        return True


def configure_logging(level: str = None) -> None:
    """Configure root logging from LOG_LEVEL and install the redacting filter"""
    log_level = (level or settings.LOG_LEVEL).upper()
    invalid_level = log_level not in VALID_LEVELS
    if invalid_level:
        log_level = "INFO"

    logging.basicConfig(level=getattr(logging, log_level), format=LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level))
    for handler in root.handlers:
        if not any(isinstance(f, RedactingFilter) for f in handler.filters):
            handler.addFilter(RedactingFilter())

    if invalid_level:
        logging.getLogger(__name__).warning(
            "Invalid LOG_LEVEL '%s', using INFO. Valid levels: %s",
            level or settings.LOG_LEVEL, ", ".join(VALID_LEVELS),
        )
