from __future__ import annotations
import logging
import re
import sys
from typing import Optional, Union

_configured = False

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_SECRET_RE = re.compile(
    r"(?i)(bearer\s+[A-Za-z0-9\-._~+/]+=*"
    r"|sk-[A-Za-z0-9_\-]{16,}"
    r"|api_key=\w{16,}"
    r"|admin_session=[A-Za-z0-9\-._]+)"
)

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "botocore", "urllib3")


def redact(text: str) -> str:
    """Mask email addresses, bearer/OpenAI keys and admin session cookies."""
    return _SECRET_RE.sub("<redacted-secret>", _EMAIL_RE.sub("<redacted-email>", text))


class _OneLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return super().format(record).replace("\n", " | ")


class RedactFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = record.getMessage()
        except (TypeError, ValueError):
            # Malformed %-args; let the handler report it as usual
            return True
        masked = redact(msg)
        if masked != msg:
            record.msg = masked
            record.args = ()
        return True


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Install the stdout handler and redaction filter on the root logger.

    Safe to call repeatedly (app factory in tests); earlier podsite handlers
    and filters are replaced rather than stacked.
    """
    global _configured
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))

    for f in [f for f in root.filters if isinstance(f, RedactFilter)]:
        root.removeFilter(f)
    for h in [h for h in root.handlers if getattr(h, "_podsite_handler", False)]:
        root.removeHandler(h)

    redactor = RedactFilter()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_OneLineFormatter(LOG_FORMAT))
    handler.addFilter(redactor)
    handler._podsite_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    # Logger-level too, so caplog sees masked messages
    root.addFilter(redactor)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if not _configured:
        configure_logging()
    return logging.getLogger(name or "podsite")
