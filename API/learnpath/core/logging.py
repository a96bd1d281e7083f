"""Logging setup: one stdout handler, a [domain] tag on every line, secrets masked."""
import logging
import re
import sys

DOMAIN_GENERATION = "generation"
DOMAIN_PROGRESS = "progress"
DOMAIN_ROADMAP = "roadmap"
DOMAIN_AUTH = "auth"

LOG_FORMAT = "%(asctime)s | %(levelname)s | [%(domain)s] | %(name)s | %(message)s"
REDACTED = "[REDACTED]"

# Group 1 is the label that stays; whatever follows it is masked.
_SECRET_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"([?&]key=)[^\s&]+",
        r"(x-goog-api-key\s*[=:]\s*)[^\s,;]+",
        r"(api[_-]?key\s*[=:]\s*)[^\s,;]+",
        r"(authorization\s*[=:]\s*bearer\s+)[^\s,;]+",
        r"(token\s*[=:]\s*)[^\s,;]+",
        r"(password\s*[=:]\s*)[^\s,;]+",
    )
)


def get_domain_logger(name: str, domain: str) -> logging.LoggerAdapter:
    """Logger whose records carry ``domain`` so lines can be filtered by area."""
    return logging.LoggerAdapter(logging.getLogger(name), {"domain": domain})


def redact_secrets(message: str) -> str:
    text = str(message or "")
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
    return text


class LearnpathLogFilter(logging.Filter):
    """Defaults the domain of untagged records to ``app`` and masks secrets in the message."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "domain"):
            record.domain = "app"  # type: ignore[attr-defined]
        record.msg = redact_secrets(record.getMessage())
        record.args = ()
        return True


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(LearnpathLogFilter())
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[handler],
    )
    # Gemini request URLs carry the API key as a query parameter.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
