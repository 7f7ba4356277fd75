import json
import logging
import logging.config
from datetime import datetime, timezone

from ..settings import settings

_CONFIGURED = False

_STANDARD_ATTRS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

_QUIET_LOGGERS = ("httpx", "httpcore", "web3", "urllib3")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        try:
            message = record.getMessage()
        except TypeError:
            message = str(record.msg)
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }
        extra = _extract_extra(record)
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(force: bool = False) -> None:
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    root_level = _coerce_log_level(settings.LOG_LEVEL, default=logging.INFO)
    if settings.ENV.lower() == "prod" and root_level < logging.INFO:
        root_level = logging.INFO
    handler_name = "json" if settings.LOG_JSON else "plain"

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "market_console.core.logging_config.JsonFormatter",
            },
            "plain": {
                "class": "logging.Formatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": handler_name,
            },
        },
        "root": {
            "level": root_level,
            "handlers": ["default"],
        },
        "loggers": {
            name: {"level": _third_party_level(root_level), "propagate": True}
            for name in _QUIET_LOGGERS
        },
    }

    logging.config.dictConfig(config)
    _CONFIGURED = True


def _third_party_level(root_level: int) -> int:
    if root_level <= logging.DEBUG:
        return logging.DEBUG
    return max(root_level, logging.WARNING)


def _extract_extra(record: logging.LogRecord) -> dict:
    extras = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_ATTRS:
            continue
        if key.startswith("_"):
            continue
        extras[key] = value
    return extras


def _coerce_log_level(value: str, default: int) -> int:
    if not value:
        return default
    level = logging.getLevelName(str(value).upper())
    return level if isinstance(level, int) else default
