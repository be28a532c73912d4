import logging
import logging.config
import os
import yaml
import json
import threading
from datetime import datetime, timezone
from collections import deque
from typing import Dict, Any, Optional

# LogRecord attributes that are not extra fields
_RECORD_ATTRS = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'taskName', 'message',
    'exc_info', 'exc_text', 'stack_info', 'component', 'event', 'kind',
])

def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

class JsonFormatter(logging.Formatter):
    """JSON formatter carrying the extra fields passed to the logger"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": _utcnow(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "thread": record.threadName,
            "component": getattr(record, 'component', 'udp_receiver'),
            "event": getattr(record, 'event', None),
            "kind": getattr(record, 'kind', None),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)

class MemoryLogHandler(logging.Handler):
    """In-memory log handler with ring buffer"""

    def __init__(self, max_size: int = 10000):
        super().__init__()
        self.max_size = max_size
        self.logs = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def emit(self, record: logging.LogRecord):
        try:
            log_entry = {
                "msg": record.getMessage(),
                "timestamp": _utcnow(),
                "level": record.levelname,
                "logger": record.name,
                "thread": record.threadName,
                "event": getattr(record, 'event', None),
                "kind": getattr(record, 'kind', None),
                "exc_info": record.exc_info is not None,
            }
            with self._lock:
                self.logs.append(log_entry)
        except Exception:
            self.handleError(record)

    def get_logs(self, level: Optional[str] = None, event: Optional[str] = None) -> list:
        """Get a snapshot of buffered logs, optionally filtered by level and event"""
        with self._lock:
            logs = list(self.logs)
        if level:
            logs = [log for log in logs if log["level"] == level]
        if event:
            logs = [log for log in logs if log["event"] == event]
        return logs

    def clear(self):
        with self._lock:
            self.logs.clear()

# Global memory handler instance
memory_handler = MemoryLogHandler()

def _default_config(log_level: str, log_format: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JsonFormatter},
            "text": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": log_format,
                "stream": "ext://sys.stdout"
            }
        },
        "loggers": {
            "udp_receiver": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False
            }
        },
        "root": {
            "level": log_level,
            "handlers": ["console"]
        }
    }

def setup_logging(config_path: str = "LOGGING.yaml") -> Dict[str, Any]:
    """Setup logging configuration from YAML file or environment"""

    log_format = os.getenv("LOG_FORMAT", "text")
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    if log_format not in ("json", "text"):
        log_format = "text"

    config = None
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"Warning: Could not load {config_path}: {e}")

    if not config:
        config = _default_config(log_level, log_format)
    else:
        for handler in config.get("handlers", {}).values():
            if "formatter" in handler:
                handler["formatter"] = log_format
        for logger in config.get("loggers", {}).values():
            logger["level"] = log_level

    logging.config.dictConfig(config)

    formatter = JsonFormatter() if log_format == "json" else logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    memory_handler.setFormatter(formatter)

    logger = logging.getLogger("udp_receiver")
    logger.handlers = [h for h in logger.handlers if not isinstance(h, MemoryLogHandler)]
    logger.addHandler(memory_handler)

    return config

def get_memory_handler() -> MemoryLogHandler:
    """Get the singleton memory handler instance"""
    return memory_handler
