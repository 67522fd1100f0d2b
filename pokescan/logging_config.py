import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

from pokescan.config import settings


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str | None = None, to_file: bool = True, stream: TextIO | None = None) -> None:
    root = logging.getLogger()
    lvl = (level or settings.log_level or "INFO").upper()
    root.setLevel(lvl)

    json_formatter = JsonFormatter()
    # Commands that print results to stdout pass stderr here
    stream_handler = logging.StreamHandler(stream=stream or sys.stdout)
    stream_handler.setFormatter(json_formatter)

    # Clear existing handlers to avoid duplicates when called more than once
    root.handlers = []
    root.addHandler(stream_handler)

    if to_file:
        Path(settings.logs_dir).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            str(Path(settings.logs_dir) / "pokescan.log"), maxBytes=5_000_000, backupCount=3
        )
        file_handler.setFormatter(json_formatter)
        root.addHandler(file_handler)
