import json
import logging
import os
import sys

# attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class ExtraFieldsFormatter(logging.Formatter):
    """Formatter that appends the record's ``extra`` fields as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not extra:
            return base
        return f"{base} {json.dumps(extra, default=str)}"


def setup_logger(level: str | None = None) -> None:
    root = logging.getLogger()
    if getattr(root, "_finance_configured", False):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ExtraFieldsFormatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    )
    root.addHandler(handler)
    root.setLevel(level or os.environ.get("LOG_LEVEL", "INFO").upper())
    root._finance_configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
