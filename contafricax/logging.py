import logging
import json
import sys

from contafricax.utils.request_ctx import get_request_id


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        d = {
            "lvl": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        rid = get_request_id()
        if rid:
            d["rid"] = rid
        if record.exc_info:
            d["exc"] = self.formatException(record.exc_info)
        return json.dumps(d, ensure_ascii=False)


def configure_json_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """JSON lines in prod (or when asked), plain text for local work."""
    if json_logs:
        configure_json_logging(level)
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(level)
