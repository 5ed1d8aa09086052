from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Any, Dict, Optional


# Attributes every LogRecord carries; anything else came in through `extra=`.
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line:
      { "t": 1721000000000, "lvl": "WARNING", "name": "flood_tiles.upstream",
        "msg": "text", "ctx": {"status": 404, ...} }

    `ctx` holds the fields passed via `log.info(..., extra={...})`.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        ctx = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if ctx:
            payload["ctx"] = ctx
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None, force: bool = False) -> None:
    """
    Configure the root logger once with JSON output on stdout.
    Level precedence:
      - explicit `level` arg
      - env LOG_LEVEL (DEBUG/INFO/WARNING/ERROR)
      - INFO
    """
    root = logging.getLogger()
    if getattr(root, "_floodmap_configured", False) and not force:
        return

    lvl_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    lvl = logging.getLevelName(lvl_name)
    if not isinstance(lvl, int):
        lvl = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(lvl)
    root._floodmap_configured = True  # type: ignore[attr-defined]
