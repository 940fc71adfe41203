from __future__ import annotations

import logging

LOG_FORMAT = "[hotel-academy] %(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the package logger (idempotent)."""
    root = logging.getLogger("hotel_academy")
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if not any(getattr(h, "_hotel_academy", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._hotel_academy = True  # type: ignore[attr-defined]
        root.addHandler(handler)
