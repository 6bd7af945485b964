# -*- coding: utf-8 -*-
import logging, structlog, sys, os

_CONFIGURED = False


def setup_logging(level: str | None = None, fmt: str | None = None, force: bool = False):
    """
    JSON в stdout по умолчанию, LOG_FORMAT=plain — key=value для локалки.
    Повторный вызов ничего не делает, пока не передан force=True.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    fmt = (fmt or os.getenv("LOG_FORMAT", "json")).lower()  # json | plain
    lvl = getattr(logging, level, logging.INFO)

    logging.basicConfig(
        stream=sys.stdout,
        level=lvl,
        format="%(message)s" if fmt == "json" else "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    for name in ["uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"]:
        logging.getLogger(name).setLevel(lvl)
        if fmt == "json" and name == "uvicorn.access":
            logging.getLogger(name).propagate = False

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.KeyValueRenderer(key_order=["event", "level", "timestamp"]))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(lvl),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
    )
    _CONFIGURED = True
