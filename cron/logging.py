"""Cron logging: stdout plus one file per job under LOG_DIR (default logs/)."""

import logging
import os
from pathlib import Path


def get_logger(job_name: str) -> logging.Logger:
    """Return a logger that writes to stdout and <LOG_DIR>/cron_<job_name>.log."""
    logger = logging.getLogger(f"cron.{job_name}")
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    if logger.handlers:
        return logger

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    logger.addHandler(sh)

    log_dir = Path(os.getenv("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / f"cron_{job_name}.log", encoding="utf-8")
    fh.setFormatter(fmt)
    logger.addHandler(fh)

    return logger
