# scalargrad/logger.py
"""
Handler setup for the command-line drivers. Library modules only call
``logging.getLogger(__name__)``; their records reach whatever handlers the
``scalargrad`` package logger carries.
"""
import logging
import os
import sys
from pathlib import Path

PACKAGE = "scalargrad"
FORMAT = "%(asctime)s | %(levelname)7s | %(name)s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(logfile=None, level=logging.INFO):
    logger = logging.getLogger(PACKAGE)
    logger.setLevel(level)
    fmt = logging.Formatter(fmt=FORMAT, datefmt=DATEFMT)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        sh = logging.StreamHandler(sys.stdout)
        sh.setFormatter(fmt)
        logger.addHandler(sh)

    if logfile:
        path = os.path.abspath(logfile)
        if not any(isinstance(h, logging.FileHandler) and h.baseFilename == path
                   for h in logger.handlers):
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(path)
            fh.setFormatter(fmt)
            logger.addHandler(fh)

    return logger
