#!/usr/bin/env python3
"""
bwstat Logging Module

Sets up logging for the daemon (rotating log file plus optional console)
and for one-shot CLI commands (console only).
"""
import os
import logging
import gzip
import shutil
import threading
from logging.handlers import RotatingFileHandler

logger = logging.getLogger("bwstat")
formatter = logging.Formatter('[%(asctime)s] [%(levelname)s] %(message)s', '%Y-%m-%d %H:%M:%S')

_LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}


class CompressedRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that gzips rotated files in the background."""

    def __init__(self, filename, mode='a', maxBytes=0, backupCount=0,
                 encoding=None, delay=False, compress=False):
        self.compress = compress
        super().__init__(filename, mode, maxBytes, backupCount, encoding, delay)

        # Files already compressed during this session
        self._compressed_files = set()

    def doRollover(self):
        super().doRollover()

        if self.compress:
            threading.Thread(target=self._compress_logs, daemon=True).start()

    def _compress_logs(self):
        # Rotated files carry suffixes .1, .2, ...
        for i in range(1, self.backupCount + 1):
            log_file = f"{self.baseFilename}.{i}"
            gz_file = f"{log_file}.gz"

            if (os.path.exists(log_file) and
                    not os.path.exists(gz_file) and
                    log_file not in self._compressed_files):
                try:
                    self._compressed_files.add(log_file)
                    with open(log_file, 'rb') as f_in:
                        with gzip.open(gz_file, 'wb', compresslevel=6) as f_out:
                            shutil.copyfileobj(f_in, f_out, length=1024 * 1024)
                    os.remove(log_file)
                except OSError as e:
                    print(f"Error compressing log file {log_file}: {e}")


def _resolve_level(log_level) -> int:
    if isinstance(log_level, int):
        return log_level
    return _LOG_LEVELS.get(str(log_level).upper(), logging.INFO)


def setup_logging(console=True, log_file=None, log_level=None, max_size=None,
                  backup_count=None, compress=None):
    """
    Set up daemon logging with file rotation and optional console output.

    Args:
        console (bool): Whether to output logs to console as well
        log_file (str): Path to log file, defaults to config.LOG_FILE
        log_level (str): Log level, defaults to config.LOG_LEVEL
        max_size (int): Maximum size of log file in bytes before rotation
        backup_count (int): Number of backup files to keep
        compress (bool): Whether to compress rotated log files

    Returns:
        logging.Logger: The configured "bwstat" logger
    """
    from . import config

    if log_file is None:
        log_file = config.LOG_FILE
    if log_level is None:
        log_level = config.LOG_LEVEL
    if max_size is None:
        max_size = config.LOG_MAX_SIZE
    if backup_count is None:
        backup_count = config.LOG_BACKUP_COUNT
    if compress is None:
        compress = config.LOG_COMPRESS

    logger.setLevel(_resolve_level(log_level))
    logger.propagate = False

    # Clear any existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    try:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        if compress:
            file_handler = CompressedRotatingFileHandler(
                log_file, maxBytes=max_size, backupCount=backup_count, compress=True)
        else:
            file_handler = RotatingFileHandler(
                log_file, maxBytes=max_size, backupCount=backup_count)

        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        print(f"Error setting up file logging: {e}")

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def setup_cli_logging(debug=False):
    """
    Console-only logging for short-lived CLI commands.

    Only warnings and errors are shown unless ``debug`` is set.
    """
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    return logger
