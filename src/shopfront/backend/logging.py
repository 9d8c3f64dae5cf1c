"""Logging configuration for Shopfront backend"""

import logging
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler


class ProjectOnlyFilter(logging.Filter):
    """Filter to only allow logs from shopfront.* modules"""

    def filter(self, record):
        """Filter out non-shopfront modules

        Args:
            record: Log record to filter

        Returns:
            True if the record is from shopfront.* modules, False otherwise
        """
        return record.name.startswith('shopfront.')


def setup_logging(instance_path: Path) -> None:
    """Setup logging configuration for Shopfront backend

    Creates three log files in the instance logs directory:
    - debug.log: DEBUG+ logs from shopfront.* modules only
    - info.log: INFO+ logs from all modules
    - error.log: ERROR+ logs from all modules

    Additionally, INFO+ logs from all modules are output to console (stdout).

    All logs are rotated daily at midnight, keeping 30 days of history.

    Args:
        instance_path: Path to the Shopfront instance directory
    """
    logs_dir = instance_path / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_format = '%(asctime)s.%(msecs)03d - %(levelname)s - %(name)s:%(lineno)d - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'
    formatter = logging.Formatter(log_format, datefmt=date_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Close handlers left over from a previous app instance before replacing them
    for handler in list(root_logger.handlers):
        if isinstance(handler, TimedRotatingFileHandler):
            handler.close()
    root_logger.handlers.clear()

    handlers = (
        ("debug.log", logging.DEBUG, ProjectOnlyFilter()),
        ("info.log", logging.INFO, None),
        ("error.log", logging.ERROR, None),
    )
    for filename, level, log_filter in handlers:
        file_handler = TimedRotatingFileHandler(
            filename=logs_dir / filename,
            when='midnight',
            interval=1,
            backupCount=30,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        if log_filter is not None:
            file_handler.addFilter(log_filter)
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # passlib warns about the bcrypt version on first hash
    logging.getLogger("passlib").setLevel(logging.ERROR)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized for instance: {instance_path}")
