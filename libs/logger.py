import logging

from libs.settings import settings


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colors each record by level and separates runs of
    different levels with a blank line.
    """

    COLORS = {
        "DEBUG": "\033[94m",  # Blue
        "INFO": "\033[92m",  # Green
        "WARNING": "\033[93m",  # Yellow
        "ERROR": "\033[91m",  # Red
        "CRITICAL": "\033[95m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(self, fmt=None, datefmt=None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.last_levelname = None

    def format(self, record):
        newline_prefix = ""
        if self.last_levelname is not None and self.last_levelname != record.levelname:
            newline_prefix = "\n"
        self.last_levelname = record.levelname

        log_message = super().format(record)
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        return f"{newline_prefix}{color}{log_message}{self.COLORS['RESET']}"


def get_logger(name: str) -> logging.Logger:
    """
    Return a console logger for the storefront service.

    Args:
        name: The name of the logger, typically __name__ of the calling module.

    Returns:
        A configured logging.Logger instance. The level comes from the LOG_LEVEL setting.
    """
    logger = logging.getLogger(name)
    logger.setLevel(settings.log_level.upper())

    # get_logger is called once per module; keep a single handler per logger
    if not logger.handlers:
        formatter = ColoredFormatter(
            "%(levelname)s - %(name)s - %(message)s -----> %(asctime)s"
        )

        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        logger.addHandler(ch)

    return logger
