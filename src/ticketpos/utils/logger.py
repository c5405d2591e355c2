import logging

from rich.logging import RichHandler

from ticketpos.utils import config

PACKAGE_LOGGER = "ticketpos"


class NameColumnFormatter(logging.Formatter):
    """Pads logger names to the widest one seen so far, messages stay aligned."""

    def __init__(self, fmt: str, min_width: int = 14):
        super().__init__(fmt)
        self.width = min_width

    def format(self, record: logging.LogRecord) -> str:
        self.width = max(self.width, len(record.name))
        # other handlers may see the same record, pad a copy
        padded = logging.makeLogRecord(record.__dict__)
        padded.name = record.name.center(self.width)
        return super().format(padded)


def _package_logger() -> logging.Logger:
    root = logging.getLogger(PACKAGE_LOGGER)
    if root.handlers:
        return root

    level = logging.DEBUG if config.DEBUG else logging.INFO
    handler = RichHandler(
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        log_time_format="[%X]",
    )
    handler.setFormatter(NameColumnFormatter("[%(name)s]  %(message)s"))
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
    return root


def get_logger(name=None) -> logging.Logger:
    """
    Logger under the ``ticketpos`` namespace.

    One RichHandler sits on the package logger and module loggers propagate
    to it. Level is DEBUG when the DEBUG env var is set, INFO otherwise.
    """
    root = _package_logger()
    if not name or name == PACKAGE_LOGGER:
        return root
    if not name.startswith(PACKAGE_LOGGER + "."):
        # e.g. __main__ when a module is run directly
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
