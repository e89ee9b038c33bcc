"""
Logging for the report renderer.

Console output goes through colorlog, optional file output is one JSON object
per line. Every record carries the request id of the report being generated
and the component that emitted it.
"""

import logging
import re
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import Optional

import colorlog
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

console = Console()

# One id per generate_report call; threads rendering different reports keep their own
_request_id = ContextVar("request_id", default=None)

CONSOLE_FORMAT = (
    "%(log_color)s[%(asctime)s.%(msecs)03d] "
    "%(levelname)-8s "
    "%(white)s[%(request_id)s] "
    "%(cyan)s[%(component)s] "
    "%(message_log_color)s%(message)s"
)

FILE_FORMAT = (
    '{"timestamp":"%(asctime)s.%(msecs)03d",'
    '"level":"%(levelname)s",'
    '"request_id":"%(request_id)s",'
    '"component":"%(component)s",'
    '"logger":"%(name)s",'
    '"message":"%(message)s"}'
)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    "DEBUG": "blue",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

MESSAGE_COLORS = {**LEVEL_COLORS, "DEBUG": "white", "INFO": "white"}


def get_request_id() -> str:
    """Current request id, created on first use."""
    request_id = _request_id.get()
    if request_id is None:
        request_id = uuid.uuid4().hex[:8]
        _request_id.set(request_id)
    return request_id


def set_request_id(request_id: str):
    _request_id.set(request_id)


def clear_request_id():
    _request_id.set(None)


class SensitiveDataFilter(logging.Filter):
    """Masks credentials carried in signed image URLs."""

    MASKED_KEYS = ("access_token", "token", "api_key", "X-Amz-Signature")
    PATTERN = re.compile(
        r"\b(" + "|".join(re.escape(key) for key in MASKED_KEYS) + r")=([^&\s'\"]+)"
    )

    def filter(self, record):
        if record.msg:
            message = record.getMessage()
            masked = self.PATTERN.sub(r"\1=***MASKED***", message)
            if masked != message:
                record.msg = masked
                record.args = None
        return True


class ContextFilter(logging.Filter):
    """Stamps request id and component onto each record."""

    def __init__(self, component: str = "REPORT"):
        super().__init__()
        self.component = component

    def filter(self, record):
        record.request_id = get_request_id()
        record.component = self.component
        return True


def _attach(handler: logging.Handler, formatter: logging.Formatter, component: str) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter(component))
    handler.addFilter(SensitiveDataFilter())
    return handler


def setup_logger(
    name: str,
    level: str = "INFO",
    log_file: Optional[Path] = None,
    component: Optional[str] = None
) -> logging.Logger:
    """
    Configure a module logger.

    Args:
        name: Logger name, usually ``__name__``
        level: Console log level
        log_file: Also append JSON lines to this file (at DEBUG)
        component: Tag shown in brackets; defaults to the last name segment

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if log_file else getattr(logging, level.upper()))
    logger.handlers.clear()

    component = component or name.rsplit(".", 1)[-1].upper()

    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    logger.addHandler(_attach(
        console_handler,
        colorlog.ColoredFormatter(
            fmt=CONSOLE_FORMAT,
            datefmt=DATE_FORMAT,
            log_colors=LEVEL_COLORS,
            secondary_log_colors={"message": MESSAGE_COLORS},
            reset=True,
            style="%",
        ),
        component,
    ))

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(_attach(
            file_handler,
            logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT),
            component,
        ))

    return logger


def print_summary_panel(title: str, content: dict, style: str = "green"):
    """Key/value summary in a bordered panel."""
    text = "\n".join(f"[bold]{key}:[/bold] {escape(str(value))}" for key, value in content.items())
    console.print(Panel(text, title=title, border_style=style, expand=False))


def print_error(error_type: str, message: str, details: Optional[str] = None):
    """
    Error panel for the command line.

    Args:
        error_type: Short heading, e.g. "Input Error"
        message: What went wrong
        details: Optional dimmed detail text (validation output, paths)
    """
    content = f"[bold red]{error_type}[/bold red]\n\n{escape(message)}"
    if details:
        content += f"\n\n[dim]{escape(details)}[/dim]"
    console.print(Panel(content, title="Error", border_style="red", expand=False))
