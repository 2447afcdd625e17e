"""
Handlers — The five log operations plus configuration, with self-registration

Each handler module:
1. Defines an XxxHandler class (operation implementation)
2. Exports register_parser(subparsers) to configure its argparse
3. Exports handle(cli, args) returning a ToolResult

Programmatic callers skip argparse and use the handler classes directly:

    result = SearchHandler(cli).run(SearchRequest(org, pipeline, build, job, pattern="error"))
"""

import importlib
import logging
from typing import Dict, Callable, Any

from .base import BaseHandler, error_message
from .requests import (
    JobRequest, InfoRequest, TailRequest, ReadRequest, SearchRequest, FetchRequest,
)
from .info import InfoHandler
from .tail import TailHandler
from .read import ReadHandler
from .search import SearchHandler
from .fetch import FetchHandler


logger = logging.getLogger(__name__)

# Modules that participate in auto-registration
# Order determines help display order
HANDLER_MODULES = [
    'info',
    'tail',
    'read',
    'search',
    'fetch',
    'config_cmd',
]

# Operation name -> handler class
OPERATIONS = {
    handler.operation: handler
    for handler in (InfoHandler, TailHandler, ReadHandler, SearchHandler, FetchHandler)
}

# Command name -> handle function
_handlers: Dict[str, Callable] = {}


def register_all(subparsers) -> None:
    """
    Register every handler module's parser and handle function.

    Args:
        subparsers: argparse subparsers object from main parser
    """
    _handlers.clear()

    for module_name in HANDLER_MODULES:
        module = importlib.import_module(f'.{module_name}', __package__)
        module.register_parser(subparsers)
        cmd_name = getattr(module, 'COMMAND_NAME', module_name.replace('_cmd', ''))
        _handlers[cmd_name] = module.handle


def dispatch(command: str, cli: Any, args: Any) -> Any:
    """
    Dispatch command to its registered handler.

    Raises:
        KeyError: If command not registered
    """
    if command not in _handlers:
        raise KeyError(f"Unknown command: {command}. Available: {list(_handlers.keys())}")

    logger.debug("Dispatching %s", command)
    return _handlers[command](cli, args)


def get_registered_commands() -> list:
    """Get list of registered command names."""
    return list(_handlers.keys())


__all__ = [
    'BaseHandler', 'error_message',
    'JobRequest', 'InfoRequest', 'TailRequest', 'ReadRequest', 'SearchRequest', 'FetchRequest',
    'InfoHandler', 'TailHandler', 'ReadHandler', 'SearchHandler', 'FetchHandler',
    'OPERATIONS', 'register_all', 'dispatch', 'get_registered_commands',
]
