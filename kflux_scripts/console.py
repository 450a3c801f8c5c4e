#!/usr/bin/env python3
"""
Console output and logging setup
Coloured status lines for the terminal, mirrored to the Python logger
"""

import logging
import sys
from datetime import datetime


class Colors:
    """ANSI color codes for terminal output"""
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    BLUE = '\033[0;34m'
    CYAN = '\033[0;36m'
    GREY = '\033[0;90m'
    NC = '\033[0m'  # No Color

    @classmethod
    def disable(cls):
        for name in ('RED', 'GREEN', 'YELLOW', 'BLUE', 'CYAN', 'GREY', 'NC'):
            setattr(cls, name, '')


def setup_logging(log_level: str = 'INFO', log_file: str = '') -> logging.Logger:
    """Setup logging configuration"""
    level = getattr(logging, log_level.upper(), logging.INFO)
    # Console lines are printed by ConsoleLogger; the log file keeps the record
    handlers = [logging.FileHandler(log_file)] if log_file else [logging.NullHandler()]
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s',
        handlers=handlers
    )
    if not sys.stdout.isatty():
        Colors.disable()
    return logging.getLogger('kflux_scripts')


class ConsoleLogger:
    """Coloured console output with component identification"""

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger('kflux_scripts')

    def _emit(self, color: str, tag: str, message: str, component: str):
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        print(f"{color}[{tag}]{Colors.NC} {timestamp} [{component}] {message}")

    def log_info(self, message: str, component: str = "MAIN"):
        self._emit(Colors.GREEN, 'INFO', message, component)
        self.logger.info(f"[{component}] {message}")

    def log_warn(self, message: str, component: str = "MAIN"):
        self._emit(Colors.YELLOW, 'WARN', message, component)
        self.logger.warning(f"[{component}] {message}")

    def log_error(self, message: str, component: str = "MAIN"):
        self._emit(Colors.RED, 'ERROR', message, component)
        self.logger.error(f"[{component}] {message}")

    def say(self, message: str, color: str = ''):
        """Print a plain status line without timestamp"""
        print(f"{color}{message}{Colors.NC}" if color else message)
        self.logger.info(message)

    def success(self, message: str):
        self.say(f"✓ {message}", Colors.GREEN)

    def failure(self, message: str):
        print(f"{Colors.RED}✗ {message}{Colors.NC}")
        self.logger.error(message)
