#!/usr/bin/env python3
"""
Thin wrapper around subprocess for git and gh calls
"""

import logging
import shutil
import subprocess
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """An external command could not be run or exited non-zero"""


def execute_command(cmd: List[str], cwd: Optional[str] = None, timeout: int = 600,
                    check: bool = True) -> subprocess.CompletedProcess:
    """Execute an external command with error handling"""
    logger.debug(f"Executing: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False
        )
    except subprocess.TimeoutExpired as e:
        raise CommandError(f"Command timeout after {timeout}s: {' '.join(cmd)}") from e
    except OSError as e:
        raise CommandError(f"Error executing {cmd[0]}: {e}") from e

    if result.returncode != 0:
        logger.debug(f"Command failed: {result.stderr}")
        if check:
            raise CommandError(
                f"Command failed ({result.returncode}): {' '.join(cmd)}: {result.stderr.strip()}"
            )
    return result


def missing_tools(tools: Iterable[str]) -> List[str]:
    return [tool for tool in tools if shutil.which(tool) is None]
