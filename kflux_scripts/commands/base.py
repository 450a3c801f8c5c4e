"""Steps shared by every generator command"""

import os
import sys
from typing import Optional, Tuple

from dotenv import load_dotenv

from kflux_scripts.applier import BatchResult, ResourceApplier
from kflux_scripts.config import Config, ConfigError
from kflux_scripts.console import Colors, ConsoleLogger, setup_logging
from kflux_scripts.utils import get_current_namespace, prompt_for_namespace


def bootstrap() -> Tuple[Config, ConsoleLogger]:
    """Load .env, read configuration and configure logging"""
    load_dotenv()
    try:
        cfg = Config()
    except ConfigError as e:
        console = ConsoleLogger(setup_logging(os.getenv('LOG_LEVEL', 'INFO'), os.getenv('LOG_FILE', '')))
        console.log_error(str(e), "CONFIG")
        sys.exit(1)
    logger = setup_logging(cfg.log_level, cfg.log_file)
    return cfg, ConsoleLogger(logger)


def cancelled(console: ConsoleLogger) -> int:
    console.say("Operation cancelled by user", Colors.BLUE)
    return 0


def resolve_namespace(cfg: Config, console: ConsoleLogger) -> str:
    target_ns = prompt_for_namespace(get_current_namespace(cfg.kubeconfig_path))
    console.say(f"Using namespace {target_ns}", Colors.GREEN)
    return target_ns


def ensure_applier(applier: Optional[ResourceApplier], cfg: Config,
                   console: ConsoleLogger) -> ResourceApplier:
    return applier if applier is not None else ResourceApplier.from_config(cfg, console)


def finish(batch: BatchResult, plural_label: str, console: ConsoleLogger) -> int:
    """Exit status for a batch: 1 when creation stopped at a failure"""
    if not batch.ok:
        console.log_error(
            f"Stopped after {batch.created}/{batch.requested} {plural_label}: "
            f"{batch.failed.name} failed ({batch.failed.error})", "APPLY"
        )
        return 1
    console.say(f"✨ Successfully processed {batch.created} {plural_label}", Colors.BLUE)
    return 0
