#!/usr/bin/env python3
"""
Shared helpers for the generator commands
Namespace detection, interactive prompts, the bulk safety gate and name suffixes
"""

import logging
import random
import string

from kubernetes import config

from kflux_scripts.config import DEFAULT_DELAY_MS
from kflux_scripts.console import Colors

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = 'default'
SAFETY_THRESHOLD = 10
RECOMMENDED_DELAY_MS = 10000
SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def ask(question: str) -> str:
    """Prompt the user and return the raw answer"""
    return input(f"{Colors.YELLOW}{question}{Colors.NC}")


def get_current_namespace(kubeconfig_path: str = None) -> str:
    """Return the namespace of the active kubeconfig context, or "default" """
    try:
        _, active_context = config.list_kube_config_contexts(config_file=kubeconfig_path)
    except (config.ConfigException, OSError, KeyError, TypeError) as e:
        logger.info(f"Could not read current namespace from kubeconfig: {e}")
        return DEFAULT_NAMESPACE

    namespace = ((active_context or {}).get('context') or {}).get('namespace')
    return namespace.strip() if namespace and namespace.strip() else DEFAULT_NAMESPACE


def prompt_for_namespace(current_ns: str) -> str:
    """Confirm the current namespace or read a replacement"""
    print(f"{Colors.BLUE}Current namespace is: {current_ns}{Colors.NC}")
    answer = ask(f'Do you want to use the current namespace "{current_ns}"? (y/n) ')
    if answer.strip().lower() == 'y':
        return current_ns
    return ask("Enter the namespace to use: ").strip()


def prompt_for_count(question: str, default: int) -> int:
    """Read a positive integer, falling back to the default on anything else"""
    raw = ask(f"{question} (default: {default}) ").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        print(f"{Colors.RED}Invalid number '{raw}'. Using default value.{Colors.NC}")
        return default
    if value <= 0:
        print(f"{Colors.RED}Invalid number '{raw}'. Using default value.{Colors.NC}")
        return default
    return value


def prompt_yes_no(question: str) -> bool:
    return ask(f"{question} (y/N) ").strip().lower() == 'y'


def check_safety_thresholds(count: int, resource_label: str = 'components',
                            delay_ms: int = DEFAULT_DELAY_MS) -> bool:
    """Ask for confirmation before creating more than SAFETY_THRESHOLD resources"""
    if count <= SAFETY_THRESHOLD:
        return True

    print(f"{Colors.YELLOW}\n  CAUTION:")
    print(f"You are about to create {count} {resource_label}.")
    print(f"Creating too many {resource_label} in quick succession might:")
    print("  - Overload the API server")
    print("  - Trigger rate limiting")
    print("  - Cause failed deployments")
    print(f"\nCurrent delay between {resource_label}: {delay_ms / 1000:g} seconds{Colors.NC}")

    if delay_ms < RECOMMENDED_DELAY_MS:
        print(f"{Colors.YELLOW}\nRecommended: Use a delay of at least "
              f"{RECOMMENDED_DELAY_MS // 1000} seconds between {resource_label}{Colors.NC}")

    logger.warning(f"Bulk request for {count} {resource_label} needs confirmation")
    return prompt_yes_no("\nDo you want to proceed?")


def random_suffix(min_length: int = 0, max_length: int = 40, rng: random.Random = None) -> str:
    """Random lowercase alphanumeric string, length uniform in [min_length, max_length]

    Not suitable for anything security related; collisions are possible.
    """
    if min_length < 0 or max_length < min_length:
        raise ValueError(f"invalid suffix length bounds [{min_length}, {max_length}]")
    rng = rng or random
    length = rng.randint(min_length, max_length)
    return ''.join(rng.choice(SUFFIX_ALPHABET) for _ in range(length))
