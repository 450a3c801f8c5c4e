#!/usr/bin/env python3
"""
Create a batch of test Applications in the chosen namespace
"""

import sys
from typing import Optional

from kflux_scripts.applier import ResourceApplier
from kflux_scripts.commands.base import bootstrap, cancelled, ensure_applier, finish, resolve_namespace
from kflux_scripts.console import Colors
from kflux_scripts.materializer import make_name, materialize
from kflux_scripts.templates import APPLICATION
from kflux_scripts.utils import check_safety_thresholds

FIRST_INDEX = 11
NUMBER_OF_APPLICATIONS = 10


def customize_application(resource, index: int):
    resource['spec']['displayName'] = f"test-application-{index}"


def build_applications(namespace: str):
    return materialize(
        APPLICATION,
        range(FIRST_INDEX, FIRST_INDEX + NUMBER_OF_APPLICATIONS),
        namespace,
        name_for=lambda i: make_name('test-application', i),
        customize=customize_application,
    )


def main(applier: Optional[ResourceApplier] = None) -> int:
    cfg, console = bootstrap()

    if not check_safety_thresholds(NUMBER_OF_APPLICATIONS, 'applications', cfg.delay_ms):
        return cancelled(console)

    target_ns = resolve_namespace(cfg, console)
    configs = build_applications(target_ns)
    console.say(f"Creating {len(configs)} applications", Colors.GREY)

    applier = ensure_applier(applier, cfg, console)
    batch = applier.apply_all(configs, APPLICATION.label)
    return finish(batch, 'applications', console)


if __name__ == '__main__':
    sys.exit(main())
