#!/usr/bin/env python3
"""
Create a batch of Quarkus sample Components under the shared test application
"""

import sys
from typing import Optional

from kflux_scripts.applier import ResourceApplier
from kflux_scripts.commands.base import bootstrap, cancelled, ensure_applier, finish, resolve_namespace
from kflux_scripts.console import Colors
from kflux_scripts.materializer import make_name, materialize
from kflux_scripts.templates import COMPONENT
from kflux_scripts.utils import check_safety_thresholds

FIRST_INDEX = 26
NUMBER_OF_COMPONENTS = 25
NAME_PREFIX = 'devfile-sample-code-with-quarkus-longer-name-new'


def customize_component(resource, index: int):
    resource['spec']['componentName'] = resource['metadata']['name']


def build_components(namespace: str):
    return materialize(
        COMPONENT,
        range(FIRST_INDEX, FIRST_INDEX + NUMBER_OF_COMPONENTS),
        namespace,
        name_for=lambda i: make_name(NAME_PREFIX, i),
        customize=customize_component,
    )


def main(applier: Optional[ResourceApplier] = None) -> int:
    cfg, console = bootstrap()

    if not check_safety_thresholds(NUMBER_OF_COMPONENTS, 'components', cfg.delay_ms):
        return cancelled(console)

    target_ns = resolve_namespace(cfg, console)
    configs = build_components(target_ns)
    console.say(f"Creating {len(configs)} components", Colors.GREY)

    applier = ensure_applier(applier, cfg, console)
    batch = applier.apply_all(configs, COMPONENT.label)
    return finish(batch, 'components', console)


if __name__ == '__main__':
    sys.exit(main())
