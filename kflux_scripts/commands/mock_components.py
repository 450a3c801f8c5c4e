#!/usr/bin/env python3
"""
Create mock Components with varied spec shapes for UI testing

Optionally patches each component's status subresource so list and detail
views have onboarding data to render.
"""

import sys
from typing import Optional

from kflux_scripts.applier import ResourceApplier
from kflux_scripts.commands.base import bootstrap, cancelled, ensure_applier, finish, resolve_namespace
from kflux_scripts.console import Colors
from kflux_scripts.materializer import make_name, materialize
from kflux_scripts.mock_shapes import build_mock_spec, build_mock_status
from kflux_scripts.templates import MOCK_COMPONENT
from kflux_scripts.utils import check_safety_thresholds, prompt_for_count, prompt_yes_no

DEFAULT_COUNT = 25


def build_mock_components(count: int, namespace: str):
    def customize(resource, index: int):
        resource['spec'] = build_mock_spec(index)

    return materialize(
        MOCK_COMPONENT,
        range(1, count + 1),
        namespace,
        name_for=lambda i: make_name('ui-mock-comp', i),
        customize=customize,
    )


def main(applier: Optional[ResourceApplier] = None) -> int:
    cfg, console = bootstrap()

    count = prompt_for_count("How many mock Components to create?", DEFAULT_COUNT)
    populate_status = prompt_yes_no('Populate "status" subresource for UI testing?')

    if not check_safety_thresholds(count, 'mock components', cfg.delay_ms):
        return cancelled(console)

    target_ns = resolve_namespace(cfg, console)
    configs = build_mock_components(count, target_ns)
    console.say(f"Creating {count} mock Components...", Colors.GREY)

    applier = ensure_applier(applier, cfg, console)

    def patch_status(resource, position: int):
        # Indices start at 1
        applier.patch_status(resource['metadata']['name'], target_ns, build_mock_status(position + 1))

    batch = applier.apply_all(
        configs, MOCK_COMPONENT.label,
        after_create=patch_status if populate_status else None,
    )
    return finish(batch, 'mock components', console)


if __name__ == '__main__':
    sys.exit(main())
