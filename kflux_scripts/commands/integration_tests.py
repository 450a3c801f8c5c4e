#!/usr/bin/env python3
"""
Create enterprise-contract IntegrationTestScenarios for the test application
"""

import sys
from typing import Optional

from kflux_scripts.applier import ResourceApplier
from kflux_scripts.commands.base import bootstrap, cancelled, ensure_applier, finish, resolve_namespace
from kflux_scripts.console import Colors
from kflux_scripts.materializer import make_name, materialize
from kflux_scripts.templates import INTEGRATION_TEST_SCENARIO
from kflux_scripts.utils import check_safety_thresholds

FIRST_INDEX = 5
NUMBER_OF_INTEGRATION_TESTS = 3


def build_integration_tests(namespace: str):
    return materialize(
        INTEGRATION_TEST_SCENARIO,
        range(FIRST_INDEX, FIRST_INDEX + NUMBER_OF_INTEGRATION_TESTS),
        namespace,
        name_for=lambda i: make_name('test-integration', i),
    )


def main(applier: Optional[ResourceApplier] = None) -> int:
    cfg, console = bootstrap()

    if not check_safety_thresholds(NUMBER_OF_INTEGRATION_TESTS, 'integration tests', cfg.delay_ms):
        return cancelled(console)

    target_ns = resolve_namespace(cfg, console)
    configs = build_integration_tests(target_ns)
    console.say(f"Creating {len(configs)} integration tests", Colors.GREY)

    applier = ensure_applier(applier, cfg, console)
    batch = applier.apply_all(configs, INTEGRATION_TEST_SCENARIO.label)
    return finish(batch, 'integration tests', console)


if __name__ == '__main__':
    sys.exit(main())
