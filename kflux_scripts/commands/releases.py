#!/usr/bin/env python3
"""
Create Releases for an existing ReleasePlan and Snapshot
"""

import sys
from dataclasses import dataclass
from typing import Optional

from kflux_scripts.applier import ResourceApplier
from kflux_scripts.commands.base import bootstrap, cancelled, ensure_applier, finish, resolve_namespace
from kflux_scripts.console import Colors, ConsoleLogger
from kflux_scripts.materializer import make_name, materialize
from kflux_scripts.templates import RELEASE
from kflux_scripts.utils import ask, check_safety_thresholds, prompt_for_count

DEFAULT_NUMBER_OF_RELEASES = 5


@dataclass
class ReleaseDetails:
    release_plan: str
    snapshot: str
    count: int


def prompt_for_release_details() -> ReleaseDetails:
    print(f"{Colors.BLUE}\n=== Release Configuration ==={Colors.NC}")
    release_plan = ask("Enter the release plan name: ").strip()
    snapshot = ask("Enter the snapshot name: ").strip()
    count = prompt_for_count("Enter the number of releases to create", DEFAULT_NUMBER_OF_RELEASES)
    return ReleaseDetails(release_plan, snapshot, count)


def build_releases(details: ReleaseDetails, namespace: str):
    def customize(resource, index: int):
        resource['spec']['releasePlan'] = details.release_plan
        resource['spec']['snapshot'] = details.snapshot
        notes = resource['spec']['data']['releaseNotes']
        notes['synopsis'] = f"Automated release {index} of {details.count}"
        notes['description'] = "Generated release using kflux-scripts"

    return materialize(
        RELEASE,
        range(1, details.count + 1),
        namespace,
        name_for=lambda i: make_name(details.release_plan, i),
        customize=customize,
    )


def print_details(details: ReleaseDetails, console: ConsoleLogger):
    console.say("\n📋 Configuration:", Colors.GREEN)
    console.say(f"   Release Plan: {details.release_plan}", Colors.GREEN)
    console.say(f"   Snapshot: {details.snapshot}", Colors.GREEN)
    console.say(f"   Number of Releases: {details.count}", Colors.GREEN)


def main(applier: Optional[ResourceApplier] = None) -> int:
    cfg, console = bootstrap()

    details = prompt_for_release_details()
    if not details.release_plan or not details.snapshot:
        console.log_error("Release plan and snapshot are required!", "RELEASE")
        return 1
    print_details(details, console)

    if not check_safety_thresholds(details.count, 'releases', cfg.delay_ms):
        return cancelled(console)

    target_ns = resolve_namespace(cfg, console)
    configs = build_releases(details, target_ns)
    console.say(f"\n🚀 Creating {len(configs)} releases...", Colors.GREY)

    applier = ensure_applier(applier, cfg, console)
    batch = applier.apply_all(configs, RELEASE.label)
    status = finish(batch, 'releases', console)
    if status == 0:
        console.say("📦 All releases created with:", Colors.GREEN)
        console.say(f"   - Release Plan: {details.release_plan}", Colors.GREEN)
        console.say(f"   - Snapshot: {details.snapshot}", Colors.GREEN)
    return status


if __name__ == '__main__':
    sys.exit(main())
