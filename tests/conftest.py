"""Shared fixtures for the kflux-scripts tests.

The project root is added to sys.path so `import kflux_scripts` works without an
editable install.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from kubernetes.client.rest import ApiException  # noqa: E402

from kflux_scripts.applier import ResourceApplier  # noqa: E402
from kflux_scripts.console import ConsoleLogger  # noqa: E402


class FakeCustomObjects:
    """Records calls made through the CustomObjectsApi surface used by the applier"""

    def __init__(self, fail_names=(), conflict_names=(), status_fail_names=()):
        self.fail_names = set(fail_names)
        self.conflict_names = set(conflict_names)
        self.status_fail_names = set(status_fail_names)
        self.created = []
        self.patched = []
        self.status_patches = []

    def create_namespaced_custom_object(self, group, version, namespace, plural, body, **kwargs):
        name = body['metadata']['name']
        if name in self.fail_names:
            raise ApiException(status=403, reason='Forbidden')
        if name in self.conflict_names:
            raise ApiException(status=409, reason='AlreadyExists')
        self.created.append({'group': group, 'version': version, 'namespace': namespace,
                             'plural': plural, 'body': body, **kwargs})
        return body

    def patch_namespaced_custom_object(self, group, version, namespace, plural, name, body):
        self.patched.append({'plural': plural, 'name': name, 'body': body})
        return body

    def patch_namespaced_custom_object_status(self, group, version, namespace, plural, name, body):
        if name in self.status_fail_names:
            raise ApiException(status=404, reason='NotFound')
        self.status_patches.append({'group': group, 'version': version, 'namespace': namespace,
                                    'plural': plural, 'name': name, 'body': body})
        return body


@pytest.fixture
def fake_api():
    return FakeCustomObjects()


@pytest.fixture
def make_applier():
    def _make(api, delay_ms=0, sleep=None):
        return ResourceApplier(api, delay_ms=delay_ms, console=ConsoleLogger(),
                               sleep=sleep or (lambda seconds: None))
    return _make


@pytest.fixture
def answers(monkeypatch):
    """Feed scripted answers to input(); records every question asked"""
    asked = []

    def _install(*replies):
        queue = list(replies)

        def fake_input(prompt=''):
            asked.append(prompt)
            if not queue:
                raise AssertionError(f"unexpected prompt: {prompt!r}")
            return queue.pop(0)

        monkeypatch.setattr('builtins.input', fake_input)
        return asked

    return _install


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the user's .env, kubeconfig and GitHub Actions files"""
    monkeypatch.chdir(tmp_path)
    for var in ('GITHUB_OUTPUT', 'GITHUB_STEP_SUMMARY', 'LOG_FILE', 'KUBECONFIG',
                'JIRA_API_TOKEN', 'JIRA_URL', 'RATE_LIMIT_SECONDS', 'KFLUX_DELAY_MS'):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv('KFLUX_DELAY_MS', '0')
