#!/usr/bin/env python3
"""
Static resource skeletons, one per custom resource kind

Placeholder strings are replaced when a template is materialized. Templates
are never handed out directly: render() always returns an independent copy.
"""

import copy
from typing import Any, Dict, Optional, Tuple


NAMESPACE_PLACEHOLDER = 'NAMESPACE'
NAME_PLACEHOLDER = 'METADATA_NAME_PLACEHOLDER'

APPLICATION_NAME = 'test-application-n-components'


class ResourceTemplate:
    """Immutable skeleton of one custom resource plus its API coordinates"""

    def __init__(self, api_version: str, kind: str, plural: str, label: str,
                 skeleton: Dict[str, Any]):
        self.api_version = api_version
        self.kind = kind
        self.plural = plural
        self.label = label
        self._skeleton = copy.deepcopy(skeleton)
        self._skeleton['apiVersion'] = api_version
        self._skeleton['kind'] = kind

    @property
    def group(self) -> str:
        return split_api_version(self.api_version)[0]

    @property
    def version(self) -> str:
        return split_api_version(self.api_version)[1]

    def render(self) -> Dict[str, Any]:
        """Return a deep copy of the skeleton"""
        return copy.deepcopy(self._skeleton)

    def __repr__(self):
        return f"ResourceTemplate({self.api_version}, {self.kind})"


def split_api_version(api_version: str) -> Tuple[str, str]:
    """Split "group/version" into its parts; core resources have no group"""
    if '/' not in api_version:
        return '', api_version
    group, version = api_version.split('/', 1)
    return group, version


APPLICATION = ResourceTemplate(
    api_version='appstudio.redhat.com/v1alpha1',
    kind='Application',
    plural='applications',
    label='application',
    skeleton={
        'metadata': {
            'name': APPLICATION_NAME,
            'namespace': NAMESPACE_PLACEHOLDER,
            'annotations': {'application.thumbnail': '9'},
        },
        'spec': {'displayName': 'Testing Application (100 components)'},
    },
)

COMPONENT = ResourceTemplate(
    api_version='appstudio.redhat.com/v1alpha1',
    kind='Component',
    plural='components',
    label='component',
    skeleton={
        'metadata': {
            'name': NAME_PLACEHOLDER,
            'namespace': NAMESPACE_PLACEHOLDER,
            'annotations': {
                'build.appstudio.openshift.io/pipeline': '{"name":"docker-build","bundle":"latest"}',
                'build.appstudio.openshift.io/request': 'configure-pac',
                'image.redhat.com/generate': '{"visibility": "public"}',
            },
        },
        'spec': {
            'componentName': 'COMPONENT_NAME_PLACEHOLDER',
            'application': APPLICATION_NAME,
            'source': {
                'git': {'url': 'https://github.com/sahil143/devfile-sample-code-with-quarkus'},
            },
        },
    },
)

INTEGRATION_TEST_SCENARIO = ResourceTemplate(
    api_version='appstudio.redhat.com/v1beta1',
    kind='IntegrationTestScenario',
    plural='integrationtestscenarios',
    label='integrationtest',
    skeleton={
        'metadata': {
            'name': 'application-2-enterprise-contract',
            'namespace': NAMESPACE_PLACEHOLDER,
            'annotations': {'test.appstudio.openshift.io/kind': 'enterprise-contract'},
        },
        'spec': {
            'application': APPLICATION_NAME,
            'resolverRef': {
                'resolver': 'git',
                'params': [
                    {'name': 'url', 'value': 'https://github.com/konflux-ci/build-definitions'},
                    {'name': 'revision', 'value': 'main'},
                    {'name': 'pathInRepo', 'value': 'pipelines/enterprise-contract.yaml'},
                ],
            },
            'params': None,
            'contexts': [
                {
                    'name': 'application',
                    'description': 'execute the integration test in all cases - this would be the default state',
                },
            ],
        },
    },
)

RELEASE = ResourceTemplate(
    api_version='appstudio.redhat.com/v1alpha1',
    kind='Release',
    plural='releases',
    label='release',
    skeleton={
        'metadata': {
            'name': NAME_PLACEHOLDER,
            'namespace': NAMESPACE_PLACEHOLDER,
            'labels': {},
        },
        'spec': {
            'releasePlan': 'RELEASE_PLAN_PLACEHOLDER',
            'snapshot': 'SNAPSHOT_PLACEHOLDER',
            'data': {
                'releaseNotes': {
                    'references': '',
                    'synopsis': '',
                    'topic': '',
                    'description': '',
                },
            },
        },
    },
)

# Spec is filled per index from kflux_scripts.mock_shapes
MOCK_COMPONENT = ResourceTemplate(
    api_version='kflux.dev/v1alpha1',
    kind='Component',
    plural='components',
    label='mock component',
    skeleton={
        'metadata': {
            'name': NAME_PLACEHOLDER,
            'namespace': NAMESPACE_PLACEHOLDER,
        },
        'spec': {},
    },
)

TEMPLATES = {
    'application': APPLICATION,
    'component': COMPONENT,
    'integrationtest': INTEGRATION_TEST_SCENARIO,
    'release': RELEASE,
    'mock-component': MOCK_COMPONENT,
}


def template_for(api_version: str, kind: str) -> Optional[ResourceTemplate]:
    """Template matching a rendered object's apiVersion and kind"""
    for template in TEMPLATES.values():
        if template.api_version == api_version and template.kind == kind:
            return template
    return None
