#!/usr/bin/env python3
"""
Spec and status payloads for mock Components

Six fixed spec shapes exercise UI edge cases (no versions, one version, many
versions, actions, custom pipelines). The shape is a pure function of the
index so that a given index always produces the same payload.
"""

import copy
from enum import Enum
from typing import Any, Dict


COMMON_SOURCE = {
    'url': 'https://github.com/example-org/example-repo',
    'dockerfileUri': 'Dockerfile',
}
CONTAINER_IMAGE = 'quay.io/example-org/example-component'
OCI_TA_PIPELINE = {
    'pullAndPush': {
        'pipelineSpecFromBundle': {'name': 'docker-build-oci-ta', 'bundle': 'latest'},
    },
}
ONBOARDING_STATUSES = ('succeeded', 'failed')
STATUS_MESSAGE = 'Spec.containerImage is not set / GitHub App is not installed'
VERSION_MESSAGE = "pipeline for main branch doesn't exist"


class MockComponentShape(Enum):
    NO_VERSIONS = 0
    SINGLE_VERSION = 1
    MULTI_VERSION = 2
    ACTIONS = 3
    CUSTOM_PIPELINE = 4
    MANY_VERSIONS = 5


def select_spec_variant(index: int) -> MockComponentShape:
    return MockComponentShape(index % len(MockComponentShape))


def _source(*versions: Dict[str, Any]) -> Dict[str, Any]:
    return {**COMMON_SOURCE, 'versions': list(versions)}


def _no_versions() -> Dict[str, Any]:
    return {'source': _source()}


def _single_version() -> Dict[str, Any]:
    return {'source': _source({'name': 'main', 'revision': 'main'})}


def _multi_version() -> Dict[str, Any]:
    return {
        'containerImage': CONTAINER_IMAGE,
        'repositorySettings': {'commentStrategy': 'disable_all'},
        'source': _source(
            {'name': 'Version_1_0', 'revision': 'ver-1.0'},
            {
                'name': 'Test',
                'revision': 'test',
                'context': './test',
                'dockerfileUri': 'test.Dockerfile',
                'skipBuilds': True,
            },
        ),
    }


def _actions() -> Dict[str, Any]:
    return {
        'skipOffboardingPr': True,
        'actions': {
            'triggerPushBuild': 'main',
            'triggerPushBuilds': ['main', 'Test'],
            'createPipelineConfigurationPr': {
                'allVersions': False,
                'versions': ['main', 'Test'],
            },
        },
        'source': _source(
            {'name': 'main', 'revision': 'main'},
            {'name': 'Test', 'revision': 'test'},
        ),
    }


def _custom_pipeline() -> Dict[str, Any]:
    return {
        'defaultBuildPipeline': OCI_TA_PIPELINE,
        'source': _source({
            'name': 'DifferentPipeline',
            'revision': 'different_branch',
            'buildPipeline': OCI_TA_PIPELINE,
        }),
    }


def _many_versions() -> Dict[str, Any]:
    return {
        'containerImage': CONTAINER_IMAGE,
        'source': _source(*(
            {'name': f"v{n}", 'revision': f"branch-v{n}"} for n in range(1, 11)
        )),
    }


SPEC_BUILDERS = {
    MockComponentShape.NO_VERSIONS: _no_versions,
    MockComponentShape.SINGLE_VERSION: _single_version,
    MockComponentShape.MULTI_VERSION: _multi_version,
    MockComponentShape.ACTIONS: _actions,
    MockComponentShape.CUSTOM_PIPELINE: _custom_pipeline,
    MockComponentShape.MANY_VERSIONS: _many_versions,
}


def build_mock_spec(index: int) -> Dict[str, Any]:
    # OCI_TA_PIPELINE is shared by two builders
    return copy.deepcopy(SPEC_BUILDERS[select_spec_variant(index)]())


def build_mock_status(index: int) -> Dict[str, Any]:
    """Status subresource payload derived from the index"""
    return {
        'message': STATUS_MESSAGE if index % 7 == 0 else '',
        'pacRepository': f"pac-repo-{index}",
        'containerImage': CONTAINER_IMAGE,
        'versions': [
            {
                'name': 'main',
                'onboardingStatus': ONBOARDING_STATUSES[index % len(ONBOARDING_STATUSES)],
                'revision': 'main',
                'skipBuilds': False,
                'message': VERSION_MESSAGE if index % 5 == 0 else '',
            },
        ],
    }
