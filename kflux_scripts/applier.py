#!/usr/bin/env python3
"""
Resource Applier
Creates materialized configs on the cluster one at a time, pacing the calls
with a randomized delay and stopping at the first failure
"""

import logging
import random
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from kflux_scripts.config import DEFAULT_DELAY_MS, Config
from kflux_scripts.console import ConsoleLogger
from kflux_scripts.templates import MOCK_COMPONENT, ResourceTemplate, template_for

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Outcome of one create or patch call"""
    name: str
    label: str
    success: bool
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Ordered outcomes of a batch; creation stops at the first failure"""
    requested: int
    results: List[ApplyResult] = field(default_factory=list)

    @property
    def failed(self) -> Optional[ApplyResult]:
        return next((r for r in self.results if not r.success), None)

    @property
    def created(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def ok(self) -> bool:
        return self.failed is None


def _error_message(error: Exception) -> str:
    if isinstance(error, ApiException):
        return f"({error.status}) {error.reason}"
    return str(error)


def load_custom_objects_api(cfg: Config, console: ConsoleLogger) -> client.CustomObjectsApi:
    """Setup Kubernetes client configuration; exits when no configuration is usable"""
    try:
        if cfg.kubeconfig_path:
            config.load_kube_config(config_file=cfg.kubeconfig_path)
            console.log_info(f"Loaded kubeconfig from: {cfg.kubeconfig_path}", "CONFIG")
        else:
            config.load_incluster_config()
            console.log_info("Using in-cluster Kubernetes configuration", "CONFIG")
    except config.ConfigException:
        try:
            config.load_kube_config()
            console.log_info("Using default kubeconfig file", "CONFIG")
        except (config.ConfigException, OSError) as e:
            console.log_error(f"Failed to load Kubernetes configuration: {e}", "CONFIG")
            sys.exit(1)

    if cfg.k8s_verify_ssl is False:
        k8s_conf = client.Configuration.get_default_copy()
        k8s_conf.verify_ssl = False
        client.Configuration.set_default(k8s_conf)
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        console.log_warn("SSL verification disabled for the Kubernetes API", "CONFIG")

    return client.CustomObjectsApi()


class ResourceApplier:
    """Applies resource configs through the custom objects API"""

    def __init__(self, custom_objects, delay_ms: int = DEFAULT_DELAY_MS,
                 console: ConsoleLogger = None,
                 sleep: Callable[[float], None] = time.sleep,
                 rng: random.Random = None):
        self.custom_objects = custom_objects
        self.delay_ms = delay_ms
        self.console = console or ConsoleLogger()
        self.sleep = sleep
        self.rng = rng or random.Random()

    @classmethod
    def from_config(cls, cfg: Config, console: ConsoleLogger = None) -> 'ResourceApplier':
        console = console or ConsoleLogger()
        return cls(load_custom_objects_api(cfg, console), delay_ms=cfg.delay_ms, console=console)

    def next_delay(self) -> float:
        """Seconds to wait after a successful create"""
        if self.delay_ms <= 0:
            return 0.0
        return self.rng.uniform(self.delay_ms / 100, self.delay_ms * 2) / 1000

    def _coordinates(self, resource: Dict[str, Any]):
        template = template_for(resource['apiVersion'], resource['kind'])
        if template is None:
            raise ValueError(f"Unsupported resource kind: {resource['apiVersion']} {resource['kind']}")
        return template.group, template.version, template.plural

    def _apply(self, resource: Dict[str, Any]):
        group, version, plural = self._coordinates(resource)
        namespace = resource['metadata']['namespace']
        try:
            return self.custom_objects.create_namespaced_custom_object(
                group=group,
                version=version,
                namespace=namespace,
                plural=plural,
                body=resource,
                field_validation='Ignore'
            )
        except ApiException as e:
            if e.status != 409:
                raise
        # Already exists: update in place like `kubectl apply`
        logger.info(f"{resource['metadata']['name']} exists, patching")
        return self.custom_objects.patch_namespaced_custom_object(
            group=group,
            version=version,
            namespace=namespace,
            plural=plural,
            name=resource['metadata']['name'],
            body=resource
        )

    def create_resource(self, resource: Dict[str, Any], label: str = 'resource') -> ApplyResult:
        """Create one resource and report the outcome"""
        name = resource['metadata']['name']
        try:
            self._apply(resource)
        except (ApiException, urllib3.exceptions.HTTPError, ValueError) as e:
            message = _error_message(e)
            self.console.failure(f"Failed to create {label} {name}: {message}")
            return ApplyResult(name=name, label=label, success=False, error=message)

        self.console.success(f"Created {label}: {name}")
        delay = self.next_delay()
        if delay:
            self.sleep(delay)
        return ApplyResult(name=name, label=label, success=True)

    def apply_all(self, resources: Iterable[Dict[str, Any]], label: str = 'resource',
                  after_create: Optional[Callable[[Dict[str, Any], int], None]] = None
                  ) -> BatchResult:
        """Create resources in order, stopping at the first failure

        after_create(resource, position) runs after every successful create.
        Resources created before a failure are left in place.
        """
        resources = list(resources)
        batch = BatchResult(requested=len(resources))
        for position, resource in enumerate(resources):
            result = self.create_resource(resource, label)
            batch.results.append(result)
            if not result.success:
                break
            if after_create is not None:
                after_create(resource, position)
        return batch

    def patch_status(self, name: str, namespace: str, status: Dict[str, Any],
                     template: ResourceTemplate = MOCK_COMPONENT) -> ApplyResult:
        """Merge-patch the status subresource; failures are reported, never fatal"""
        try:
            self.custom_objects.patch_namespaced_custom_object_status(
                group=template.group,
                version=template.version,
                namespace=namespace,
                plural=template.plural,
                name=name,
                body={'status': status}
            )
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            message = _error_message(e)
            self.console.failure(f"Failed to patch status for {name}: {message}")
            return ApplyResult(name=name, label='status', success=False, error=message)

        self.console.success(f"Patched status: {name}")
        return ApplyResult(name=name, label='status', success=True)
