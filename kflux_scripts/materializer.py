#!/usr/bin/env python3
"""
Turns a ResourceTemplate into concrete, uniquely named resource configs
"""

from typing import Any, Callable, Dict, Iterable, List, Optional

from kflux_scripts.templates import ResourceTemplate
from kflux_scripts.utils import random_suffix

MaterializedConfig = Dict[str, Any]


def make_name(prefix: str, index: int, min_length: int = 5, max_length: int = 8) -> str:
    """<prefix>-<index>-<random suffix>"""
    return f"{prefix}-{index}-{random_suffix(min_length, max_length)}"


def materialize(template: ResourceTemplate, indices: Iterable[int], namespace: str,
                name_for: Callable[[int], str],
                customize: Optional[Callable[[MaterializedConfig, int], None]] = None
                ) -> List[MaterializedConfig]:
    """Render one independent config per index, in index order

    customize(config, index) fills the kind-specific fields of each copy.
    """
    configs = []
    for index in indices:
        resource = template.render()
        resource['metadata']['name'] = name_for(index)
        resource['metadata']['namespace'] = namespace
        if customize is not None:
            customize(resource, index)
        configs.append(resource)
    return configs
