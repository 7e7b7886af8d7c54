"""Spec module — load, query, merge, and save the persisted project spec."""

from scaffold_engine.specs.store import (
    get_namespace,
    load_specs,
    merge_namespace,
    save_specs,
    spec_conflicts,
)
from scaffold_engine.specs.fields import APP_FIELDS, Field, plan_fields, resolve_fields

__all__ = [
    "load_specs",
    "save_specs",
    "get_namespace",
    "merge_namespace",
    "spec_conflicts",
    "APP_FIELDS",
    "Field",
    "plan_fields",
    "resolve_fields",
]
