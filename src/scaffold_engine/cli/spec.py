"""Spec CLI commands."""

import argparse

import yaml

from scaffold_engine.driver import GeneratorRun
from scaffold_engine.specs.fields import APP_FIELDS, plan_fields

FIELD_TABLES = {
    "app": APP_FIELDS,
}


def cmd_spec_show(args: argparse.Namespace) -> int:
    run = GeneratorRun(args.project)
    if args.namespace:
        options = run.spec.get(args.namespace)
        if options is None:
            print(f"Namespace '{args.namespace}' not recorded")
            return 1
        data = {args.namespace: options}
    else:
        data = run.spec
    if not data:
        print("No spec recorded yet.")
        return 0
    print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip())
    return 0


def cmd_spec_set(args: argparse.Namespace) -> int:
    run = GeneratorRun(args.project)
    value = yaml.safe_load(args.value)
    before = run.init_specs(args.namespace)

    options = run.update_specs(
        args.namespace,
        {args.key: value},
        confirm=lambda ns, key, old, new: args.force,
    )
    if options.get(args.key) != value:
        print(
            f"{args.namespace}.{args.key} is already {before[args.key]!r}; "
            "use --force to overwrite"
        )
        return 1

    run.finish()
    old = before.get(args.key, "<unset>")
    print(f"{args.namespace}.{args.key}: {old} -> {value}")
    return 0


def cmd_spec_plan(args: argparse.Namespace) -> int:
    run = GeneratorRun(args.project)
    existing = run.spec.get(args.namespace)
    plans = plan_fields(FIELD_TABLES[args.namespace], existing)

    print(f"Options for '{args.namespace}'")
    print("─" * 40)
    for plan in plans:
        label = "ask " if plan.needs_prompt else "known"
        print(f"  [{label}] {plan.field.name}: {plan.value!r}")
        if plan.needs_prompt:
            print(f"          {plan.field.message}")
    return 0
