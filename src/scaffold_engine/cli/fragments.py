"""Fragment CLI commands."""

import argparse

from scaffold_engine.driver import GeneratorRun
from scaffold_engine.errors import ManifestError


def cmd_fragments_scan(args: argparse.Namespace) -> int:
    run = GeneratorRun(args.project)
    snapshot = run.refresh_code_fragments()

    print(f"Found {snapshot.fragment_count} fragments in {len(snapshot.files)} files:\n")
    for path in sorted(snapshot.files):
        rel = path.relative_to(run.root) if path.is_relative_to(run.root) else path
        print(f"  {rel}")
        for name, span in sorted(snapshot.files[path].items()):
            print(f"    {name}  (lines {span.start + 1}-{span.end + 1})")

    if snapshot.errors:
        print(f"\nMalformed: {len(snapshot.errors)}")
        for error in snapshot.errors.values():
            print(f"  - {error}")
        return 1
    return 0


def cmd_fragments_apply(args: argparse.Namespace) -> int:
    from scaffold_engine.fragments.manifest import read_manifest

    run = GeneratorRun(args.project)
    try:
        plan = read_manifest(args.manifest)
    except (ManifestError, FileNotFoundError) as e:
        print(f"ERROR: {e}")
        return 1

    run.refresh_code_fragments()
    report = run.write_all(plan, dry_run=args.dry_run)

    print("Fragment Apply Results")
    print("─" * 40)
    print(report.summary())

    if report.dry_run:
        print("\n[DRY RUN] No files were modified.")

    return 0 if report.ok else 1
