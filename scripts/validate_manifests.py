#!/usr/bin/env python3
"""
Bundle manifest validation script for the module bundler gateway.
This script validates bundle manifests (JSON or YAML) before they are published.
"""

import sys
from pathlib import Path
from typing import List

sys.path.append(str(Path(__file__).resolve().parent.parent))

from shared.errors import ConfigurationError
from service_bundler.app.adapters.manifest_client import is_yaml, parse_manifest


def validate_manifest(manifest_path: Path) -> List[str]:
    """Validate a single bundle manifest file."""
    errors = []

    try:
        text = manifest_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        errors.append(f"Error reading file: {e}")
        return errors

    try:
        table = parse_manifest(text, yaml_format=is_yaml(manifest_path.name))
    except ConfigurationError as e:
        errors.append(e.message)
        return errors

    for bundle, members in table.bundles.items():
        if not members:
            errors.append(f"bundle {bundle!r} has no members")

    for alias, target in table.aliases.items():
        if table.bundle_for(target) is None and target not in table.bundles:
            errors.append(f"alias {alias!r} points at unknown module {target!r}")

    return errors


def main(argv: List[str]) -> int:
    """Main function to validate the given bundle manifests."""
    print("Validating bundle manifests...")

    manifest_paths = [Path(arg) for arg in argv]
    if not manifest_paths:
        manifest_paths = sorted(
            path for pattern in ("manifest*.json", "manifest*.yaml", "manifest*.yml")
            for path in Path(".").glob(pattern)
        )

    if not manifest_paths:
        print("No manifests found")
        return 1

    total_errors = 0

    for manifest_path in manifest_paths:
        errors = validate_manifest(manifest_path)

        if errors:
            print(f"❌ {manifest_path}: {len(errors)} validation errors")
            for error in errors:
                print(f"   - {error}")
            total_errors += len(errors)
        else:
            print(f"✅ {manifest_path}: manifest is valid")

    print(f"\nValidation complete: {total_errors} total errors")

    if total_errors == 0:
        print("All bundle manifests are valid!")
        return 0
    else:
        print("Some bundle manifests have validation errors")
        return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
