#!/usr/bin/env python3
"""Check an env file against the bot's Settings model.

Usage:
    python scripts/validate_env.py            # checks .env.example
    python scripts/validate_env.py .env       # checks a deployment file

Every Settings field must be listed in .env.example. A deployment file only
needs the required fields, and those must have a value.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent


def read_env_file(path: Path) -> dict[str, str]:
    """Read ``NAME=value`` pairs, skipping comments and blank lines.

    Args:
        path: Env file to read.

    Returns:
        Mapping of upper-cased variable names to their raw values.
    """
    if not path.exists():
        print(f"ERROR: {path} not found")
        sys.exit(1)

    variables: dict[str, str] = {}
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                name, _, value = line.partition("=")
                variables[name.strip().upper()] = value.strip().strip("\"'")
    return variables


def settings_fields() -> tuple[set[str], set[str]]:
    """Collect env var names from Settings.

    Returns:
        All variable names and the subset without a default.
    """
    sys.path.insert(0, str(PROJECT_ROOT / "src"))

    from donutsmp_bot.config.settings import Settings

    every: set[str] = set()
    required: set[str] = set()
    for field_name, field_info in Settings.model_fields.items():
        env_name = field_name.upper()
        every.add(env_name)
        if field_info.is_required():
            required.add(env_name)
    return every, required


def validate(path: Path) -> bool:
    """Validate one env file.

    Args:
        path: File to check; ``.env.example`` is checked for completeness,
            anything else for required values.

    Returns:
        True if validation passes, False otherwise.
    """
    env_vars = read_env_file(path)
    every, required = settings_fields()
    is_template = path.name == ".env.example"
    is_valid = True

    expected = every if is_template else required
    missing = expected - env_vars.keys()
    if missing:
        print(f"ERROR: Variables missing from {path.name}:")
        for var in sorted(missing):
            print(f"  - {var}")
        is_valid = False

    if not is_template:
        empty = sorted(v for v in required & env_vars.keys() if not env_vars[v])
        if empty:
            print(f"ERROR: Required variables without a value in {path.name}:")
            for var in empty:
                print(f"  - {var}")
            is_valid = False

    unknown = env_vars.keys() - every
    if unknown:
        print(f"WARNING: Variables in {path.name} not read by Settings:")
        for var in sorted(unknown):
            print(f"  - {var}")

    if is_valid:
        print(f"SUCCESS: {path.name} matches Settings")
        print(f"  - Variables defined: {len(env_vars)}")
        print(f"  - Required: {', '.join(sorted(required))}")

    return is_valid


def main() -> None:
    """Main entry point."""
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else PROJECT_ROOT / ".env.example"
    if not validate(path):
        sys.exit(1)


if __name__ == "__main__":
    main()
