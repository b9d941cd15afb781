"""
mailparse.commands.config_cmd - View configuration.
"""

import argparse
from pathlib import Path

import tomlkit

from mailparse.config import CONFIG_FILE_NAME, find_config_file, get_config


def run(args: argparse.Namespace) -> int:
    """Run the config command."""
    action = getattr(args, "config_action", None) or "show"

    if action == "path":
        config_path = args.config or find_config_file(Path.cwd())
        if config_path is None:
            print(f"No {CONFIG_FILE_NAME} found (using defaults)")
            return 1
        print(config_path)
        return 0

    config = get_config(args.config, quiet=True)
    print(tomlkit.dumps(config), end="")
    return 0
