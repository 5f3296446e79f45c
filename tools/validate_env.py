from __future__ import annotations

"""CLI utility to check environment configuration and write a .env template."""

import argparse
from pathlib import Path

from mds_chatbot.app.environment import environment_status, render_env_template


def main() -> None:
    """Print the environment report; exit non-zero when it is unusable."""
    parser = argparse.ArgumentParser(description="Validate chatbot environment variables.")
    parser.add_argument(
        "--write-template",
        metavar="PATH",
        help="Write a commented .env template to PATH and exit.",
    )
    args = parser.parse_args()

    if args.write_template:
        target = Path(args.write_template)
        if target.exists():
            raise SystemExit(f"Refusing to overwrite existing file: {target}")
        target.write_text(render_env_template(), encoding="utf-8")
        print(f"Wrote template: {target}")
        return

    status = environment_status()
    providers = ", ".join(status.available_providers) or "none"
    print(f"Providers available: {providers}")
    print(f"Authentication configured: {'yes' if status.has_auth else 'no'}")
    print(f"Conversation storage configured: {'yes' if status.has_database else 'no'}")
    for warning in status.warnings:
        print(f"warning: {warning}")
    for error in status.errors:
        print(f"error: {error}")
    if not status.is_configured:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
