"""CLI entrypoint for ollama-gui."""

from __future__ import annotations

import argparse
from importlib import metadata
from pathlib import Path
from typing import Sequence

from .app import OllamaGuiApp
from .config import ensure_config_dir, load_config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ollama-gui", description="Ollama chat client")
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to an alternative config.toml",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Handle CLI flags, load configuration, and run the TUI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("ollama-gui")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"ollama-gui {version}")
        return

    if args.config is None:
        ensure_config_dir()
    app = OllamaGuiApp(config=load_config(args.config))
    app.run()


if __name__ == "__main__":
    main()
