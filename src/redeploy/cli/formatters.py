"""Output formatters for CLI commands."""

from __future__ import annotations

import json
from typing import Any


def print_json(data: Any) -> None:
    """Print data as JSON."""
    print(json.dumps(data, indent=2, default=str))


def print_success(message: str) -> None:
    """Print a success message."""
    print(f"[+] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    print(f"[!] {message}")


def print_info(message: str) -> None:
    """Print an info message. Used as the log sink of watch sessions."""
    print(f"[*] {message}", flush=True)
