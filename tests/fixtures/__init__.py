"""Test fixtures module."""

from pathlib import Path

FAKE_SERVER_SCRIPT = Path(__file__).parent / "fake_csharpier_server.py"

__all__ = ["FAKE_SERVER_SCRIPT"]
