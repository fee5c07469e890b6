"""
Shared helpers for the test-suite (fixture loading).
"""

from pathlib import Path

FIXTURES = Path(__file__).resolve().parent / "fixtures"


def read_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")
