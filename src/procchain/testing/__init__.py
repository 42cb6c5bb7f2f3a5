"""Test doubles for code built on procchain."""

from .fakes import CallLog, FakePipe, FakeProcess

__all__ = ["CallLog", "FakePipe", "FakeProcess"]
