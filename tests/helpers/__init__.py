"""Test helpers for the Recurly client test suite."""

from .responses import make_response, StubSession, xml

__all__ = ["make_response", "StubSession", "xml"]
