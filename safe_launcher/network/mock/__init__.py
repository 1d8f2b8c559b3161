"""Mock network backed by a local database."""

from .library import MockClient, MockLibrary, MockWriter

__all__ = ["MockClient", "MockLibrary", "MockWriter"]
