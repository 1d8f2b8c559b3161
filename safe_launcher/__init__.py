"""SAFE Launcher: a session-scoped directory service for the SAFE Network."""
