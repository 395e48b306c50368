"""Core: settings, constants and the session context."""
