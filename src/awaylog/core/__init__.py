"""Core types, configuration, errors and logging for awaylog."""
