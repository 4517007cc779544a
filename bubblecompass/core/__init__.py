"""Shared infrastructure: config, logging, sensors, sessions, timeline."""
