"""Relay modules: GPS acquisition, Traccar forwarding, local display."""
