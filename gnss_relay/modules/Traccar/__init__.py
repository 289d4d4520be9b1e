"""Forwarding of GPS fixes to a Traccar tracking server."""
