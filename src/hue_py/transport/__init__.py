"""Transports to a Hue bridge: HTTP(S) requests, event stream, and TLS."""
