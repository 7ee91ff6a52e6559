"""Core primitives shared by the API, gateway and CLI."""
