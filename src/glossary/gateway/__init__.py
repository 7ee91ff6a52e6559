"""Gateway: static UI, ``/api`` reverse proxy and SPA fallback on one port."""

from glossary.gateway.app import create_gateway_app

__all__ = ["create_gateway_app"]
