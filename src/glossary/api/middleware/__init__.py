"""API middleware and exception handlers.

Cross-cutting concerns (request ids, timing, error envelopes) live here so
routers stay focused on term operations.  The gateway reuses them.
"""

from glossary.api.middleware.errors import install_error_handlers
from glossary.api.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware", "install_error_handlers"]
