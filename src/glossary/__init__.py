"""
Glossary service — term CRUD API, AI explanations, and a single-port gateway.

Packages:
    - ``glossary.core``       settings, logging, errors, retry, models
    - ``glossary.storage``    Term Store (Cosmos DB or in-memory)
    - ``glossary.completion`` Azure OpenAI completion client + text helpers
    - ``glossary.api``        FastAPI application for ``/api/*``
    - ``glossary.gateway``    static files + ``/api`` forwarding
    - ``glossary.cli``        ``glossary`` command line
"""

__version__ = "1.0.0"
