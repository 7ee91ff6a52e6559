"""Glossary API: term CRUD, search, health and AI explanations under ``/api``."""

from glossary.api.app import create_app

__all__ = ["create_app"]
