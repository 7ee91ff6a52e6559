"""Shared helpers for the glossary test suite."""
