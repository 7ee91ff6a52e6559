"""Command-line interface: ``glossary serve ...`` and ``glossary config``."""
