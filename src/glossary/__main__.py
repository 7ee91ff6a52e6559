"""``python -m glossary`` entry point."""

from glossary.cli.app import app

if __name__ == "__main__":
    app()
