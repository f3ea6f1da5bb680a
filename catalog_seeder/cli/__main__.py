"""CLI entry point.

Allows running the CLI as a module: python -m catalog_seeder.cli
"""

from catalog_seeder.cli import app

if __name__ == "__main__":
    app()
