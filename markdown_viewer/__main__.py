"""Allow ``python -m markdown_viewer``."""

from .cli import cli

if __name__ == "__main__":
    cli()
