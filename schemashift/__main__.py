# File: schemashift/__main__.py
"""
schemashift — Module entry point.

Allows running the converter directly via::

    python -m schemashift schema/ -o ./mappings

Delegates to the CLI entry point defined in ``schemashift.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from schemashift.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
