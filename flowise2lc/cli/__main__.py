#!/usr/bin/env python3
"""flowise2lc CLI entry point."""

from flowise2lc.cli.main import cli

if __name__ == "__main__":
    cli()
