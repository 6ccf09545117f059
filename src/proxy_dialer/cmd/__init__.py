"""Command line interface modules.

This package provides the command-line tools for:
- Opening a tunnel through a proxy and exchanging a message
- Checking which targets a proxy lets through
- Reporting handshake failures by category
"""
