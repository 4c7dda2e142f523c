#!/usr/bin/env python
"""
Start the Coins CLI
"""
import sys

from coins_cli.cli.interactive import start_interactive_shell
from coins_cli.cli.main import app

if __name__ == "__main__":
    # No arguments starts the menu shell, anything else runs one command
    if len(sys.argv) == 1:
        start_interactive_shell()
    else:
        app()
