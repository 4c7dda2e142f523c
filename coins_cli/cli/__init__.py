"""
Command-line interface: Typer commands, interactive shell and display helpers
"""
