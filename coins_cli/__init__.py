"""
Coins CLI - command-line client for the Coins trading API
"""

__version__ = "1.0.0"
