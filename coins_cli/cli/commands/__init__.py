"""
Typer command groups and the async actions behind them
"""
