"""
Coins CLI - Typer application
"""
import typer
from rich import box
from rich.panel import Panel

from coins_cli.cli import display
from coins_cli.cli.commands import auth, config, market, portfolio, trading, transactions
from coins_cli.cli.context import state
from coins_cli.config.settings import settings
from coins_cli.logger import logger, logger_manager

app = typer.Typer(
    name="coins-cli",
    help="Command-line client for the Coins trading API",
    add_completion=False,
    no_args_is_help=False,
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug mode"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    version: bool = typer.Option(False, "--version", "-V", help="Show version and exit"),
):
    """
    Coins CLI

    Browse the market, manage your portfolio and trade coins from the terminal.
    """
    if version:
        display.console.print(f"[cyan]{settings.APP_NAME}[/cyan] v{settings.APP_VERSION}")
        raise typer.Exit()

    state.debug = debug
    state.verbose = verbose
    if debug:
        logger_manager.set_level("DEBUG")
    elif verbose:
        logger_manager.set_level("INFO")
    logger.debug(f"Invoked command: {ctx.invoked_subcommand}")

    if ctx.invoked_subcommand is None:
        display.console.print(Panel.fit(
            f"[bold cyan]{settings.APP_NAME}[/bold cyan]\n"
            f"[dim]Version {settings.APP_VERSION}[/dim]\n\n"
            f"[yellow]Use --help to see available commands, or 'coins-cli interactive'[/yellow]",
            box=box.ROUNDED,
            border_style="cyan",
        ))


@app.command("interactive")
def interactive():
    """
    Start interactive mode
    """
    from coins_cli.cli.interactive import start_interactive_shell
    start_interactive_shell()


@app.command("i", hidden=True)
def interactive_alias():
    """
    Alias for interactive
    """
    interactive()


@app.command("dashboard")
def dashboard():
    """
    Open the dashboard (interactive mode)
    """
    interactive()


@app.command("d", hidden=True)
def dashboard_alias():
    """
    Alias for dashboard
    """
    interactive()


app.command("login")(auth.login)
app.command("register")(auth.register)
app.command("logout")(auth.logout)
app.command("whoami")(auth.whoami)
app.command("buy")(trading.buy)
app.command("sell")(trading.sell)

app.add_typer(market.app, name="market", help="Market data commands")
app.add_typer(portfolio.app, name="portfolio", help="Portfolio management commands")
app.add_typer(transactions.app, name="transactions", help="Transaction history commands")
app.add_typer(config.app, name="config", help="Stored settings")


def run():
    """Console-script entry point."""
    app()


if __name__ == "__main__":
    run()
