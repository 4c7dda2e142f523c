"""
Interactive menu-driven shell
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.text import Text

from coins_cli.cli import display
from coins_cli.cli.commands import auth as auth_commands
from coins_cli.cli.commands import market as market_commands
from coins_cli.cli.commands import portfolio as portfolio_commands
from coins_cli.cli.commands import trading as trading_commands
from coins_cli.cli.commands import transactions as transaction_commands
from coins_cli.cli.context import currency
from coins_cli.cli.errors import LOGIN_MESSAGES, REGISTER_MESSAGES, TRADE_MESSAGES, render_error
from coins_cli.config.settings import settings
from coins_cli.core.enums import ExportFormat, SortField, TimeRange, TransactionType
from coins_cli.core.exceptions import CoinsCliError
from coins_cli.logger import logger
from coins_cli.services.auth_middleware import get_auth_middleware

ABORT = "q"


class Abort(Exception):
    """User typed ``q`` at a prompt."""


@dataclass(frozen=True)
class MenuOption:
    """One numbered entry of a menu."""

    key: str
    label: str
    description: str = ""


MAIN_MENU: List[MenuOption] = [
    MenuOption("market", "Market Data", "Coins, prices and market statistics"),
    MenuOption("portfolio", "Portfolio", "Holdings and performance"),
    MenuOption("trading", "Trading", "Buy and sell coins"),
    MenuOption("transactions", "Transaction History", "Past trades and exports"),
    MenuOption("account", "Account Settings", "User info and logout"),
    MenuOption("logout", "Logout"),
    MenuOption("exit", "Exit"),
]

MARKET_MENU: List[MenuOption] = [
    MenuOption("list", "List All Coins"),
    MenuOption("search", "Search Coins"),
    MenuOption("history", "Coin Price History"),
    MenuOption("overview", "Market Overview"),
    MenuOption("stats", "Market Statistics"),
    MenuOption("back", "Back to Main Menu"),
]

PORTFOLIO_MENU: List[MenuOption] = [
    MenuOption("view", "View Portfolio"),
    MenuOption("summary", "Portfolio Summary"),
    MenuOption("filter", "Filter Portfolio"),
    MenuOption("export", "Export Portfolio"),
    MenuOption("back", "Back to Main Menu"),
]

TRADING_MENU: List[MenuOption] = [
    MenuOption("buy", "Buy Coins"),
    MenuOption("sell", "Sell Coins"),
    MenuOption("back", "Back to Main Menu"),
]

TRANSACTIONS_MENU: List[MenuOption] = [
    MenuOption("history", "View History"),
    MenuOption("filter", "Filter by Type"),
    MenuOption("export", "Export History"),
    MenuOption("back", "Back to Main Menu"),
]

ACCOUNT_MENU: List[MenuOption] = [
    MenuOption("info", "Show User Info"),
    MenuOption("logout", "Logout"),
    MenuOption("back", "Back to Main Menu"),
]

TIME_RANGE_LABELS: Dict[TimeRange, str] = {
    TimeRange.TEN_MINUTES: "10 Minutes",
    TimeRange.THIRTY_MINUTES: "30 Minutes",
    TimeRange.ONE_HOUR: "1 Hour",
    TimeRange.TWO_HOURS: "2 Hours",
    TimeRange.TWELVE_HOURS: "12 Hours",
    TimeRange.ONE_DAY: "24 Hours",
    TimeRange.ALL: "All Time",
}


class InteractiveShell:
    """
    Sequential menu loop over the command actions.

    Every action runs to completion before the next prompt; failures are
    rendered and the loop carries on.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or display.console
        self.auth = get_auth_middleware()
        self.running = False
        self.handlers: Dict[str, Callable[[], None]] = {
            "market": self.market_menu,
            "portfolio": self.portfolio_menu,
            "trading": self.trading_menu,
            "transactions": self.transactions_menu,
            "account": self.account_menu,
            "logout": self.logout,
            "exit": self.stop,
        }

    def display_banner(self):
        banner = Text()
        banner.append(f"{settings.APP_NAME}\n", style="yellow bold")
        banner.append("Interactive Trading Terminal", style="green")
        self.console.print(Panel.fit(banner, box=box.ROUNDED, border_style="cyan"))
        self.console.print(f"[dim]Version {settings.APP_VERSION}[/dim]\n")

    def display_user_info(self):
        session = self.auth.get_current_user()
        self.console.print(Panel.fit(
            f"[bold]User:[/bold] {session.username or '-'}\n"
            f"[bold]Funds:[/bold] {display.format_currency(session.funds, currency())}",
            box=box.ROUNDED,
            border_style="blue",
        ))

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def choose(self, title: str, options: List[MenuOption]) -> MenuOption:
        """Print a numbered menu and return the picked option."""
        display.subheader(title)
        for index, option in enumerate(options, start=1):
            suffix = f" [dim]- {option.description}[/dim]" if option.description else ""
            self.console.print(f"  [cyan]{index}.[/cyan] {option.label}{suffix}")
        picked = Prompt.ask(
            "Select an option",
            choices=[str(i) for i in range(1, len(options) + 1)],
            show_choices=False,
        )
        return options[int(picked) - 1]

    def ask(self, label: str, default: Optional[str] = None) -> str:
        """Prompt for text; ``q`` aborts the current action."""
        value = Prompt.ask(f"{label} [dim]({ABORT} to cancel)[/dim]", default=default)
        if value is None or value.strip().lower() == ABORT:
            raise Abort()
        return value.strip()

    def choose_time_range(self) -> TimeRange:
        options = [MenuOption(tr.value, label) for tr, label in TIME_RANGE_LABELS.items()]
        return TimeRange(self.choose("Time range", options).key)

    def choose_format(self) -> ExportFormat:
        options = [MenuOption(ExportFormat.JSON.value, "JSON"), MenuOption(ExportFormat.CSV.value, "CSV")]
        return ExportFormat(self.choose("Export format", options).key)

    def execute(
        self,
        action: Callable[[], Awaitable[Any]],
        failure: str,
        messages: Optional[Dict[int, str]] = None,
    ) -> Any:
        """Run one action; errors are rendered and swallowed so the loop continues."""
        try:
            return asyncio.run(action())
        except CoinsCliError as e:
            render_error(e, failure, messages)
        except Abort:
            display.info("Cancelled")
        except EOFError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error: {failure}: {e!r}")
            logger.opt(exception=e).debug("Traceback of the unexpected error")
            render_error(e, failure, messages)
        return None

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def login(self) -> bool:
        """Gate the shell behind a session, offering login or registration."""
        if self.auth.is_authenticated() and self.auth.validate_token(self.auth.get_current_user().token):
            return True
        if self.auth.is_authenticated():
            self.auth.clear_auth()
            display.warning("Your session has expired")

        self.console.print("[yellow]You are not logged in.[/yellow]")
        if not Confirm.ask("Would you like to login now?", default=True):
            if Confirm.ask("Would you like to register a new account?", default=False):
                return self.register()
            return False

        for attempt in range(3):
            email = Prompt.ask("[cyan]Email[/cyan]")
            password = Prompt.ask("[cyan]Password[/cyan]", password=True)
            self.execute(lambda: auth_commands.login_action(email, password), "Login failed", LOGIN_MESSAGES)
            if self.auth.is_authenticated():
                return True
            logger.info(f"Interactive login attempt {attempt + 1} failed")
        display.error("Maximum login attempts exceeded")
        return False

    def register(self) -> bool:
        username = Prompt.ask("[cyan]Username[/cyan]")
        email = Prompt.ask("[cyan]Email[/cyan]")
        password = Prompt.ask("[cyan]Password[/cyan]", password=True)
        self.execute(
            lambda: auth_commands.register_action(username, email, password),
            "Registration failed",
            REGISTER_MESSAGES,
        )
        return self.auth.is_authenticated()

    def logout(self):
        if Confirm.ask("Are you sure you want to logout?", default=True):
            username = self.auth.get_current_user().username
            self.auth.clear_auth()
            display.success("Logged out successfully")
            logger.info(f"User logged out: {username}")
            self.running = False

    def stop(self):
        self.running = False

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------

    def market_menu(self):
        option = self.choose("Market Data", MARKET_MENU)
        if option.key == "list":
            self.execute(market_commands.list_action, "Failed to fetch market data")
        elif option.key == "search":
            self.execute(lambda: market_commands.search_action(self.ask("Search query")), "Failed to search coins")
        elif option.key == "history":
            self.execute(self._coin_history, "Failed to fetch price history", {404: "Coin not found"})
        elif option.key == "overview":
            time_range = self.choose_time_range()
            self.execute(lambda: market_commands.overview_action(time_range), "Failed to fetch market overview")
        elif option.key == "stats":
            self.execute(market_commands.stats_action, "Failed to fetch market statistics")

    async def _coin_history(self):
        coin_id = self.ask("Coin ID")
        time_range = self.choose_time_range()
        return await market_commands.history_action(coin_id, time_range=time_range)

    def portfolio_menu(self):
        option = self.choose("Portfolio", PORTFOLIO_MENU)
        if option.key == "view":
            self.execute(portfolio_commands.view_action, "Failed to fetch portfolio data")
        elif option.key == "summary":
            self.execute(portfolio_commands.summary_action, "Failed to fetch portfolio summary")
        elif option.key == "filter":
            self.execute(self._portfolio_filter, "Failed to filter portfolio")
        elif option.key == "export":
            fmt = self.choose_format()
            filename = Prompt.ask("Filename (without extension, blank for default)", default="")
            self.execute(
                lambda: portfolio_commands.export_action(fmt, filename or None),
                "Failed to export portfolio",
            )

    async def _portfolio_filter(self):
        symbol = Prompt.ask("Symbol contains (blank for all)", default="")
        which = self.choose("Positions", [
            MenuOption("all", "All positions"),
            MenuOption("profitable", "Show only profitable positions"),
            MenuOption("losing", "Show only losing positions"),
        ])
        sort = self.choose("Sort by", [
            MenuOption(SortField.VALUE.value, "Value (highest first)"),
            MenuOption(SortField.PROFIT.value, "Profit/Loss (highest first)"),
            MenuOption(SortField.QUANTITY.value, "Quantity (highest first)"),
        ])
        return await portfolio_commands.filter_action(
            symbol or None,
            profitable=which.key == "profitable",
            losing=which.key == "losing",
            sort=SortField(sort.key),
        )

    def trading_menu(self):
        option = self.choose("Trading", TRADING_MENU)
        if option.key == "buy":
            self.execute(self._buy, "Transaction failed", TRADE_MESSAGES)
        elif option.key == "sell":
            self.execute(self._sell, "Transaction failed", TRADE_MESSAGES)

    async def _buy(self):
        await market_commands.list_action()
        coin_id = self.ask("Coin ID to buy")
        amount = self.ask("Amount")
        return await trading_commands.trade_action(TransactionType.BUY, coin_id, amount)

    async def _sell(self):
        portfolio = await portfolio_commands.fetch_portfolio()
        if not portfolio.holdings:
            display.info("You have no holdings to sell")
            return None
        self.console.print(portfolio_commands.holdings_table(
            portfolio.holdings, currency(), title="Your Holdings", with_ids=True
        ))
        coin_id = self.ask("Coin ID to sell")
        amount = self.ask("Amount")
        return await trading_commands.trade_action(TransactionType.SELL, coin_id, amount)

    def transactions_menu(self):
        option = self.choose("Transaction History", TRANSACTIONS_MENU)
        if option.key == "history":
            limit = IntPrompt.ask("Number of transactions", default=10)
            self.execute(lambda: transaction_commands.history_action(limit), "Failed to fetch transaction history")
        elif option.key == "filter":
            picked = self.choose("Transaction type", [
                MenuOption(TransactionType.BUY.value, "Buy transactions"),
                MenuOption(TransactionType.SELL.value, "Sell transactions"),
            ])
            self.execute(
                lambda: transaction_commands.history_action(50, TransactionType(picked.key)),
                "Failed to fetch transaction history",
            )
        elif option.key == "export":
            fmt = self.choose_format()
            limit = IntPrompt.ask("Number of transactions", default=100)
            filename = Prompt.ask("Filename (without extension, blank for default)", default="")
            self.execute(
                lambda: transaction_commands.export_action(fmt, limit, filename or None),
                "Failed to export transaction history",
            )

    def account_menu(self):
        option = self.choose("Account Settings", ACCOUNT_MENU)
        if option.key == "info":
            session = self.auth.get_current_user()
            self.console.print(f"  Username: {session.username or '-'}")
            self.console.print(f"  User ID: {session.user_id}")
            self.console.print(f"  Funds: {display.format_currency(session.funds, currency())}")
        elif option.key == "logout":
            self.logout()

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run(self):
        """Run the shell until the user exits, logs out or closes stdin."""
        self.display_banner()
        try:
            if not self.login():
                display.info("Goodbye!")
                return

            self.running = True
            while self.running:
                try:
                    self.console.print()
                    self.display_user_info()
                    option = self.choose("Main Menu", MAIN_MENU)
                    self.handlers[option.key]()
                except KeyboardInterrupt:
                    self.console.print("\n[yellow]Back to main menu (choose Exit to quit)[/yellow]")
                    continue
                except EOFError:
                    raise
                except Exception as e:
                    logger.error(f"Error in interactive loop: {e!r}")
                    self.console.print(f"[red]Error: {e}[/red]")
                    continue
        except EOFError:
            self.console.print()
        finally:
            self.console.print("\n[dim]Session ended[/dim]\n")
            logger.info("Interactive shell ended")


def start_interactive_shell():
    """Start the interactive shell"""
    shell = InteractiveShell()
    shell.run()
