"""Textual TUI dashboard - wallet, live market table, quick trades."""

from __future__ import annotations

from typing import Any

from textual.app import App, ComposeResult
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Static

from predsim.errors import TradeError
from predsim.exchange import Exchange
from predsim.models import YES
from predsim.store.ledger import short_address

QUICK_BUY_USD = 10.0


class WalletPanel(Static):
    """Session, cash and portfolio totals."""

    address = reactive("Disconnected")
    cash = reactive(0.0)
    net_worth = reactive(0.0)
    pnl = reactive(0.0)
    ticks = reactive(0)

    def render(self) -> str:
        return (
            f"[bold]Wallet[/] {self.address}  |  "
            f"Cash: ${self.cash:,.2f}  |  "
            f"Net worth: ${self.net_worth:,.2f}  |  "
            f"PnL: {self.pnl:+,.2f}  |  "
            f"Ticks: {self.ticks}"
        )


class MarketTable(DataTable):
    """Markets with YES price, volume, category and watch flag."""

    def __init__(self, exchange: Exchange, **kwargs: Any) -> None:
        super().__init__(cursor_type="row", **kwargs)
        self._exchange = exchange

    def on_mount(self) -> None:
        self.add_columns("", "Market", "Yes", "No", "Volume", "Category")
        self.refresh_rows()

    def selected_market_id(self) -> str | None:
        if self.row_count == 0:
            return None
        row_key, _ = self.coordinate_to_cell_key(self.cursor_coordinate)
        return row_key.value

    def refresh_rows(self) -> None:
        cursor = self.cursor_row
        self.clear()
        bookmarks = self._exchange.bookmarks()
        for m in self._exchange.query_markets(sort_by="volume"):
            yes, no = m.outcomes
            question = m.question if len(m.question) <= 48 else m.question[:48] + "..."
            self.add_row(
                "*" if m.market_id in bookmarks else "",
                question,
                f"{yes.price * 100:.1f}%",
                f"{no.price * 100:.1f}%",
                f"${m.volume:,.0f}",
                m.category.value,
                key=m.market_id,
            )
        if self.row_count:
            self.move_cursor(row=min(cursor, self.row_count - 1))


class PredSimTUI(App[None]):
    """PredSim TUI - live prices and portfolio."""

    TITLE = "PredSim"
    BINDINGS = [
        ("q", "quit", "Quit"),
        ("c", "connect", "Connect"),
        ("d", "disconnect", "Disconnect"),
        ("b", "buy", f"Buy ${QUICK_BUY_USD:.0f} YES"),
        ("s", "sell", "Sell YES"),
        ("w", "watch", "Watch"),
    ]

    def __init__(self, exchange: Exchange, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._exchange = exchange
        self._dirty = True
        self._unsubscribe = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield WalletPanel(id="wallet")
        yield MarketTable(self._exchange, id="markets")
        yield Footer()

    def on_mount(self) -> None:
        # Subscribing inside the running loop starts the price simulator
        self._unsubscribe = self._exchange.subscribe(self._on_change)
        self.set_interval(0.5, self._refresh)

    def _on_change(self) -> None:
        self._dirty = True

    def _refresh(self) -> None:
        if not self._dirty:
            return
        self._dirty = False
        user = self._exchange.get_user()
        summary = self._exchange.portfolio()
        wallet = self.query_one(WalletPanel)
        wallet.address = short_address(user.address) if user.address else "Disconnected"
        wallet.cash = summary.cash
        wallet.net_worth = summary.net_worth
        wallet.pnl = summary.total_pnl
        wallet.ticks = self._exchange.simulator.tick_count
        self.query_one(MarketTable).refresh_rows()

    async def action_connect(self) -> None:
        user = await self._exchange.connect()
        self.notify(f"Connected {short_address(user.address)}")

    def action_disconnect(self) -> None:
        self._exchange.disconnect()
        self.notify("Disconnected")

    def action_buy(self) -> None:
        market_id = self.query_one(MarketTable).selected_market_id()
        if market_id is None:
            return
        try:
            receipt = self._exchange.buy(market_id, YES, QUICK_BUY_USD)
        except TradeError as e:
            self.notify(str(e), severity="error")
            return
        self.notify(f"Bought {receipt.shares:.2f} YES @ {receipt.price:.3f}")

    def action_sell(self) -> None:
        market_id = self.query_one(MarketTable).selected_market_id()
        if market_id is None:
            return
        try:
            receipt = self._exchange.sell(market_id, YES, 1.0)
        except TradeError as e:
            self.notify(str(e), severity="error")
            return
        self.notify(f"Sold {receipt.shares:.2f} YES for ${receipt.amount:,.2f}")

    def action_watch(self) -> None:
        market_id = self.query_one(MarketTable).selected_market_id()
        if market_id is not None:
            self._exchange.toggle_bookmark(market_id)

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._exchange.close()


def run_tui(settings: Any) -> None:
    """Entry point: open the exchange and run TUI."""
    app = PredSimTUI(Exchange.open(settings))
    app.run()
