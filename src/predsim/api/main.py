"""FastAPI backend over the simulated exchange."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from predsim.api.schemas import (
    AnalysisResponse,
    BookmarkResponse,
    BuyRequest,
    CommentRequest,
    CreateMarketResponse,
    HealthResponse,
    MarketsListResponse,
    NotificationRequest,
    PortfolioResponse,
    PositionLineItem,
    SellRequest,
    TradeResponse,
    WatchlistResponse,
)
from predsim.config import get_settings
from predsim.errors import PredSimError
from predsim.exchange import Exchange
from predsim.models import Category, Comment, Market, MarketSentiment, MarketSpec, NotificationPreferences, TradeActivity, User
from predsim.trading import TradeReceipt

log = structlog.get_logger(__name__)

# Set by run_api() so lifespan opens the configured store and runs the simulator.
_run_with_simulation = True
_config_profile: str | None = None

router = APIRouter()


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


def _exchange(request: Request) -> Exchange:
    return request.app.state.exchange


def _trade_response(receipt: TradeReceipt) -> TradeResponse:
    return TradeResponse(
        side=receipt.side,
        market_id=receipt.market_id,
        outcome_id=receipt.outcome_id,
        amount=receipt.amount,
        shares=receipt.shares,
        price=receipt.price,
        new_price=receipt.new_price,
        balance=receipt.balance,
        position=receipt.position,
    )


def create_app(exchange: Exchange | None = None, simulate: bool | None = None) -> FastAPI:
    """Build the API. With no exchange, lifespan opens one from config and closes it on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = exchange is None
        ex = Exchange.open(get_settings(_config_profile)) if owned else exchange
        app.state.exchange = ex
        if (_run_with_simulation if simulate is None else simulate):
            ex.start_simulation()
        log.info("api_started", markets=len(ex.markets), simulator=ex.simulator.running)
        yield
        if owned:
            ex.close()
        else:
            await ex.simulator.aclose()

    app = FastAPI(title="PredSim API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(PredSimError)
    async def _predsim_error(request: Request, exc: PredSimError) -> JSONResponse:
        return _error_json(exc.code, str(exc), getattr(exc, "status_code", 400))

    app.include_router(router)
    return app


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    ex = _exchange(request)
    return HealthResponse(
        status="ok",
        markets=len(ex.markets),
        simulator_running=ex.simulator.running,
        connected=ex.ledger.is_connected,
    )


@router.get("/markets", response_model=MarketsListResponse)
def markets_list(
    request: Request,
    tab: str = Query("all", description="all, watchlist, politics, sports, business"),
    category: Category | None = None,
    tag: str | None = None,
    search: str | None = None,
    sort_by: str = Query("volume", description="volume or newest"),
):
    """List markets filtered by tab/category/tag/search and sorted by volume or newest."""
    try:
        markets = _exchange(request).query_markets(
            tab=tab, category=category, tag=tag, search=search, sort_by=sort_by
        )
    except ValueError as e:
        return _error_json("invalid_query", str(e), 400)
    return MarketsListResponse(markets=markets, total=len(markets))


@router.post("/markets", response_model=CreateMarketResponse, status_code=201)
def markets_create(request: Request, spec: MarketSpec) -> CreateMarketResponse:
    return CreateMarketResponse(market_id=_exchange(request).create_market(spec))


@router.get("/markets/{market_id}", response_model=Market)
def market_detail(request: Request, market_id: str):
    market = _exchange(request).get_market(market_id)
    if market is None:
        return _error_json("not_found", f"Market not found: {market_id}")
    return market


@router.get("/markets/{market_id}/sentiment", response_model=MarketSentiment)
async def market_sentiment(request: Request, market_id: str):
    result = await _exchange(request).market_sentiment(market_id)
    if result is None:
        return _error_json("not_found", f"Market not found: {market_id}")
    return result


@router.get("/markets/{market_id}/analysis", response_model=AnalysisResponse)
async def market_analysis(request: Request, market_id: str):
    text = await _exchange(request).market_analysis(market_id)
    if text is None:
        return _error_json("not_found", f"Market not found: {market_id}")
    return AnalysisResponse(market_id=market_id, analysis=text)


@router.get("/markets/{market_id}/comments", response_model=list[Comment])
def comments_list(request: Request, market_id: str):
    ex = _exchange(request)
    if ex.get_market(market_id) is None:
        return _error_json("not_found", f"Market not found: {market_id}")
    return ex.get_comments(market_id)


@router.post("/markets/{market_id}/comments", response_model=Comment, status_code=201)
def comments_add(request: Request, market_id: str, body: CommentRequest):
    ex = _exchange(request)
    if ex.get_market(market_id) is None:
        return _error_json("not_found", f"Market not found: {market_id}")
    return ex.add_comment(market_id, body.text)


@router.get("/markets/{market_id}/activity", response_model=list[TradeActivity])
def activity_list(request: Request, market_id: str, limit: int = Query(20, ge=1, le=50)):
    return _exchange(request).recent_activity(market_id, limit)


@router.get("/user", response_model=User)
def user_get(request: Request) -> User:
    return _exchange(request).get_user()


@router.post("/user/connect", response_model=User)
async def user_connect(request: Request) -> User:
    return await _exchange(request).connect()


@router.post("/user/disconnect", response_model=User)
def user_disconnect(request: Request) -> User:
    return _exchange(request).disconnect()


@router.put("/user/notifications", response_model=NotificationPreferences)
def user_notifications(request: Request, body: NotificationRequest) -> NotificationPreferences:
    return _exchange(request).set_notification_preference(body.key, body.value)


@router.post("/trades/buy", response_model=TradeResponse)
def trade_buy(request: Request, body: BuyRequest) -> TradeResponse:
    return _trade_response(_exchange(request).buy(body.market_id, body.outcome_id, body.amount))


@router.post("/trades/sell", response_model=TradeResponse)
def trade_sell(request: Request, body: SellRequest) -> TradeResponse:
    return _trade_response(_exchange(request).sell(body.market_id, body.outcome_id, body.percent))


@router.get("/portfolio", response_model=PortfolioResponse)
def portfolio(request: Request) -> PortfolioResponse:
    summary = _exchange(request).portfolio()
    return PortfolioResponse(
        cash=summary.cash,
        portfolio_value=summary.portfolio_value,
        invested=summary.invested,
        total_pnl=summary.total_pnl,
        pnl_pct=summary.pnl_pct,
        net_worth=summary.net_worth,
        positions=[
            PositionLineItem(
                market_id=line.market_id,
                question=line.question,
                outcome_id=line.outcome_id,
                outcome_name=line.outcome_name,
                shares=line.shares,
                avg_price=line.avg_price,
                price=line.price,
                current_value=line.current_value,
                pnl=line.pnl,
                pnl_pct=line.pnl_pct,
            )
            for line in summary.lines
        ],
    )


@router.get("/watchlist", response_model=WatchlistResponse)
def watchlist(request: Request) -> WatchlistResponse:
    return WatchlistResponse(market_ids=sorted(_exchange(request).bookmarks()))


@router.post("/watchlist/{market_id}", response_model=BookmarkResponse)
def watchlist_toggle(request: Request, market_id: str) -> BookmarkResponse:
    return BookmarkResponse(market_id=market_id, bookmarked=_exchange(request).toggle_bookmark(market_id))


app = create_app()


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    simulate: bool = True,
    profile: str | None = None,
) -> None:
    global _run_with_simulation, _config_profile
    _run_with_simulation = simulate
    _config_profile = profile
    import uvicorn
    uvicorn.run("predsim.api.main:app", host=host, port=port, reload=False)
