"""FastAPI application for the paper trading simulator.

Users hold a virtual cash balance and coin holdings and place simulated
orders at client-supplied prices. The database handle and every store are
created in the lifespan handler, kept on ``app.state`` and released on
shutdown.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import (
    create_access_token,
    get_current_account,
    get_current_account_id,
    hash_password,
    verify_password,
)
from api.dependencies import (
    get_aggregator,
    get_config,
    get_ledger,
    get_market_client,
    get_trade_store,
)
from api.market import MarketDataClient
from api.schemas import (
    AuthResponse,
    CoinPrice,
    HealthResponse,
    LoginRequest,
    NewsItem,
    PortfolioResponse,
    ProfileResponse,
    SignupRequest,
    TradeRecordResponse,
    TradeRequest,
    UserSummary,
)
from trading.aggregator import ProfileAggregator
from trading.config import TradingConfig, load_config
from trading.db.session import DatabaseSession
from trading.errors import (
    AccountNotFound,
    ConcurrencyConflict,
    EmailAlreadyRegistered,
    StorageUnavailable,
    TradeRejected,
)
from trading.ledger import AccountLedger
from trading.logging import configure_logging
from trading.models.account import Account
from trading.models.trade import Order
from trading.trade_store import TradeRecordStore

logger = logging.getLogger(__name__)

system_router = APIRouter(tags=["System"])
auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])
portfolio_router = APIRouter(prefix="/api", tags=["Portfolio"])
market_router = APIRouter(prefix="/api/market", tags=["Market"])


def _storage_error(e: StorageUnavailable) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Storage unavailable: {e!s}",
    )


def _user_summary(account: Account) -> UserSummary:
    return UserSummary(
        id=account.id,
        name=account.name,
        email=account.email,
        balance=float(account.balance),
        holdings={k: float(v) for k, v in account.holdings.items()},
    )


@system_router.get("/", response_model=HealthResponse)
def root() -> HealthResponse:
    return HealthResponse()


@system_router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Check API health status."""
    return HealthResponse(status="healthy")


@auth_router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
def signup(
    request: SignupRequest,
    config: TradingConfig = Depends(get_config),
    ledger: AccountLedger = Depends(get_ledger),
) -> AuthResponse:
    """Create an account with the starting balance and return a token.

    Raises:
        HTTPException: 400 on missing fields, 409 if the email is taken.
    """
    if not request.name or not request.email or not request.password:
        raise HTTPException(status_code=400, detail="All fields are required")

    try:
        account = ledger.create_account(
            name=request.name,
            email=request.email,
            password_hash=hash_password(request.password),
        )
    except EmailAlreadyRegistered as e:
        raise HTTPException(status_code=409, detail="Email already registered") from e
    except StorageUnavailable as e:
        raise _storage_error(e) from e

    return AuthResponse(
        token=create_access_token(account, config), user=_user_summary(account)
    )


@auth_router.post("/login", response_model=AuthResponse, summary="Log in")
def login(
    request: LoginRequest,
    config: TradingConfig = Depends(get_config),
    ledger: AccountLedger = Depends(get_ledger),
) -> AuthResponse:
    """Exchange email and password for a token.

    Raises:
        HTTPException: 400 on missing fields, 401 on bad credentials.
    """
    if not request.email or not request.password:
        raise HTTPException(
            status_code=400, detail="Email and password are required"
        )

    try:
        account = ledger.get_account_by_email(request.email)
        hashed = ledger.get_password_hash(account.id) if account else None
    except StorageUnavailable as e:
        raise _storage_error(e) from e

    if account is None or not verify_password(request.password, hashed):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )

    return AuthResponse(
        token=create_access_token(account, config), user=_user_summary(account)
    )


@portfolio_router.get(
    "/portfolio",
    response_model=PortfolioResponse,
    summary="Current balance, holdings and history",
)
def get_portfolio(account: Account = Depends(get_current_account)) -> PortfolioResponse:
    return PortfolioResponse.from_view(account.view())


@portfolio_router.post(
    "/trade",
    response_model=PortfolioResponse,
    summary="Execute a simulated trade",
    description=(
        "Buys or sells a coin at the given price. The price is taken as "
        "supplied by the client."
    ),
)
def execute_trade(
    request: TradeRequest,
    account_id: str = Depends(get_current_account_id),
    ledger: AccountLedger = Depends(get_ledger),
) -> PortfolioResponse:
    """Apply a trade to the caller's account.

    Args:
        request: Symbol, side, amount and price.

    Returns:
        PortfolioResponse with the post-trade state.

    Raises:
        HTTPException: 400 with the reject reason if the order is rejected,
            409 on repeated concurrent modification, 503 on storage failure.
    """
    order = Order(
        symbol=request.symbol,
        side=request.side,
        amount=request.amount,
        price=request.price,
    )
    try:
        view = ledger.apply_trade(account_id, order)
    except TradeRejected as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except AccountNotFound as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found"
        ) from e
    except ConcurrencyConflict as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except StorageUnavailable as e:
        raise _storage_error(e) from e

    return PortfolioResponse.from_view(view)


@portfolio_router.get(
    "/trades",
    response_model=list[TradeRecordResponse],
    summary="Most recent trades, newest first",
)
def list_trades(
    account: Account = Depends(get_current_account),
    config: TradingConfig = Depends(get_config),
    trade_store: TradeRecordStore = Depends(get_trade_store),
) -> list[TradeRecordResponse]:
    try:
        records = trade_store.list_by_user(
            account.id, limit=config.trade_history_limit
        )
    except StorageUnavailable as e:
        raise _storage_error(e) from e
    return [TradeRecordResponse.from_record(r) for r in records]


@portfolio_router.get(
    "/profile",
    response_model=ProfileResponse,
    summary="Account details, trade statistics and achievements",
)
def get_profile(
    account: Account = Depends(get_current_account),
    aggregator: ProfileAggregator = Depends(get_aggregator),
) -> ProfileResponse:
    try:
        stats = aggregator.aggregate(account.id)
    except StorageUnavailable as e:
        raise _storage_error(e) from e
    return ProfileResponse.from_account(account, stats)


@market_router.get("/prices", response_model=list[CoinPrice])
def market_prices(
    client: MarketDataClient = Depends(get_market_client),
) -> list[dict]:
    """Current coin prices; static values if the provider is unavailable."""
    return client.get_prices()


@market_router.get("/news", response_model=list[NewsItem])
def market_news(client: MarketDataClient = Depends(get_market_client)) -> list[dict]:
    """Crypto headlines; static items if the provider is unavailable."""
    return client.get_news()


async def _http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid request: {location}: {first.get('msg', '')}"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


def create_app(config: TradingConfig | None = None) -> FastAPI:
    """Build the application.

    Args:
        config: Configuration to use. If None, it is loaded from the
            environment at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the database and build the stores on startup."""
        cfg = config or load_config()
        configure_logging(cfg.log_level)
        logger.info("Starting up - connecting to database...")

        db_session = DatabaseSession(cfg.database_url)
        db_session.create_tables()
        trade_store = TradeRecordStore(db_session, history_limit=cfg.trade_history_limit)

        app.state.config = cfg
        app.state.db_session = db_session
        app.state.trade_store = trade_store
        app.state.ledger = AccountLedger(db_session, trade_store, cfg)
        app.state.aggregator = ProfileAggregator(trade_store)
        app.state.market_client = MarketDataClient(cfg)
        logger.info(f"Ready; tradable symbols: {', '.join(cfg.symbols)}")

        yield

        logger.info("Shutting down...")
        db_session.dispose()

    app = FastAPI(
        title="Paper Trading API",
        description="Simulated crypto trading with a virtual balance",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(system_router)
    app.include_router(auth_router)
    app.include_router(portfolio_router)
    app.include_router(market_router)
    return app


app = create_app()
