"""Best-effort market prices and crypto news.

Both feeds fall back to a static payload whenever the upstream provider
errors, is unreachable or returns nothing usable. Failures are logged and
never surfaced to the client. Nothing here is consulted when a trade is
applied.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import requests

from trading.config import TradingConfig

logger = logging.getLogger(__name__)

NEWS_API_URL = "https://newsapi.org/v2/everything"
NEWS_QUERY = "crypto OR bitcoin OR ethereum"
NEWS_PAGE_SIZE = 8

FALLBACK_PRICES: list[dict[str, Any]] = [
    {
        "id": "bitcoin",
        "symbol": "BTC",
        "name": "Bitcoin",
        "price": 67000,
        "change24h": 2.35,
        "marketCap": 1_300_000_000_000,
        "sparkline": [],
    },
    {
        "id": "ethereum",
        "symbol": "ETH",
        "name": "Ethereum",
        "price": 3200,
        "change24h": -1.1,
        "marketCap": 380_000_000_000,
        "sparkline": [],
    },
    {
        "id": "tether",
        "symbol": "USDT",
        "name": "Tether",
        "price": 1,
        "change24h": 0,
        "marketCap": 110_000_000_000,
        "sparkline": [],
    },
]


def fallback_news() -> list[dict[str, Any]]:
    now = datetime.now(timezone.utc).isoformat()
    return [
        {
            "title": "Paper trading market update",
            "description": (
                "Practice trading with simulated BTC, ETH, USDT, BNB and SOL "
                "while tracking your portfolio in real time."
            ),
            "source": "Paper Trading News Bot",
            "url": None,
            "publishedAt": now,
        },
        {
            "title": "Market education tip",
            "description": (
                "Watch how your simulated portfolio value responds to price "
                "swings without risking real capital."
            ),
            "source": "Paper Trading Academy",
            "url": None,
            "publishedAt": now,
        },
    ]


def _map_coin(coin: dict[str, Any]) -> dict[str, Any]:
    sparkline = coin.get("sparkline_in_7d") or {}
    return {
        "id": coin["id"],
        "symbol": str(coin["symbol"]).upper(),
        "name": coin["name"],
        "price": coin.get("current_price"),
        "change24h": coin.get("price_change_percentage_24h"),
        "marketCap": coin.get("market_cap"),
        "sparkline": sparkline.get("price") or [],
    }


def _map_article(article: dict[str, Any]) -> dict[str, Any]:
    source = article.get("source") or {}
    return {
        "title": article.get("title") or "",
        "description": article.get("description") or article.get("content") or "",
        "source": source.get("name") or "NewsAPI",
        "url": article.get("url"),
        "publishedAt": article.get("publishedAt"),
    }


class MarketDataClient:
    """Fetches coin prices from CoinGecko and headlines from NewsAPI."""

    def __init__(self, config: TradingConfig):
        self.prices_url = config.market_prices_url
        self.news_api_key = config.news_api_key
        self.timeout = config.market_timeout_seconds

    def get_prices(self) -> list[dict[str, Any]]:
        """Current prices for the tracked coins, or the static fallback."""
        try:
            response = requests.get(self.prices_url, timeout=self.timeout)
            response.raise_for_status()
            return [_map_coin(coin) for coin in response.json()]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to fetch market data, using fallback: {e}")
            return [dict(coin) for coin in FALLBACK_PRICES]

    def get_news(self) -> list[dict[str, Any]]:
        """Today's crypto headlines, or the static fallback."""
        if not self.news_api_key:
            logger.warning("NEWS_API_KEY not configured, using fallback news")
            return fallback_news()

        params = {
            "q": NEWS_QUERY,
            "from": datetime.now(timezone.utc).date().isoformat(),
            "language": "en",
            "sortBy": "publishedAt",
            "pageSize": NEWS_PAGE_SIZE,
            "apiKey": self.news_api_key,
        }
        try:
            response = requests.get(NEWS_API_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            articles = response.json().get("articles") or []
            items = [_map_article(a) for a in articles]
        except (requests.RequestException, ValueError, AttributeError, TypeError) as e:
            logger.warning(f"Failed to fetch news, using fallback: {e}")
            return fallback_news()

        if not items:
            logger.info("News provider returned no articles, using fallback")
            return fallback_news()
        return items
