"""HTTP smoke tests against the FastAPI app with fake providers."""

import pytest
from fastapi.testclient import TestClient

from signalpro.main import create_app
from signalpro.services.base import ProviderError
from signalpro.services.data_ingestion import MarketDataAggregator
from signalpro.services.signals import TradeSignalService

from conftest import FakeAdapter, SelectiveAdapter, make_config, make_series


def client_for(*adapters) -> TestClient:
    app = create_app()
    aggregator = MarketDataAggregator(
        make_config(*(a.key for a in adapters)),
        adapters={a.key: a for a in adapters},
    )
    app.state.market_data = aggregator
    app.state.trade_signals = TradeSignalService(aggregator)
    return TestClient(app)


@pytest.fixture
def client() -> TestClient:
    return client_for(FakeAdapter("yahoo"), FakeAdapter("finnhub"))


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestMarketEndpoints:
    def test_market_data(self, client):
        response = client.get("/api/v1/market/aapl")

        assert response.status_code == 200
        body = response.json()
        assert body["symbol"] == "AAPL"
        assert body["provider"] == "yahoo"
        assert len(body["historical"]) == 60

    def test_bad_period(self, client):
        response = client.get("/api/v1/market/AAPL", params={"period": "10y"})
        assert response.status_code == 400

    def test_all_providers_failed(self):
        client = client_for(
            FakeAdapter("yahoo", error=ProviderError("yahoo", "down")),
            FakeAdapter("finnhub", error=ProviderError("finnhub", "bad key")),
        )

        response = client.get("/api/v1/market/AAPL")

        assert response.status_code == 502
        errors = response.json()["detail"]["errors"]
        assert errors == [
            {"provider": "yahoo", "error": "down"},
            {"provider": "finnhub", "error": "bad key"},
        ]

    def test_providers_and_cache(self, client):
        client.get("/api/v1/market/AAPL")

        body = client.get("/api/v1/market/providers").json()
        assert [p["name"] for p in body["providers"]] == ["yahoo", "finnhub"]
        assert body["cache"]["size"] == 1

        assert client.post("/api/v1/market/clear-cache").status_code == 200
        assert client.get("/api/v1/market/providers").json()["cache"]["size"] == 0


class TestIndicatorEndpoints:
    def test_calculate(self, uptrend_series):
        client = client_for(FakeAdapter("yahoo"))
        payload = {"data": [bar.model_dump(mode="json") for bar in reversed(uptrend_series)]}

        response = client.post("/api/v1/indicators/calculate", json=payload)

        assert response.status_code == 200
        body = response.json()
        assert body["symbol"] is None
        assert body["indicators"]["rsi"]["value"] == 100.0
        assert "RSI" in {s["indicator"] for s in body["signals"]}

    def test_calculate_short_series(self):
        client = client_for(FakeAdapter("yahoo"))
        payload = {"data": [bar.model_dump(mode="json") for bar in make_series([10.0] * 5)]}

        body = client.post("/api/v1/indicators/calculate", json=payload).json()

        assert body["indicators"] is None
        assert body["signals"] == []

    def test_calculate_rejects_repeated_dates(self, uptrend_series):
        client = client_for(FakeAdapter("yahoo"))
        bars = [bar.model_dump(mode="json") for bar in uptrend_series for _ in range(2)]

        response = client.post("/api/v1/indicators/calculate", json={"data": bars})

        assert response.status_code == 400
        assert "Duplicate" in response.json()["detail"]

    def test_calculate_rejects_invalid_bar(self):
        client = client_for(FakeAdapter("yahoo"))
        bar = make_series([10.0])[0].model_dump(mode="json")
        bar["high"] = 1.0

        response = client.post("/api/v1/indicators/calculate", json={"data": [bar]})
        assert response.status_code == 422

    def test_signals_for_symbol(self, client):
        response = client.get("/api/v1/indicators/signals/msft", params={"period": "3mo"})

        assert response.status_code == 200
        assert response.json()["symbol"] == "MSFT"


class TestSignalEndpoints:
    def test_trade_signal(self, client):
        response = client.get("/api/v1/signals/AAPL")

        assert response.status_code == 200
        body = response.json()
        assert body["symbol"] == "AAPL"
        assert body["ai_analysis"]["source"] == "fallback"
        assert body["summary"]["signal"] in {"BUY", "SELL", "HOLD"}

    def test_batch_isolates_failures(self):
        client = client_for(SelectiveAdapter("yahoo", failing={"BAD"}))

        response = client.post("/api/v1/signals/batch", json={"symbols": ["aapl", "bad"]})

        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["symbol"] == "AAPL"
        assert "summary" in results[0]
        assert results[1]["symbol"] == "BAD"
        assert "error" in results[1]

    def test_batch_requires_symbols(self, client):
        response = client.post("/api/v1/signals/batch", json={"symbols": []})
        assert response.status_code == 422

    def test_signal_cache_endpoints(self, client):
        client.get("/api/v1/signals/AAPL")
        assert client.get("/api/v1/signals/cache/stats").json()["size"] == 1

        client.post("/api/v1/signals/cache/clear")
        assert client.get("/api/v1/signals/cache/stats").json()["size"] == 0

    def test_market_failure_maps_to_502(self):
        client = client_for(FakeAdapter("yahoo", error=ProviderError("yahoo", "down")))
        assert client.get("/api/v1/signals/AAPL").status_code == 502
