"""Tests for provider payload normalization and futures metadata."""

from datetime import datetime, timedelta, timezone

import pytest

from signalpro.schemas.market import Period
from signalpro.services.base import ProviderError, RateLimitError
from signalpro.services.data_ingestion import get_contract_info, is_futures_symbol, normalize_series
from signalpro.services.data_ingestion.interface import parse_float
from signalpro.services.data_ingestion.alpha_vantage_adapter import parse_alpha_vantage
from signalpro.services.data_ingestion.finnhub_adapter import parse_finnhub
from signalpro.services.data_ingestion.iex_adapter import parse_iex
from signalpro.services.data_ingestion.polygon_adapter import parse_polygon
from signalpro.services.data_ingestion.yahoo_adapter import parse_yahoo

NOW = datetime(2024, 6, 30, tzinfo=timezone.utc)


def day(offset: int) -> datetime:
    """Midnight UTC `offset` days before NOW."""
    return NOW - timedelta(days=offset)


def row(offset: int, close: float, volume: int = 1000) -> dict:
    return {
        "date": day(offset),
        "open": close,
        "high": close + 1,
        "low": close - 1,
        "close": close,
        "volume": volume,
    }


class TestNormalizeSeries:
    def test_sorts_ascending(self):
        series = normalize_series("test", [row(1, 12), row(3, 10), row(2, 11)], Period.M1, NOW)
        assert [bar.close for bar in series] == [10, 11, 12]

    def test_duplicate_dates_keep_last(self):
        series = normalize_series("test", [row(2, 10), row(1, 11), row(2, 15)], Period.M1, NOW)
        assert [bar.close for bar in series] == [15, 11]

    def test_trims_to_window(self):
        series = normalize_series("test", [row(40, 9), row(5, 10)], Period.M1, NOW)
        assert [bar.close for bar in series] == [10]

    def test_naive_dates_become_utc(self):
        raw = row(1, 10)
        raw["date"] = raw["date"].replace(tzinfo=None)
        series = normalize_series("test", [raw], Period.M1, NOW)
        assert series[0].date.tzinfo == timezone.utc

    def test_invalid_bar_fails_the_series(self):
        bad = row(1, 10)
        bad["high"] = 5  # below the close
        with pytest.raises(ProviderError) as exc_info:
            normalize_series("test", [row(2, 10), bad], Period.M1, NOW)
        assert exc_info.value.provider == "test"

    def test_empty_history(self):
        with pytest.raises(ProviderError, match="Empty history"):
            normalize_series("test", [row(400, 10)], Period.M1, NOW)

    def test_missing_volume_is_zero(self):
        raw = row(1, 10)
        raw["volume"] = None
        assert normalize_series("test", [raw], Period.M1, NOW)[0].volume == 0


class TestParseFloat:
    def test_strips_percent(self):
        assert parse_float("test", " 1.25% ", "change percent") == 1.25

    def test_missing(self):
        with pytest.raises(ProviderError, match="Missing field"):
            parse_float("test", None, "price")

    def test_garbage(self):
        with pytest.raises(ProviderError, match="Unparseable"):
            parse_float("test", "n/a", "price")


class TestYahoo:
    def test_quote_from_info(self):
        rows = [row(2, 100), row(1, 102)]
        info = {"currentPrice": 105.0, "previousClose": 100.0, "marketCap": 1e12, "beta": 1.2}

        result = parse_yahoo("AAPL", rows, info, Period.M1, NOW)

        assert result.quote.current_price == 105.0
        assert result.quote.change == pytest.approx(5.0)
        assert result.quote.change_percent == pytest.approx(5.0)
        assert result.quote.market_cap == 1e12
        assert result.quote.volume == 1000
        assert len(result.series) == 2

    def test_quote_falls_back_to_history(self):
        result = parse_yahoo("AAPL", [row(2, 100), row(1, 110)], {}, Period.M1, NOW)

        assert result.quote.current_price == 110
        assert result.quote.change == pytest.approx(10.0)
        assert result.quote.change_percent == pytest.approx(10.0)


def alpha_series(*bars):
    return {
        "Time Series (Daily)": {
            day(offset).strftime("%Y-%m-%d"): {
                "1. open": str(close),
                "2. high": str(close + 1),
                "3. low": str(close - 1),
                "4. close": str(close),
                "5. volume": "5000",
            }
            for offset, close in bars
        }
    }


ALPHA_QUOTE = {
    "Global Quote": {
        "01. symbol": "IBM",
        "05. price": "170.50",
        "06. volume": "3000000",
        "09. change": "1.50",
        "10. change percent": "0.8876%",
    }
}


class TestAlphaVantage:
    def test_parses_strings(self):
        result = parse_alpha_vantage(
            "IBM", ALPHA_QUOTE, alpha_series((2, 168), (1, 170)), Period.M1, NOW
        )

        assert result.quote.symbol == "IBM"
        assert result.quote.current_price == 170.5
        assert result.quote.change_percent == pytest.approx(0.8876)
        assert result.quote.volume == 3_000_000
        assert [bar.close for bar in result.series] == [168, 170]
        assert result.series[0].date.tzinfo == timezone.utc

    @pytest.mark.parametrize("field", ["Note", "Information"])
    def test_throttle_notice_is_rate_limit(self, field):
        with pytest.raises(RateLimitError):
            parse_alpha_vantage(
                "IBM", {field: "Thank you for using Alpha Vantage!"}, alpha_series((1, 1)),
                Period.M1, NOW,
            )

    def test_error_message(self):
        with pytest.raises(ProviderError, match="Invalid API call"):
            parse_alpha_vantage(
                "IBM", ALPHA_QUOTE, {"Error Message": "Invalid API call"}, Period.M1, NOW
            )

    def test_missing_sections(self):
        with pytest.raises(ProviderError):
            parse_alpha_vantage("IBM", {"Global Quote": {}}, alpha_series((1, 1)), Period.M1, NOW)


class TestFinnhub:
    def candles(self, *bars):
        return {
            "s": "ok",
            "t": [int(day(offset).timestamp()) for offset, _ in bars],
            "o": [c for _, c in bars],
            "h": [c + 1 for _, c in bars],
            "l": [c - 1 for _, c in bars],
            "c": [c for _, c in bars],
            "v": [700 for _ in bars],
        }

    def test_epoch_seconds_and_volume_fallback(self):
        quote = {"c": 51.0, "d": 1.0, "dp": 2.0}
        result = parse_finnhub("AMD", quote, self.candles((2, 49), (1, 50)), Period.M1, NOW)

        assert result.series[-1].date == day(1)
        assert result.quote.current_price == 51.0
        assert result.quote.change_percent == 2.0
        assert result.quote.volume == 700

    def test_no_data_status(self):
        with pytest.raises(ProviderError):
            parse_finnhub("AMD", {"c": 51.0}, {"s": "no_data"}, Period.M1, NOW)

    def test_zero_price_quote(self):
        with pytest.raises(ProviderError, match="No quote"):
            parse_finnhub("AMD", {"c": 0}, self.candles((1, 50)), Period.M1, NOW)

    def test_ragged_candle_arrays(self):
        candles = self.candles(*[(offset, 50 + offset) for offset in range(10, 0, -1)])
        candles["v"] = candles["v"][:3]

        with pytest.raises(ProviderError, match="Ragged candle arrays"):
            parse_finnhub("AMD", {"c": 51.0}, candles, Period.M1, NOW)


class TestPolygon:
    def test_epoch_millis_and_open_close_change(self):
        prev = {"status": "OK", "results": [{"o": 100.0, "c": 104.0, "v": 9000}]}
        aggs = {
            "status": "OK",
            "results": [
                {"t": int(day(offset).timestamp() * 1000), "o": c, "h": c + 1, "l": c - 1, "c": c, "v": 10}
                for offset, c in [(2, 101), (1, 103)]
            ],
        }

        result = parse_polygon("TSLA", prev, aggs, Period.M1, NOW)

        assert result.quote.change == pytest.approx(4.0)
        assert result.quote.change_percent == pytest.approx(4.0)
        assert result.quote.volume == 9000
        assert [bar.date for bar in result.series] == [day(2), day(1)]

    def test_error_status(self):
        with pytest.raises(ProviderError, match="bad key"):
            parse_polygon("TSLA", {"status": "ERROR", "error": "bad key"}, {}, Period.M1, NOW)


class TestIEX:
    def test_change_percent_is_scaled(self):
        quote = {"symbol": "NFLX", "latestPrice": 600.0, "change": 7.2, "changePercent": 0.0123, "latestVolume": 42}
        chart = [
            {"date": day(1).strftime("%Y-%m-%d"), "open": 590, "high": 601, "low": 588, "close": 600, "volume": 42}
        ]

        result = parse_iex("NFLX", quote, chart, Period.M1, NOW)

        assert result.quote.change_percent == pytest.approx(1.23)
        assert result.quote.volume == 42
        assert result.series[0].close == 600

    def test_chart_must_be_list(self):
        with pytest.raises(ProviderError):
            parse_iex("NFLX", {"latestPrice": 1.0}, {"error": "x"}, Period.M1, NOW)


class TestFutures:
    @pytest.mark.parametrize(
        "symbol",
        ["ES1", "CL2", "ES2024", "ESZ24", "NQH25", "ES24Z", "gc1", "RTY1", "RTYH25", "6E1", "6JM24"],
    )
    def test_recognised(self, symbol):
        assert is_futures_symbol(symbol)

    @pytest.mark.parametrize("symbol", ["AAPL", "MSFT", "BRK.B", "SPY"])
    def test_not_futures(self, symbol):
        assert not is_futures_symbol(symbol)

    def test_known_root(self):
        info = get_contract_info("CLZ24")
        assert info.name == "Crude Oil"
        assert info.tick_size == 0.01
        assert info.margin == 5000

    @pytest.mark.parametrize(
        "symbol,name",
        [("RTYZ24", "E-mini Russell 2000"), ("6EH25", "Euro FX"), ("6J1", "Japanese Yen")],
    )
    def test_three_letter_and_currency_roots(self, symbol, name):
        assert is_futures_symbol(symbol)
        assert get_contract_info(symbol).name == name

    def test_unknown_root_gets_defaults(self):
        info = get_contract_info("QQ1")
        assert info.name == "Unknown Futures Contract"
        assert info.contract_size == 1000
        assert info.margin == 5000
