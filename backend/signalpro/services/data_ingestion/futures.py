"""
Futures Contract Metadata

Recognises futures-style symbols and attaches static contract details.
Data for futures still comes from the normal provider chain.
"""

import re

from signalpro.schemas.market import FuturesContractInfo

# Letter roots up to three characters (ES, RTY) or CME currency roots (6E)
ROOT = r"^(?:[A-Z]{1,3}|6[A-Z])"
MONTH = "[FGHJKMNQUVXZ]"

FUTURES_PATTERNS = [
    re.compile(ROOT + r"\d{1,2}$"),  # ES1, RTY2, 6E1
    re.compile(ROOT + r"\d{4}$"),  # ES2024
    re.compile(ROOT + MONTH + r"\d{2}$"),  # ESZ24, RTYH25, 6EM24
    re.compile(ROOT + r"\d{2}" + MONTH + "$"),  # ES24Z
]

# root: (name, exchange, tick_size, tick_value, contract_size, margin)
# Checked in order; the first matching prefix wins.
CONTRACTS = {
    "ES": ("E-mini S&P 500", "CME", 0.25, 12.50, 50, 12000),
    "NQ": ("E-mini NASDAQ-100", "CME", 0.25, 5.00, 20, 15000),
    "YM": ("E-mini Dow Jones", "CBOT", 1.00, 5.00, 5, 8000),
    "RTY": ("E-mini Russell 2000", "CME", 0.10, 5.00, 50, 8000),
    "CL": ("Crude Oil", "NYMEX", 0.01, 10.00, 1000, 5000),
    "GC": ("Gold", "COMEX", 0.10, 10.00, 100, 8000),
    "SI": ("Silver", "COMEX", 0.005, 25.00, 5000, 10000),
    "NG": ("Natural Gas", "NYMEX", 0.001, 10.00, 10000, 3000),
    "ZN": ("10-Year Treasury Note", "CBOT", 0.015625, 15.625, 100000, 2000),
    "6E": ("Euro FX", "CME", 0.0001, 12.50, 125000, 3000),
    "6J": ("Japanese Yen", "CME", 0.000001, 12.50, 12500000, 3000),
}

DEFAULT_CONTRACT_SIZE = 1000
DEFAULT_MARGIN = 5000


def is_futures_symbol(symbol: str) -> bool:
    symbol = symbol.upper()
    return any(p.match(symbol) for p in FUTURES_PATTERNS)


def get_contract_info(symbol: str) -> FuturesContractInfo:
    """Contract details for a symbol; unknown roots get generic values."""
    symbol = symbol.upper()

    for root, (name, exchange, tick_size, tick_value, size, margin) in CONTRACTS.items():
        if symbol.startswith(root):
            return FuturesContractInfo(
                symbol=symbol,
                name=name,
                exchange=exchange,
                tick_size=tick_size,
                tick_value=tick_value,
                contract_size=size,
                margin=margin,
            )

    return FuturesContractInfo(
        symbol=symbol,
        name="Unknown Futures Contract",
        exchange="Unknown",
        tick_size=0.01,
        tick_value=10.00,
        contract_size=DEFAULT_CONTRACT_SIZE,
        margin=DEFAULT_MARGIN,
    )
