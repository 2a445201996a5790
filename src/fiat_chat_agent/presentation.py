from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Any

from fiat_chat_agent.models import utc_now

_RULE = "━" * 58
_ILLUSTRATIVE_PRICES = {"ETH": 2850.0, "USDT": 1.0}
_OTHER_PRICE = 1850.0
_DEFAULT_SYMBOL = "ETH"


def _field(txn: dict[str, Any], key: str, default: str) -> str:
    value = txn.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return str(value)


def _format_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def render_receipt(txn: dict[str, Any] | None = None, *, now: datetime | None = None) -> str:
    txn = txn or {}
    now = now or utc_now()
    token = _field(txn, "token", _DEFAULT_SYMBOL)
    transaction_id = _field(txn, "transactionId", f"TXN-{int(now.timestamp() * 1000)}")
    network = "Ethereum Mainnet" if token.upper() == "ETH" else "Multi-chain"

    return f"""\
**CRYPTOCURRENCY CONVERSION RECEIPT**
{_RULE}

**Transaction Details**
Transaction ID: {transaction_id}
Blockchain Hash: {_field(txn, "txHash", "Pending...")}
Status: {_field(txn, "status", "Processing")}
Initiated: {_format_time(now)}
Est. Completion: {_format_time(now + timedelta(minutes=15))}

**Conversion Summary**
From: {_field(txn, "amount", "N/A")} {token}
To: {_field(txn, "fiatCurrency", "NGN")} {_field(txn, "estimatedFiat", "Calculating...")}
Exchange Rate: Market rate at execution
Platform Fee: 0.5%

**Bank Transfer Details**
Method: Instant Bank Transfer
Network: {network}

**Next Steps**
1. Transaction submitted to blockchain
2. Smart contract execution in progress
3. Bank transfer will be initiated upon confirmation
4. Funds typically arrive within 5-15 minutes

{_RULE}
Thank you for using our crypto-to-fiat conversion service!
{_RULE}"""


def render_market_update(symbol: str = _DEFAULT_SYMBOL, *, rng: random.Random | None = None) -> str:
    """Illustrative market blurb. Figures are not real market data."""
    rng = rng or random.Random()
    symbol = (symbol or _DEFAULT_SYMBOL).strip().upper() or _DEFAULT_SYMBOL
    price = _ILLUSTRATIVE_PRICES.get(symbol, _OTHER_PRICE)
    sign = "+" if rng.random() > 0.5 else "-"
    percent = rng.random() * 5
    timing = "Good opportunity" if rng.random() > 0.5 else "Consider waiting"
    advice = (
        "Market conditions are favorable for conversion"
        if rng.random() > 0.5
        else "Price trending upward - you might want to hold or convert partially"
    )

    return f"""\
**LIVE MARKET UPDATE - {symbol}**

Current Price: ${price:,.2f} USD
24h Change: {sign}{percent:.2f}%
Best Time to Convert: {timing}

Our AI suggests: {advice}

Ready to convert? I can help you get the best rates with minimal fees."""
