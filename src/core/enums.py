import enum


class TradeSide(str, enum.Enum):
    BUY = "Buy"
    SELL = "Sell"

    @property
    def sign(self) -> int:
        return 1 if self is TradeSide.BUY else -1


class TradeState(str, enum.Enum):
    """Trade lifecycle, strictly New -> Processing -> Settled"""

    NEW = "New"
    PROCESSING = "Processing"
    SETTLED = "Settled"
