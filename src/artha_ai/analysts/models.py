import math
import time
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from artha_ai.utils.json_extract import clean_numeric


class InvestmentAction(str, Enum):
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    AVOID = "AVOID"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def _optional_number(value: Any) -> Optional[float]:
    """None when the model left a metric out or sent something non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        text = value.strip().replace(",", "").rstrip("%").strip()
        try:
            number = float(text)
            return number if math.isfinite(number) else None
        except ValueError:
            pass
        if any(ch.isdigit() for ch in text):
            return clean_numeric(text, signed=True)
    return None


def _number_list(value: Any) -> List[float]:
    if not isinstance(value, list):
        return []
    numbers = [_optional_number(item) for item in value]
    return [n for n in numbers if n is not None]


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None and str(item).strip()]


class _UpstreamModel(BaseModel):
    """Accepts the camelCase keys the model is asked to emit, ignores unknown keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)


class Fundamentals(_UpstreamModel):
    pe_ratio: Optional[float] = None
    pb_ratio: Optional[float] = None
    roe: Optional[float] = None
    roce: Optional[float] = None
    debt_to_equity: Optional[float] = None
    operating_margin: Optional[float] = None
    promoter_holding: Optional[float] = None
    institutional_holding: Optional[float] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, value):
        return _optional_number(value)


class Technicals(_UpstreamModel):
    support_levels: List[float] = Field(default_factory=list)
    resistance_levels: List[float] = Field(default_factory=list)
    trend: str = ""
    rsi: Optional[float] = None

    @field_validator("support_levels", "resistance_levels", mode="before")
    @classmethod
    def _coerce_levels(cls, value):
        return _number_list(value)

    @field_validator("trend", mode="before")
    @classmethod
    def _coerce_trend(cls, value):
        return _text(value)

    @field_validator("rsi", mode="before")
    @classmethod
    def _coerce_rsi(cls, value):
        return _optional_number(value)


class Source(BaseModel):
    """A web page the model's search grounding relied on."""
    model_config = ConfigDict(frozen=True)

    title: str = "Market Intelligence"
    url: str = "#"


class AnalysisResult(_UpstreamModel):
    symbol: str = ""
    company_name: str = ""
    current_price: float = 0.0
    currency: str = "INR"
    action: InvestmentAction = InvestmentAction.AVOID
    risk_level: RiskLevel = RiskLevel.HIGH
    confidence_score: float = 0.0
    summary: str = ""
    suggested_entry_range: str = ""
    fundamentals: Fundamentals = Field(default_factory=Fundamentals)
    technicals: Technicals = Field(default_factory=Technicals)
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    long_term_outlook: str = ""
    short_term_outlook: str = ""
    sources: List[Source] = Field(default_factory=list)

    @field_validator("symbol", "company_name", "summary", "suggested_entry_range",
                     "long_term_outlook", "short_term_outlook", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return _text(value)

    @field_validator("currency", mode="before")
    @classmethod
    def _coerce_currency(cls, value):
        return _text(value).strip() or "INR"

    @field_validator("current_price", mode="before")
    @classmethod
    def _coerce_price(cls, value):
        return clean_numeric(value)

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _coerce_confidence(cls, value):
        return min(max(clean_numeric(value), 0.0), 100.0)

    @field_validator("action", mode="before")
    @classmethod
    def _coerce_action(cls, value):
        # Anything the model invents falls to the decisive side
        try:
            return InvestmentAction(_text(value).strip().upper())
        except ValueError:
            return InvestmentAction.AVOID

    @field_validator("risk_level", mode="before")
    @classmethod
    def _coerce_risk(cls, value):
        try:
            return RiskLevel(_text(value).strip().upper())
        except ValueError:
            return RiskLevel.HIGH

    @field_validator("fundamentals", "technicals", mode="before")
    @classmethod
    def _coerce_section(cls, value):
        return value if isinstance(value, (dict, BaseModel)) else {}

    @field_validator("pros", "cons", mode="before")
    @classmethod
    def _coerce_lists(cls, value):
        return _text_list(value)

    @field_validator("sources", mode="before")
    @classmethod
    def _coerce_sources(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, Source))]


class LivePrice(BaseModel):
    """Last traded price and percent change from the live price feed."""
    model_config = ConfigDict(frozen=True)

    price: float = 0.0
    change: float = 0.0

    @classmethod
    def zero(cls) -> "LivePrice":
        return cls(price=0.0, change=0.0)


class HistoryEntry(_UpstreamModel):
    symbol: str
    company_name: str = ""
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    action: InvestmentAction = InvestmentAction.AVOID

    @classmethod
    def from_analysis(cls, analysis: AnalysisResult, timestamp: int | None = None) -> "HistoryEntry":
        fields = {"symbol": analysis.symbol, "company_name": analysis.company_name, "action": analysis.action}
        if timestamp is not None:
            fields["timestamp"] = timestamp
        return cls(**fields)
