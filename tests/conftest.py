import os
import tempfile

# Keep test runs from writing log files into the working tree
os.environ.setdefault("ARTHA_LOG_DIR", os.path.join(tempfile.gettempdir(), "artha_ai_test_logs"))

import pytest
from langchain_core.messages import AIMessage


SAMPLE_PAYLOAD = {
    "symbol": "RELIANCE.NS",
    "companyName": "Reliance Industries Ltd",
    "currentPrice": "₹2,950.75",
    "currency": "INR",
    "action": "BUY",
    "riskLevel": "MEDIUM",
    "confidenceScore": 82,
    "summary": "Breakout above resistance with strong retail momentum.",
    "suggestedEntryRange": "₹2,900 - ₹2,960",
    "fundamentals": {
        "peRatio": 27.4,
        "pbRatio": 2.3,
        "roe": 9.2,
        "roce": 10.1,
        "debtToEquity": 0.41,
        "operatingMargin": 17.5,
        "promoterHolding": 50.3,
        "institutionalHolding": 39.1,
    },
    "technicals": {
        "supportLevels": [2880, 2810],
        "resistanceLevels": [3020, 3100],
        "trend": "Bullish",
        "rsi": 61,
    },
    "pros": ["Jio tariff hikes", "Retail expansion"],
    "cons": ["Heavy capex"],
    "longTermOutlook": "Compounding across energy, retail and telecom.",
    "shortTermOutlook": "Momentum favours a retest of 3,020.",
}


def make_response(content, chunks=None) -> AIMessage:
    """Chat model response carrying optional search grounding chunks."""
    metadata = {}
    if chunks is not None:
        metadata["grounding_metadata"] = {"grounding_chunks": chunks}
    return AIMessage(content=content, response_metadata=metadata)


class StatusError(Exception):
    """SDK-style error exposing an HTTP status code."""

    def __init__(self, status: int, message: str = "upstream error"):
        super().__init__(f"{status} {message}")
        self.status_code = status


@pytest.fixture
def sample_payload():
    return {**SAMPLE_PAYLOAD}
