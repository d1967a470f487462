import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Gemini model used for both the full analysis and the live price feed
MODEL_NAME = os.getenv("ARTHA_MODEL", "gemini-flash-lite-latest")
MODEL_PROVIDER = "google_genai"
TEMPERATURE = float(os.getenv("ARTHA_TEMPERATURE", "0"))

HISTORY_FILE = Path(os.getenv("ARTHA_HISTORY_FILE", "artha_history.json"))
HISTORY_LIMIT = 10

LOG_DIR = Path(os.getenv("ARTHA_LOG_DIR", "logs"))

# Retry defaults (seconds)
ANALYSIS_MAX_ATTEMPTS = 3
PRICE_MAX_ATTEMPTS = 2
RETRY_BASE_DELAY = 1.0

# Price polling intervals (seconds)
POLL_INTERVAL_MARKET_OPEN = 30
POLL_INTERVAL_MARKET_CLOSED = 15 * 60

DEFAULT_EXCHANGE_SUFFIX = ".NS"

POPULAR_SYMBOLS = ["RELIANCE", "TCS", "HDFCBANK", "INFY", "ZOMATO", "TATASTEEL", "ADANIENT", "ITC"]

ANALYSIS_FAILED_MESSAGE = (
    "Analysis failed. This might be due to market volatility or invalid ticker. Please try again."
)
