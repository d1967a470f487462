import asyncio
from typing import Any, Dict, List
from langchain_core.prompts import ChatPromptTemplate
from artha_ai.analysts.models import AnalysisResult, LivePrice, Source
from artha_ai.config import ANALYSIS_MAX_ATTEMPTS, PRICE_MAX_ATTEMPTS, DEFAULT_EXCHANGE_SUFFIX
from artha_ai.errors import UnparseablePayload, UpstreamPermanentFailure, UpstreamTransientFailure
from artha_ai.llm.models import get_llm
from artha_ai.prompts import live_price, stock_analysis
from artha_ai.utils.json_extract import clean_numeric, extract_json
from artha_ai.utils.logging_config import logger
from artha_ai.utils.retry import failure_status, fetch_with_retry, is_transient

ANALYSIS_TEMPLATE = ChatPromptTemplate.from_messages([
    ("system", stock_analysis.SYSTEM_PROMPT),
    ("human", stock_analysis.HUMAN_PROMPT),
])

LIVE_PRICE_TEMPLATE = ChatPromptTemplate.from_messages([
    ("system", live_price.SYSTEM_PROMPT),
    ("human", live_price.HUMAN_PROMPT),
])


def normalize_ticker(symbol: str) -> str:
    """
    Map a bare NSE symbol to its Yahoo-style ticker.

    "RELIANCE" becomes "RELIANCE.NS"; anything already carrying an exchange
    suffix ("TCS.BO", "INFY.NS") is passed through unchanged.
    """
    ticker = (symbol or "").strip()
    if not ticker:
        raise ValueError("Ticker symbol must not be empty")
    return ticker if "." in ticker else f"{ticker}{DEFAULT_EXCHANGE_SUFFIX}"


def response_text(response: Any) -> str:
    """Plain text of a chat model response; content may be a list of parts."""
    content = getattr(response, "content", response)
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return str(content)


def extract_sources(response: Any) -> List[Source]:
    """Citations from the Google Search grounding metadata, if any."""
    metadata = getattr(response, "response_metadata", None) or {}
    grounding = metadata.get("grounding_metadata") or metadata.get("groundingMetadata") or {}
    if not isinstance(grounding, dict):
        return []

    chunks = grounding.get("grounding_chunks") or grounding.get("groundingChunks") or []
    sources = []
    for chunk in chunks:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        web = web or {}
        sources.append(Source(
            title=web.get("title") or "Market Intelligence",
            url=web.get("uri") or "#",
        ))
    return sources


async def _invoke_model(llm, prompt, ticker: str):
    """Call the model, translating SDK errors into upstream failures."""
    try:
        return await llm.ainvoke(prompt)
    except Exception as e:
        status = failure_status(e)
        if is_transient(e):
            raise UpstreamTransientFailure(f"Model call for {ticker} failed: {e}", status=status) from e
        raise UpstreamPermanentFailure(f"Model call for {ticker} failed: {e}", status=status) from e


async def analyze_stock(
    symbol: str,
    llm=None,
    max_attempts: int = ANALYSIS_MAX_ATTEMPTS,
    sleep=asyncio.sleep,
) -> AnalysisResult:
    """
    Get a BUY / HOLD / SELL / AVOID analysis for an Indian stock.

    Args:
        symbol: NSE/BSE symbol, with or without exchange suffix
        llm: Chat model to use, defaults to the grounded Gemini model
        max_attempts: Attempts before giving up
        sleep: Awaitable sleep used between retries

    Returns:
        The validated analysis with grounding citations attached

    Raises:
        EmptyUpstreamResponse: The model returned no text
        UnparseablePayload: No JSON could be recovered from the text
        UpstreamFailure: The model call itself failed
    """
    ticker = normalize_ticker(symbol)
    model = llm or get_llm()
    prompt = ANALYSIS_TEMPLATE.invoke({"ticker": ticker})

    async def execute_analysis() -> AnalysisResult:
        logger.info(f"Requesting analysis for {ticker}")
        response = await _invoke_model(model, prompt, ticker)
        text = response_text(response)
        raw_data = extract_json(text)
        if not isinstance(raw_data, dict):
            raise UnparseablePayload("Expected a JSON object in the analysis response", raw_text=text)

        # Citations come from grounding metadata, never from the payload
        raw_data.pop("sources", None)
        if not raw_data.get("symbol"):
            raw_data["symbol"] = ticker

        sources = extract_sources(response)
        result = AnalysisResult.model_validate({**raw_data, "sources": sources})
        logger.info(f"Analysis for {ticker}: {result.action.value} (confidence {result.confidence_score:.0f}, {len(sources)} sources)")
        return result

    return await fetch_with_retry(execute_analysis, max_attempts=max_attempts, sleep=sleep)


async def fetch_live_price(
    symbol: str,
    llm=None,
    max_attempts: int = PRICE_MAX_ATTEMPTS,
    sleep=asyncio.sleep,
) -> LivePrice:
    """
    Fetch the last traded price and percent change for a stock.

    Never raises for upstream problems: any failure, including exhausted
    retries, returns LivePrice.zero() which callers should ignore.
    """
    ticker = normalize_ticker(symbol)
    model = llm or get_llm()
    prompt = LIVE_PRICE_TEMPLATE.invoke({"ticker": ticker})

    async def execute_fetch() -> LivePrice:
        response = await _invoke_model(model, prompt, ticker)
        text = response_text(response)
        data: Dict[str, Any] = extract_json(text)
        if not isinstance(data, dict):
            raise UnparseablePayload("Expected a JSON object in the price response", raw_text=text)
        return LivePrice(
            price=clean_numeric(data.get("price")),
            change=clean_numeric(data.get("change"), signed=True),
        )

    try:
        update = await fetch_with_retry(execute_fetch, max_attempts=max_attempts, sleep=sleep)
        logger.debug(f"Live price for {ticker}: {update.price} ({update.change:+}%)")
        return update
    except Exception as e:
        logger.warning(f"Live price update for {ticker} failed: {e}")
        return LivePrice.zero()
