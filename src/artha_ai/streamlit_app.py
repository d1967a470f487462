import asyncio
import io
import time
from datetime import datetime
import streamlit as st

from artha_ai.analysts.models import AnalysisResult, HistoryEntry, InvestmentAction
from artha_ai.analysts.stock_analyst import analyze_stock, fetch_live_price
from artha_ai.config import ANALYSIS_FAILED_MESSAGE, POLL_INTERVAL_MARKET_OPEN, POPULAR_SYMBOLS
from artha_ai.tools.market_hours import is_indian_market_open, poll_interval
from artha_ai.utils.formatting import (
    format_change, format_price, fundamentals_rows, technicals_rows, history_to_dataframe,
)
from artha_ai.utils.history import HistoryStore, record_search
from artha_ai.utils.logging_config import logger
from artha_ai.utils.pdf_generator import generate_pdf_report
from artha_ai.utils.polling import LiveQuote, poll_due

# --- Streamlit App Configuration ---
st.set_page_config(page_title="ArthaAI Research Terminal", layout="wide")

# --- Session State ---
if "store" not in st.session_state:
    st.session_state.store = HistoryStore()
    st.session_state.history = st.session_state.store.load()  # read once per session
    st.session_state.analysis = None
    st.session_state.quote = LiveQuote()
    st.session_state.last_poll = 0.0
    st.session_state.error = None


def clear_analysis():
    """Back to the search screen; stops live price refresh."""
    st.session_state.analysis = None
    st.session_state.quote.reset()


def handle_search(symbol: str):
    symbol = (symbol or "").strip()
    if not symbol:
        return
    clear_analysis()
    st.session_state.error = None

    with st.spinner(f"Fast analysis of {symbol} in progress..."):
        try:
            analysis = asyncio.run(analyze_stock(symbol))
        except Exception as e:
            logger.exception(f"Analysis of {symbol} failed: {e}")
            st.session_state.error = ANALYSIS_FAILED_MESSAGE
            return

    st.session_state.analysis = analysis
    st.session_state.quote.reset(analysis)
    st.session_state.last_poll = time.monotonic()

    history = record_search(st.session_state.history, HistoryEntry.from_analysis(analysis))
    st.session_state.history = history
    try:
        st.session_state.store.save(history)
    except OSError as e:
        logger.error(f"Could not save search history: {e}")


def clear_history():
    st.session_state.history = []
    st.session_state.store.clear()


def _live_price_panel():
    """Ticks at the market-open interval; polls only when the current interval has elapsed."""
    quote: LiveQuote = st.session_state.quote
    if not quote.symbol:
        return

    if poll_due(st.session_state.last_poll, time.monotonic()):
        with st.spinner("Updating price..."):
            update = asyncio.run(fetch_live_price(quote.symbol))
        st.session_state.last_poll = time.monotonic()
        # A zero reading means the poll failed; keep the previous price
        quote.apply(update)

    status = "Live Updates Active" if is_indian_market_open() else "Market Closed"
    st.metric(
        label=f"LTP · {status}",
        value=format_price(quote.price),
        delta=format_change(quote.change) or None,
    )


live_price_panel = st.fragment(run_every=POLL_INTERVAL_MARKET_OPEN)(_live_price_panel)


def render_analysis(analysis: AnalysisResult):
    action_colors = {
        InvestmentAction.BUY: "green",
        InvestmentAction.HOLD: "orange",
        InvestmentAction.SELL: "red",
        InvestmentAction.AVOID: "red",
    }
    color = action_colors[analysis.action]

    header, price_col = st.columns([3, 1])
    with header:
        st.subheader(f"{analysis.company_name or analysis.symbol} ({analysis.symbol})")
        st.markdown(
            f"### :{color}[{analysis.action.value}]  \n"
            f"Risk: **{analysis.risk_level.value}** · Confidence: **{analysis.confidence_score:.0f}%**"
        )
        if analysis.suggested_entry_range:
            st.caption(f"Suggested entry range: {analysis.suggested_entry_range}")
    with price_col:
        live_price_panel()

    st.write(analysis.summary)

    st.markdown("#### Fundamentals")
    rows = fundamentals_rows(analysis)
    for start in range(0, len(rows), 4):
        for col, (label, value) in zip(st.columns(4), rows[start:start + 4]):
            col.metric(label, value)

    st.markdown("#### Technicals")
    for col, (label, value) in zip(st.columns(4), technicals_rows(analysis)):
        col.metric(label, value)

    pros_col, cons_col = st.columns(2)
    with pros_col:
        st.markdown("#### Pros")
        for item in analysis.pros:
            st.markdown(f"- {item}")
    with cons_col:
        st.markdown("#### Cons")
        for item in analysis.cons:
            st.markdown(f"- {item}")

    short_col, long_col = st.columns(2)
    short_col.markdown("#### Short-term outlook")
    short_col.write(analysis.short_term_outlook or "N/A")
    long_col.markdown("#### Long-term outlook")
    long_col.write(analysis.long_term_outlook or "N/A")

    if analysis.sources:
        with st.expander(f"Sources ({len(analysis.sources)})"):
            for source in analysis.sources:
                st.markdown(f"- [{source.title}]({source.url})")

    # --- PDF Download ---
    try:
        pdf_buffer = io.BytesIO()
        generate_pdf_report(analysis, pdf_buffer, live_price=st.session_state.quote.price)
        pdf_buffer.seek(0)
        st.download_button(
            label="📥 Download PDF Report",
            data=pdf_buffer,
            file_name=f"artha_{analysis.symbol.replace('.', '_')}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.pdf",
            mime="application/pdf",
        )
    except Exception as e:
        logger.exception(f"Failed to generate PDF report: {e}")
        st.error(f"Error generating PDF report: {e}")


# --- Sidebar ---
st.sidebar.header("ArthaAI")
if is_indian_market_open():
    st.sidebar.success(f"Market Open · price refresh every {poll_interval():.0f}s")
else:
    st.sidebar.info(f"Market Closed · price refresh every {poll_interval() / 60:.0f} min")
st.sidebar.caption("Gemini Flash Lite with exponential backoff retries.")

# --- Main ---
st.title("📈 Indian Equity Research")

if st.session_state.error:
    st.error(st.session_state.error)
    if st.button("Clear error"):
        st.session_state.error = None
        st.rerun()

analysis = st.session_state.analysis
if analysis is not None:
    if st.button("🔍 New Search"):
        clear_analysis()
        st.rerun()
    render_analysis(analysis)
else:
    st.markdown("Real-time fundamental and technical analysis for NSE & BSE stocks.")
    with st.form("search"):
        query = st.text_input("Search symbol", placeholder="e.g. RELIANCE, TCS, ZOMATO")
        submitted = st.form_submit_button("⚡ Analyze")
    if submitted and query:
        handle_search(query)
        st.rerun()

    st.caption("Trending:")
    for col, symbol in zip(st.columns(len(POPULAR_SYMBOLS)), POPULAR_SYMBOLS):
        if col.button(symbol, key=f"popular_{symbol}"):
            handle_search(symbol)
            st.rerun()

    history = st.session_state.history
    if history:
        st.markdown("---")
        title_col, clear_col = st.columns([4, 1])
        title_col.subheader("Recent Research")
        if clear_col.button("Clear History"):
            clear_history()
            st.rerun()
        st.dataframe(history_to_dataframe(history), hide_index=True, use_container_width=True)
        for col, item in zip(st.columns(min(len(history), 5)), history[:5]):
            if col.button(item.symbol, key=f"history_{item.symbol}"):
                handle_search(item.symbol)
                st.rerun()

# --- How to Run ---
# streamlit run src/artha_ai/streamlit_app.py
