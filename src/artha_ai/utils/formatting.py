import datetime
from typing import Any, List, Optional, Tuple
import pandas as pd
from rich.table import Table as RichTable
from artha_ai.analysts.models import AnalysisResult, HistoryEntry, InvestmentAction
from artha_ai.tools.market_hours import IST

NOT_AVAILABLE = "N/A"

ACTION_COLORS = {
    InvestmentAction.BUY: "green",
    InvestmentAction.HOLD: "yellow",
    InvestmentAction.SELL: "red",
    InvestmentAction.AVOID: "red",
}

# (label, attribute, suffix)
FUNDAMENTAL_FIELDS: List[Tuple[str, str, str]] = [
    ("P/E Ratio", "pe_ratio", "x"),
    ("P/B Ratio", "pb_ratio", "x"),
    ("ROE", "roe", "%"),
    ("ROCE", "roce", "%"),
    ("Debt / Equity", "debt_to_equity", ""),
    ("Operating Margin", "operating_margin", "%"),
    ("Promoter Holding", "promoter_holding", "%"),
    ("Institutional Holding", "institutional_holding", "%"),
]


def group_indian(number: float, decimals: int = 2) -> str:
    """Digit grouping used in India: 1234567.5 -> 12,34,567.50"""
    sign = "-" if number < 0 else ""
    whole, _, fraction = f"{abs(number):.{decimals}f}".partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        whole = ",".join(pairs + [tail])
    return f"{sign}{whole}.{fraction}" if fraction else f"{sign}{whole}"


def format_price(price: Optional[float], currency: str = "INR") -> str:
    if price is None or price <= 0:
        return NOT_AVAILABLE
    symbol = "₹" if currency.upper() == "INR" else f"{currency} "
    return f"{symbol}{group_indian(price)}"


def format_change(change: Optional[float]) -> str:
    if change is None:
        return ""
    arrow = "▲" if change >= 0 else "▼"
    return f"{arrow}{abs(change):.2f}%"


def format_metric(value: Optional[float], suffix: str = "") -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:,.2f}{suffix}"


def format_levels(levels: List[float]) -> str:
    if not levels:
        return NOT_AVAILABLE
    return ", ".join(format_price(level) for level in levels)


def format_timestamp(timestamp_ms: int) -> str:
    moment = datetime.datetime.fromtimestamp(timestamp_ms / 1000, tz=IST)
    return moment.strftime("%d %b %Y, %H:%M IST")


def fundamentals_rows(analysis: AnalysisResult) -> List[Tuple[str, str]]:
    """(label, formatted value) pairs for the fundamentals grid."""
    return [
        (label, format_metric(getattr(analysis.fundamentals, attr), suffix))
        for label, attr, suffix in FUNDAMENTAL_FIELDS
    ]


def technicals_rows(analysis: AnalysisResult) -> List[Tuple[str, str]]:
    technicals = analysis.technicals
    return [
        ("Trend", technicals.trend or NOT_AVAILABLE),
        ("RSI", format_metric(technicals.rsi)),
        ("Support", format_levels(technicals.support_levels)),
        ("Resistance", format_levels(technicals.resistance_levels)),
    ]


def build_metrics_table(title: str, rows: List[Tuple[str, str]]) -> RichTable:
    table = RichTable(title=title, header_style="bold magenta", show_lines=False)
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")
    for label, value in rows:
        table.add_row(label, value)
    return table


def build_history_table(history: List[HistoryEntry]) -> RichTable:
    table = RichTable(title="Recent Research", header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Symbol", style="cyan")
    table.add_column("Company")
    table.add_column("Verdict")
    table.add_column("Searched")
    for i, item in enumerate(history, start=1):
        color = ACTION_COLORS.get(item.action, "white")
        table.add_row(str(i), item.symbol, item.company_name, f"[{color}]{item.action.value}[/{color}]",
                      format_timestamp(item.timestamp))
    return table


def history_to_dataframe(history: List[HistoryEntry]) -> pd.DataFrame:
    """Tabular view of the recent searches for the browser app."""
    columns = ["Symbol", "Company", "Verdict", "Searched"]
    if not history:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(
        [
            [item.symbol, item.company_name, item.action.value, format_timestamp(item.timestamp)]
            for item in history
        ],
        columns=columns,
    )


def format_analysis_markdown(analysis: AnalysisResult, live_price: Optional[float] = None) -> str:
    """Markdown rendering of the narrative parts of an analysis."""
    price = live_price if live_price and live_price > 0 else analysis.current_price
    lines: List[Any] = [
        f"## {analysis.company_name or analysis.symbol} ({analysis.symbol})",
        f"**Verdict:** {analysis.action.value} | **Risk:** {analysis.risk_level.value} | "
        f"**Confidence:** {analysis.confidence_score:.0f}% | **LTP:** {format_price(price, analysis.currency)}",
        "",
        analysis.summary,
    ]
    if analysis.suggested_entry_range:
        lines += ["", f"**Suggested entry range:** {analysis.suggested_entry_range}"]
    if analysis.pros:
        lines += ["", "### Pros"] + [f"- {item}" for item in analysis.pros]
    if analysis.cons:
        lines += ["", "### Cons"] + [f"- {item}" for item in analysis.cons]
    if analysis.short_term_outlook:
        lines += ["", "### Short-term outlook", analysis.short_term_outlook]
    if analysis.long_term_outlook:
        lines += ["", "### Long-term outlook", analysis.long_term_outlook]
    if analysis.sources:
        lines += ["", "### Sources"] + [f"- [{source.title}]({source.url})" for source in analysis.sources]
    return "\n".join(lines)
