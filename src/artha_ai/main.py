import asyncio
from datetime import datetime
from typing import List, Optional, Tuple
import questionary
from rich.columns import Columns
from rich.console import Console
from rich.markdown import Markdown
from artha_ai.analysts.models import AnalysisResult, HistoryEntry
from artha_ai.analysts.stock_analyst import analyze_stock, fetch_live_price, normalize_ticker
from artha_ai.config import ANALYSIS_FAILED_MESSAGE, POPULAR_SYMBOLS
from artha_ai.tools.market_hours import is_indian_market_open, poll_interval
from artha_ai.utils.formatting import (
    ACTION_COLORS, build_history_table, build_metrics_table, format_analysis_markdown,
    format_change, format_price, fundamentals_rows, technicals_rows,
)
from artha_ai.utils.history import HistoryStore, record_search
from artha_ai.utils.logging_config import logger
from artha_ai.utils.pdf_generator import generate_pdf_report
from artha_ai.utils.polling import LiveQuote, PollingController
from artha_ai.utils.progress import progress

console = Console()

STYLE = questionary.Style([
    ('qmark', 'fg:yellow bold'),
    ('question', 'bold'),
    ('answer', 'fg:green bold'),
    ('highlighted', 'fg:yellow bold'),
])

NEW_SEARCH = "New search"
SAVE_PDF = "Save PDF report"
SHOW_HISTORY = "Show recent research"
CLEAR_HISTORY = "Clear history"
QUIT = "Quit"


def market_status_line() -> str:
    if is_indian_market_open():
        return f"[green]● Market Open[/green] [dim](price refresh every {poll_interval():.0f}s)[/dim]"
    return f"[dim]● Market Closed (price refresh every {poll_interval() / 60:.0f} min)[/dim]"


def show_live_price(quote: LiveQuote):
    change = format_change(quote.change)
    color = "green" if (quote.change or 0) >= 0 else "red"
    console.print(f"[dim]LTP[/dim] [cyan]{quote.symbol}[/cyan] [bold]{format_price(quote.price)}[/bold] [{color}]{change}[/{color}]")


def display_analysis(analysis: AnalysisResult):
    color = ACTION_COLORS.get(analysis.action, "white")
    console.print("\n" + "─" * 80)
    console.print(f"[bold {color}]{analysis.action.value}[/bold {color}]  {analysis.company_name} ({analysis.symbol})")
    console.print(Markdown(format_analysis_markdown(analysis)))
    console.print(Columns([
        build_metrics_table("Fundamentals", fundamentals_rows(analysis)),
        build_metrics_table("Technicals", technicals_rows(analysis)),
    ]))
    console.print("─" * 80 + "\n")


async def ask_symbol(history: List[HistoryEntry]) -> Optional[str]:
    """Prompt for a ticker, suggesting popular and recently searched symbols."""
    suggestions = list(dict.fromkeys([item.symbol for item in history] + POPULAR_SYMBOLS))
    answer = await questionary.autocomplete(
        "Search symbol (e.g. RELIANCE, TCS, ZOMATO), blank to quit:",
        choices=suggestions,
        style=STYLE,
    ).ask_async(patch_stdout=True)
    return answer.strip() if answer else None


async def ask_next_action() -> str:
    answer = await questionary.select(
        "What next?",
        choices=[NEW_SEARCH, SAVE_PDF, SHOW_HISTORY, CLEAR_HISTORY, QUIT],
        style=STYLE,
    ).ask_async(patch_stdout=True)
    return answer or QUIT


async def research(
    symbol: str,
    controller: PollingController,
    store: HistoryStore,
    history: List[HistoryEntry],
) -> Tuple[Optional[AnalysisResult], List[HistoryEntry]]:
    """Run one full analysis; on success record it and start price polling."""
    # A new search always leaves the polling state first
    controller.stop()
    try:
        ticker = normalize_ticker(symbol)
    except ValueError as e:
        console.print(f"[yellow]{e}[/yellow]")
        return None, history

    progress.update_status("Stock Analyst", ticker, "Analyzing")
    try:
        with console.status(f"Fast analysis of {ticker} in progress..."):
            analysis = await analyze_stock(ticker)
    except Exception as e:
        logger.exception(f"Analysis of {ticker} failed: {e}")
        progress.update_status("Stock Analyst", ticker, "Error")
        console.print(f"\n[red bold]{ANALYSIS_FAILED_MESSAGE}[/red bold]")
        return None, history
    progress.update_status("Stock Analyst", ticker, "Done")

    history = record_search(history, HistoryEntry.from_analysis(analysis))
    try:
        store.save(history)
    except OSError as e:
        logger.error(f"Could not save search history: {e}")

    display_analysis(analysis)
    controller.start(analysis)
    console.print(market_status_line())
    return analysis, history


def save_pdf(analysis: AnalysisResult, quote: LiveQuote):
    filename = f"artha_{analysis.symbol.replace('.', '_')}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.pdf"
    try:
        generate_pdf_report(analysis, filename, live_price=quote.price)
        console.print(f"\n[bold green]✓ Analysis report saved to {filename}[/bold green]")
    except Exception as e:
        logger.error(f"Failed to generate PDF report: {e}")
        console.print(f"\n[red bold]Error generating PDF report:[/red bold] {str(e)}")


async def run():
    store = HistoryStore()
    history = store.load()
    controller = PollingController(fetch_live_price, on_update=show_live_price)
    analysis: Optional[AnalysisResult] = None

    console.print("[bold blue]ArthaAI[/bold blue] Indian equity research terminal")
    console.print(market_status_line())
    if history:
        console.print(build_history_table(history))

    progress.start()
    try:
        while True:
            if analysis is None:
                symbol = await ask_symbol(history)
                if not symbol:
                    break
                analysis, history = await research(symbol, controller, store, history)
                continue

            action = await ask_next_action()
            if action == QUIT:
                break
            if action == NEW_SEARCH:
                controller.stop()
                analysis = None
            elif action == SAVE_PDF:
                save_pdf(analysis, controller.quote)
            elif action == SHOW_HISTORY:
                console.print(build_history_table(history) if history else "[dim]No recent research.[/dim]")
            elif action == CLEAR_HISTORY:
                history = []
                store.clear()
                console.print("[dim]History cleared.[/dim]")
    finally:
        controller.stop()
        progress.stop()


def main():
    logger.info("Starting ArthaAI terminal")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.warning("Operation cancelled by user")
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
    except Exception as e:
        logger.exception("An error occurred during execution")
        console.print(f"\n[red bold]Error:[/red bold] {str(e)}")
    finally:
        logger.info("ArthaAI terminal stopped")


if __name__ == "__main__":
    main()
