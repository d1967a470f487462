from datetime import datetime
from typing import IO, List, Optional, Union
from xml.sax.saxutils import escape
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table as ReportlabTable, TableStyle
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.enums import TA_JUSTIFY
from reportlab.lib import colors
from reportlab.lib.units import inch
from artha_ai.analysts.models import AnalysisResult
from artha_ai.utils.formatting import fundamentals_rows, technicals_rows, group_indian
from artha_ai.utils.logging_config import logger

ACTION_PDF_COLORS = {
    "BUY": colors.darkgreen,
    "HOLD": colors.darkorange,
    "SELL": colors.firebrick,
    "AVOID": colors.firebrick,
}


def _pdf_text(text: str) -> str:
    """Escape paragraph markup. Base-14 PDF fonts have no rupee glyph."""
    return escape(text.replace("₹", "Rs. ")).replace('\n', '<br/>')


def _pdf_price(price: Optional[float], currency: str) -> str:
    if price is None or price <= 0:
        return "N/A"
    prefix = "Rs. " if currency.upper() == "INR" else f"{currency} "
    return f"{prefix}{group_indian(price)}"


def _metrics_table(rows, styles) -> ReportlabTable:
    data = [[Paragraph("<b>Metric</b>", styles['Normal']), Paragraph("<b>Value</b>", styles['Normal'])]]
    for label, value in rows:
        data.append([Paragraph(_pdf_text(label), styles['Normal']), Paragraph(_pdf_text(value), styles['Normal'])])
    table = ReportlabTable(data, colWidths=[2.5 * inch, 3.5 * inch], hAlign='LEFT')
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.lightblue),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
        ('BACKGROUND', (0, 1), (-1, -1), colors.whitesmoke),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.darkgrey),
    ]))
    return table


def _bullets(items: List[str], styles) -> List[Paragraph]:
    return [Paragraph(f"&bull; {_pdf_text(item)}", styles['BodyText']) for item in items]


def generate_pdf_report(analysis: AnalysisResult, target: Union[str, IO[bytes]], live_price: Optional[float] = None):
    """Write a PDF research note for one analysis to a filename or binary buffer."""
    logger.info(f"Generating PDF report for {analysis.symbol}")
    doc = SimpleDocTemplate(target, title=f"ArthaAI report - {analysis.symbol}")
    styles = getSampleStyleSheet()
    story = []

    # --- Title ---
    story.append(Paragraph(_pdf_text(f"{analysis.company_name or analysis.symbol} ({analysis.symbol})"), styles['h1']))
    report_date = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    story.append(Paragraph(f"Report generated on: {report_date}", styles['Normal']))
    story.append(Spacer(1, 0.2 * inch))

    # --- Verdict ---
    price = live_price if live_price and live_price > 0 else analysis.current_price
    action_color = ACTION_PDF_COLORS.get(analysis.action.value, colors.black).hexval()[2:]
    story.append(Paragraph(
        f"<b>Verdict:</b> <font color='#{action_color}'><b>{analysis.action.value}</b></font> &nbsp; "
        f"<b>Risk:</b> {analysis.risk_level.value} &nbsp; "
        f"<b>Confidence:</b> {analysis.confidence_score:.0f}% &nbsp; "
        f"<b>LTP:</b> {_pdf_price(price, analysis.currency)}",
        styles['Normal'],
    ))
    if analysis.suggested_entry_range:
        story.append(Paragraph(f"<b>Suggested entry range:</b> {_pdf_text(analysis.suggested_entry_range)}", styles['Normal']))
    story.append(Spacer(1, 0.2 * inch))

    if analysis.summary:
        p = Paragraph(_pdf_text(analysis.summary), styles['BodyText'])
        p.style.alignment = TA_JUSTIFY
        story.append(p)
        story.append(Spacer(1, 0.2 * inch))

    # --- Fundamentals & Technicals ---
    story.append(Paragraph("Fundamentals", styles['h2']))
    story.append(_metrics_table(fundamentals_rows(analysis), styles))
    story.append(Spacer(1, 0.2 * inch))

    story.append(Paragraph("Technicals", styles['h2']))
    story.append(_metrics_table(technicals_rows(analysis), styles))
    story.append(Spacer(1, 0.2 * inch))

    # --- Pros / Cons ---
    if analysis.pros:
        story.append(Paragraph("Pros", styles['h2']))
        story.extend(_bullets(analysis.pros, styles))
    if analysis.cons:
        story.append(Paragraph("Cons", styles['h2']))
        story.extend(_bullets(analysis.cons, styles))

    # --- Outlook ---
    for heading, text in (("Short-term Outlook", analysis.short_term_outlook),
                          ("Long-term Outlook", analysis.long_term_outlook)):
        if text:
            story.append(Paragraph(heading, styles['h2']))
            story.append(Paragraph(_pdf_text(text), styles['BodyText']))

    # --- Sources ---
    if analysis.sources:
        story.append(Paragraph("Sources", styles['h2']))
        for source in analysis.sources:
            url = escape(source.url).replace("'", "%27")
            story.append(Paragraph(f"<link href='{url}' color='blue'>{_pdf_text(source.title)}</link>", styles['Normal']))

    story.append(Spacer(1, 0.3 * inch))
    story.append(Paragraph("AI-generated research. Not investment advice; verify figures before trading.", styles['Italic']))

    # --- Build PDF ---
    try:
        doc.build(story)
        logger.info(f"Successfully generated PDF report for {analysis.symbol}")
    except Exception as e:
        logger.error(f"Failed to build PDF for {analysis.symbol}: {e}")
        raise
