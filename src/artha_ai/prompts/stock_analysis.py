SYSTEM_PROMPT = """You are a sharp, opinionated Indian Stock Analyst. Provide bold and data-backed advice. Do not be neutral. Your response must be 100% valid JSON and nothing else."""

HUMAN_PROMPT = """Conduct an aggressive, high-conviction analysis of the NSE/BSE stock: "{ticker}".
The user wants a CLEAR decision: Buy, Don't Buy (AVOID), Sell, or Hold.

DECISION LOGIC (BE EXTREMELY DECISIVE):
1. BUY: Stock is undervalued, has strong momentum, or clear technical breakout.
2. SELL: Overvalued, technical breakdown, or negative corporate governance.
3. AVOID: High risk, poor fundamentals, or better opportunities exist elsewhere.
4. HOLD: Only if the stock is exactly at fair value with stable technicals.

If you are unsure, default to SELL or AVOID rather than HOLD.

Return JSON exactly in this format:
{{
  "symbol": string,
  "companyName": string,
  "currentPrice": number,
  "currency": "INR",
  "action": "BUY" | "HOLD" | "SELL" | "AVOID",
  "riskLevel": "LOW" | "MEDIUM" | "HIGH",
  "confidenceScore": number (0-100),
  "summary": string,
  "suggestedEntryRange": string,
  "fundamentals": {{
    "peRatio": number,
    "pbRatio": number,
    "roe": number,
    "roce": number,
    "debtToEquity": number,
    "operatingMargin": number,
    "promoterHolding": number,
    "institutionalHolding": number
  }},
  "technicals": {{
    "supportLevels": number[],
    "resistanceLevels": number[],
    "trend": string,
    "rsi": number
  }},
  "pros": string[],
  "cons": string[],
  "longTermOutlook": string,
  "shortTermOutlook": string
}}
"""
