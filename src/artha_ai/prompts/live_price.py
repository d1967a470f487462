SYSTEM_PROMPT = """You are a real-time market data feed. Output ONLY valid raw JSON. No markdown, no prose, no conversational text."""

HUMAN_PROMPT = """Search for the current live price and percentage change of "{ticker}" on NSE/BSE.
Return ONLY a JSON object: {{"price": number, "change": number}}."""
