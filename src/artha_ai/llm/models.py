from functools import lru_cache
from langchain.chat_models import init_chat_model
from artha_ai.config import MODEL_NAME, MODEL_PROVIDER, TEMPERATURE

# Google Search grounding, so answers reflect today's market
GOOGLE_SEARCH_TOOL = {"google_search": {}}


@lru_cache(maxsize=1)
def get_llm():
    """Gemini chat model with search grounding enabled.

    Built on first use so importing the package does not need GOOGLE_API_KEY.
    SDK-level retries are limited to a single attempt; backoff is handled by
    artha_ai.utils.retry.
    """
    llm = init_chat_model(
        model=MODEL_NAME,
        model_provider=MODEL_PROVIDER,
        temperature=TEMPERATURE,
        max_retries=1,
    )
    return llm.bind_tools([GOOGLE_SEARCH_TOOL])
