# util.py

# Model Selection
#modelId = "us.anthropic.claude-3-7-sonnet-20250219-v1:0"
DEFAULT_MODEL_ID = "us.anthropic.claude-3-5-haiku-20241022-v1:0"


## Manage model configurations for completion token limits
MODEL_CONFIG = {
    "haiku": {"max_tokens": 4096},
    "sonnet": {"max_tokens": 8192},
}

def model_type(model_id: str) -> str:
    return "sonnet" if "sonnet" in model_id else "haiku"

def get_max_tokens(model_id: str, requested: int) -> int:
    """Clamp the requested completion size to what the model accepts."""
    ceiling = MODEL_CONFIG.get(model_type(model_id), {}).get("max_tokens", 4096)
    return min(requested, ceiling)


# Travel agent instruction sent ahead of every user input
DEFAULT_SYSTEM_PROMPT = (
    "You are an experienced travel agent that will provide an in-depth itinerary "
    "based on relevant online articles. You will provide the itinerary based on the "
    "location and duration entered by the user. Include at least 3 activities a day. "
    "Do not include any other suggestions or comments before or after the itinerary."
)


# Logging Util
import logging


# Lambda only allows writes under /tmp, so log to stderr and let CloudWatch collect it
logging.basicConfig(
    level=logging.INFO,  # LOG_LEVEL is applied by build_handler once validated
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("wondernav")
