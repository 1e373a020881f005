# LLM module (v3.0.0)
from stylist_ai.llm.llm_adapter import (
    LLMClient,
    get_llm_client,
    reset_llm_clients,
    get_all_clients_status,
)
from stylist_ai.llm.json_parsing import parse_json_response, extract_tag_list
from stylist_ai.llm.router import (
    LLMResult,
    complete_json,
    complete_vision_json,
    complete_chat,
    complete_text,
)
