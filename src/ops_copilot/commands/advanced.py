"""Single-shot intent classification by the reasoning service.

Used when a caller asks for "advanced" parsing. Any failure (no client,
service error, no JSON object, invalid fields) yields None so the caller can
fall back to the rule classifier.
"""

import json
import re

from pydantic import ValidationError

from ops_copilot.intent.types import IntentAction, ParsedIntent
from ops_copilot.llm_client import LLMClientError, ReasoningClient
from ops_copilot.telemetry import ADVANCED_CLASSIFICATION_FAILED, TraceContext, get_logger

log = get_logger(__name__)

# Greedy: from the first "{" to the last "}" so nested objects stay intact.
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

ADVANCED_CLASSIFIER_PROMPT = """You convert business-operations commands into JSON.

Reply with exactly one JSON object and nothing else, using these keys:
- "action": one of {actions}
- "entity_type": singular record type such as "project", "task", "customer", \
"opportunity", "team_member", "compliance" (or null)
- "filters": object of list filters such as "status", "owner", "category", \
"source", "due_within_days" (or null)
- "data": object of record fields for create/update/delete, e.g. {{"title": "..."}} \
or {{"id": "...", "status": "completed"}} (or null)
- "query": search text (or null)
- "category": metric or report category such as "finance", "sales", "marketing", \
"team", or a compliance framework such as "gst" (or null)
- "period": "day", "week", "month", "quarter" or "year" (or null)

Keep titles and ids exactly as the user wrote them."""


def extract_intent_json(content: str) -> ParsedIntent:
    """Parse the first JSON object in ``content`` as a ParsedIntent.

    Raises:
        ValueError: If no object is present, it is not valid JSON, or its
            fields do not validate.
    """
    match = _JSON_OBJECT_RE.search(content)
    if match is None:
        raise ValueError("No JSON object in reply")
    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("Reply JSON is not an object")
    return ParsedIntent.model_validate(data)


class AdvancedClassifier:
    """Asks the reasoning service for a structured intent."""

    def __init__(self, client: ReasoningClient) -> None:
        self.client = client
        self.system_prompt = ADVANCED_CLASSIFIER_PROMPT.format(
            actions=", ".join(f'"{a.value}"' for a in IntentAction)
        )

    async def classify(self, text: str, trace_ctx: TraceContext) -> ParsedIntent | None:
        """Classify ``text``; None means "use the rule classifier instead"."""
        try:
            response = await self.client.respond(
                messages=[{"role": "user", "content": text}],
                system_prompt=self.system_prompt,
                temperature=0.0,
                trace_ctx=trace_ctx,
            )
            return extract_intent_json(response["content"])
        except (LLMClientError, ValidationError, ValueError) as e:
            log.warning(
                ADVANCED_CLASSIFICATION_FAILED,
                error=str(e)[:200],
                error_type=type(e).__name__,
                trace_id=trace_ctx.trace_id,
            )
            return None
