"""
LLM helper - rewrites composed notes into short prose

Uses any OpenAI-compatible chat completions endpoint. A failed or empty
completion never fails the booking: the raw note is used instead.
"""

import logging
from typing import Any, Optional

from openai import AsyncOpenAI

from .config import LLMConfig
from .notes import truncate

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You format commits and llm prompts into generic work notes."

TEMPERATURE = 0.2
MAX_TOKENS = 500


def build_prompt(note: str, project_name: str) -> str:
    """Build the user message for the refinement call"""
    return "\n".join([
        f"Project: {project_name}",
        "",
        "Reformat the following llm calls and git commits. Keep it very short and generic. Just keep the message.",
        "Rules:",
        "- Keep all factual details.",
        "- Improve readability and wording only.",
        "- Don't leave commit diffs, make it generic",
        "- No need to show lines changed, just a message",
        "- No markdown just plain text.",
        "- Message only about what has been done.",
        "- No bullet points just sentences.",
        "- No titles or project id's.",
        "- No small changes like linting or merging, just features and fixes.",
        "",
        note,
    ])


def extract_content(content: Any) -> str:
    """Message content as text; list content keeps only text parts"""
    if isinstance(content, str):
        return content.strip()
    if not isinstance(content, list):
        return ""

    parts = []
    for part in content:
        if isinstance(part, dict):
            part_type, text = part.get("type"), part.get("text")
        else:
            part_type, text = getattr(part, "type", None), getattr(part, "text", None)
        if part_type == "text" and isinstance(text, str):
            parts.append(text)
    return "\n".join(parts).strip()


async def call_llm(prompt: str, config: LLMConfig, client: Optional[AsyncOpenAI] = None) -> str:
    """
    One chat completion

    Raises whatever the client raises; callers decide how to fall back.
    """
    if client is None:
        client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url or None)

    response = await client.chat.completions.create(
        model=config.model,
        temperature=TEMPERATURE,
        max_tokens=MAX_TOKENS,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
    )
    if not response.choices:
        return ""
    return extract_content(response.choices[0].message.content)


async def refine_note(
    note: str,
    project_name: str,
    config: LLMConfig,
    client: Optional[AsyncOpenAI] = None,
) -> str:
    """
    Rewrite a note with the LLM

    Args:
        note: composed note
        project_name: shown to the model as context
        config: endpoint, key and model
        client: injected client (tests)

    Returns:
        the refined note, or the raw note when the call fails or returns
        nothing; both truncated to the note length limit
    """
    raw = note.strip()
    if not raw:
        return ""

    try:
        formatted = await call_llm(build_prompt(raw, project_name), config, client)
    except Exception as e:
        logger.warning(f"Note formatting failed ({config.model}): {e}")
        return truncate(raw)

    if not formatted:
        logger.warning("Note formatting returned no text, using the raw note")
        return truncate(raw)

    return truncate(formatted)
