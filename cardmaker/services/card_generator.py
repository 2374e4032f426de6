import json
import logging
import os
import re

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from cardmaker import config
from cardmaker.errors import GenerationError
from cardmaker.models.schemas import Card
from cardmaker.services.prompts import build_prompt

logger = logging.getLogger("uvicorn.error")

_FENCE_START = re.compile(r"^```(?:json)?\n?")
_FENCE_END = re.compile(r"\n?```$")

_phrase_pairs = TypeAdapter(dict[str, str])


async def _complete_anthropic(prompt: str) -> str:
    import anthropic

    try:
        async with anthropic.AsyncAnthropic(api_key=os.getenv("ANTHROPIC_API_KEY"), max_retries=0) as client:
            message = await client.messages.create(
                model=config.ANTHROPIC_MODEL,
                max_tokens=config.MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
            )
    except anthropic.APIStatusError as e:
        raise GenerationError(f"HTTP {e.status_code}: {e.message}", status_code=e.status_code) from e
    except anthropic.APIConnectionError as e:
        raise GenerationError(f"Could not reach the language model: {e}") from e
    except anthropic.AnthropicError as e:
        raise GenerationError(f"Language model request failed: {e}") from e

    for block in message.content:
        if block.type == "text":
            return block.text
    raise GenerationError("The language model returned no text")


async def _complete_openai(prompt: str) -> str:
    import openai

    try:
        async with openai.AsyncOpenAI(api_key=os.getenv("OPENAI_API_KEY"), max_retries=0) as client:
            response = await client.chat.completions.create(
                model=config.OPENAI_MODEL,
                max_tokens=config.MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
            )
    except openai.APIStatusError as e:
        raise GenerationError(f"HTTP {e.status_code}: {e.message}", status_code=e.status_code) from e
    except openai.APIConnectionError as e:
        raise GenerationError(f"Could not reach the language model: {e}") from e
    except openai.OpenAIError as e:
        raise GenerationError(f"Language model request failed: {e}") from e

    text = response.choices[0].message.content
    if not text:
        raise GenerationError("The language model returned no text")
    return text


async def _complete(prompt: str) -> str:
    if config.AI_PROVIDER == "openai":
        return await _complete_openai(prompt)
    return await _complete_anthropic(prompt)


def strip_code_fence(text: str) -> str:
    """Remove a ``` or ```json fence wrapped around the reply, if any."""
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_END.sub("", _FENCE_START.sub("", text, count=1), count=1)
    return text


def parse_reply(text: str):
    """Parse the model reply as JSON. No attempt is made to salvage a partial reply."""
    json_text = strip_code_fence(text)
    try:
        return json.loads(json_text)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Failed to parse card JSON: {e}", raw_text=text) from e


async def generate_card(term: str, kind: str) -> Card:
    """Ask the model for a single flashcard for ``term``."""
    text = await _complete(build_prompt(term, kind))
    data = parse_reply(text)
    try:
        card = Card.model_validate(data)
    except PydanticValidationError as e:
        raise GenerationError(f"Model reply is not a valid card: {e}", raw_text=text) from e

    logger.info(f"[{kind}] Generated card for '{term}': {card.front!r}")
    return card


async def generate_phrase_pairs(term: str, kind: str) -> dict[str, str]:
    """Ask the model for phrase pairs, as a mapping of front text to back text."""
    text = await _complete(build_prompt(term, kind))
    data = parse_reply(text)
    try:
        pairs = _phrase_pairs.validate_python(data, strict=True)
    except PydanticValidationError as e:
        raise GenerationError(f"Model reply is not a phrase list: {e}", raw_text=text) from e

    logger.info(f"[{kind}] Generated {len(pairs)} phrase pairs for '{term}'")
    return pairs
