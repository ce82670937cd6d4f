"""
RPI Engine — Analysis Client
=============================
One outbound call per narrative. The response schema is passed as a forced
tool so the model answers with structured JSON; a plain-text answer still
goes through the fence-stripping repair path.

No retry, no caching: a failed call surfaces as AnalysisError.
"""

import logging
import time
from typing import Optional

import anthropic

from models import AnalysisResult, AnalysisError
from prompts import SYSTEM_PROMPT, TOOL_NAME, build_prompt, build_tool
from parsers.response_parser import parse_analysis, check_consistency
from settings import Settings, load_settings


logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 20000


def _extract_reply(response):
    """Return the tool input dict if present, otherwise the concatenated text blocks."""
    texts = []
    for block in getattr(response, "content", None) or []:
        block_type = getattr(block, "type", None)
        if block_type == "tool_use" and getattr(block, "name", TOOL_NAME) == TOOL_NAME:
            return block.input
        if block_type == "text":
            texts.append(block.text)
    return "\n".join(texts)


def _wrap_sdk_error(exc: Exception) -> AnalysisError:
    if isinstance(exc, anthropic.AuthenticationError):
        return AnalysisError("The Anthropic API key was rejected. Check ANTHROPIC_API_KEY.", cause=str(exc))
    if isinstance(exc, anthropic.RateLimitError):
        return AnalysisError("Rate limit exceeded. Try again in a moment.", cause=str(exc))
    if isinstance(exc, anthropic.APIConnectionError):
        return AnalysisError("Could not reach the model API. Check your network connection.", cause=str(exc))
    return AnalysisError(cause=f"{type(exc).__name__}: {exc}")


def analyze_text(text: str,
                 settings: Optional[Settings] = None,
                 client=None) -> AnalysisResult:
    """
    Score one narrative with the remote model.

    Args:
        text: diary / SNS text to analyze
        settings: runtime settings (model, tokens, rounding); loaded from config if None
        client: anything with .messages.create(...); an anthropic.Anthropic is built if None

    Returns:
        AnalysisResult with local consistency warnings attached.

    Raises:
        AnalysisError: empty input, missing key, SDK failure, or unusable reply.
    """
    if not text or not text.strip():
        raise AnalysisError("Enter some text to analyze.", cause="empty input")

    settings = settings or load_settings()

    if client is None:
        if not settings.api_key:
            raise AnalysisError(
                "ANTHROPIC_API_KEY is not set. Add it to the environment to run an analysis.",
                cause="missing api key",
            )
        client = anthropic.Anthropic(api_key=settings.api_key)

    narrative = text.strip()
    if len(narrative) > MAX_INPUT_CHARS:
        logger.info("Narrative truncated from %d to %d chars", len(narrative), MAX_INPUT_CHARS)
        narrative = narrative[:MAX_INPUT_CHARS]

    logger.info("Requesting RPI analysis: model=%s chars=%d", settings.model, len(narrative))
    started = time.monotonic()
    try:
        response = client.messages.create(
            model=settings.model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            system=SYSTEM_PROMPT,
            tools=[build_tool()],
            tool_choice={"type": "tool", "name": TOOL_NAME},
            messages=[{"role": "user", "content": build_prompt(narrative)}],
        )
    except anthropic.APIError as exc:
        wrapped = _wrap_sdk_error(exc)
        logger.error("RPI analysis call failed: %s", wrapped.cause)
        raise wrapped from exc

    logger.info("RPI analysis reply received in %.2fs", time.monotonic() - started)

    try:
        result = parse_analysis(_extract_reply(response), decimals=settings.round_decimals)
    except AnalysisError as exc:
        logger.error("Unusable model reply: %s", exc.cause)
        raise

    result.warnings = check_consistency(
        result,
        weight_tolerance=settings.weight_sum_tolerance,
        rpi_tolerance=settings.rpi_deviation_tolerance,
    )
    return result
