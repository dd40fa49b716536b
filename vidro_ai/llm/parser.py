"""
Response Parser
===============
Recovers a JSON document from an LLM's free-form reply.

Models wrap JSON in markdown fences or surrounding prose no matter how firmly
the prompt asks them not to, so every reply goes through extract_json:

    1. Strip a leading ```json / ``` fence and a trailing ``` fence
    2. If the rest does not start with { or [, pick the first greedy {...}
       block or the first [...] block, whichever starts earlier
    3. Strictly decode; on failure raise ParseError with a preview of the reply

Failure Policy:
    parse_structured() decodes into a pydantic model under an explicit
    ParseFailurePolicy. Insights use RAISE (a wrong severity is worse than
    none); video analysis uses DEGRADE (raw text beats nothing).
"""
import json
import logging
import re
from enum import Enum
from typing import Any, Callable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from vidro_ai.core.errors import ParseError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_OPEN_FENCE_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CLOSE_FENCE_RE = re.compile(r"```\s*$")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


class ParseFailurePolicy(str, Enum):
    RAISE = "raise"
    DEGRADE = "degrade"


def strip_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    cleaned = _OPEN_FENCE_RE.sub("", text.strip())
    cleaned = _CLOSE_FENCE_RE.sub("", cleaned)
    return cleaned.strip()


def extract_json(text: str) -> Any:
    """
    Extract and decode the JSON object or array embedded in ``text``.

    Parameters
    ----------
    text : str
        Raw model reply.

    Returns
    -------
    Any
        The decoded JSON value (usually a dict).

    Raises
    ------
    ParseError
        If no JSON-looking block exists or it fails strict decoding.
    """
    cleaned = strip_fences(text or "")

    if not cleaned.startswith(("{", "[")):
        obj_match = _OBJECT_RE.search(cleaned)
        arr_match = _ARRAY_RE.search(cleaned)
        if obj_match and arr_match:
            cleaned = obj_match.group(0) if obj_match.start() <= arr_match.start() else arr_match.group(0)
        elif obj_match or arr_match:
            cleaned = (obj_match or arr_match).group(0)
        else:
            raise ParseError("AI returned no JSON", text or "")

    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, ValueError) as e:
        raise ParseError(f"AI returned invalid JSON: {e}", text or "") from e


def parse_structured(
    text: str,
    model: Type[M],
    policy: ParseFailurePolicy = ParseFailurePolicy.RAISE,
    fallback: Optional[Callable[[str], M]] = None,
) -> M:
    """
    Decode a model reply into ``model`` under the given failure policy.

    A schema mismatch counts as a parse failure. Under DEGRADE the
    ``fallback`` factory receives the raw reply and its result is returned
    instead of raising.
    """
    if policy is ParseFailurePolicy.DEGRADE and fallback is None:
        raise ValueError("DEGRADE policy requires a fallback factory")

    try:
        data = extract_json(text)
        if not isinstance(data, dict):
            raise ParseError(f"Expected a JSON object for {model.__name__}", text)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ParseError(f"Response does not match {model.__name__}: {e}", text) from e
    except ParseError as e:
        if policy is ParseFailurePolicy.RAISE:
            raise
        logger.warning("Degrading unparseable %s response: %s", model.__name__, e.preview)
        return fallback(text)
