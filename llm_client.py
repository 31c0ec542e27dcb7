"""LLM client for classifying indicação ementas.

The request always carries the fixed taxonomy as an enum constraint, a
structured-output schema (``category`` + ``locations``) and temperature 0.
Three backends are supported, selected with ``CLASSIFIER_BACKEND``:
``gemini`` (default), ``openai`` and ``anthropic``.
"""

from __future__ import annotations

import json
import logging
import os
from json import JSONDecodeError
from typing import Any, Callable

import anthropic
from google import genai
from google.genai import types
from openai import OpenAI

from models import CATEGORIES

DEFAULT_BACKEND = "gemini"
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-5")
CLASSIFIER_TEMPERATURE = 0.0
MAX_ATTEMPTS = 2

LOGGER = logging.getLogger(__name__)

_CATEGORY_DESCRIPTION = "A categoria da proposta."
_LOCATION_DESCRIPTION = "Um nome de rua, bairro, praça ou local específico."
_LOCATIONS_DESCRIPTION = (
    "Uma lista de locais geográficos (ruas, bairros, etc.) mencionados na ementa. "
    "Se nenhum local for mencionado, retorne um array vazio."
)

CLASSIFICATION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "category": {
            "type": "string",
            "enum": list(CATEGORIES),
            "description": _CATEGORY_DESCRIPTION,
        },
        "locations": {
            "type": "array",
            "items": {"type": "string", "description": _LOCATION_DESCRIPTION},
            "description": _LOCATIONS_DESCRIPTION,
        },
    },
    "required": ["category", "locations"],
    "additionalProperties": False,
}

_SYSTEM_PROMPT = (
    "Você classifica indicações legislativas municipais. "
    "Responda SOMENTE com JSON válido seguindo este schema, sem markdown:\n"
    + json.dumps(CLASSIFICATION_SCHEMA, ensure_ascii=False)
)

_API_KEY_VARS: dict[str, tuple[str, ...]] = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
}


def build_prompt(description: str) -> str:
    return (
        "Analise a seguinte ementa de indicação legislativa. Extraia os principais locais "
        "mencionados (como nomes de ruas, bairros ou praças) e classifique a ementa em uma "
        f'das categorias fornecidas no schema. Ementa: "{description}"'
    )


def request_classification(description: str) -> dict[str, Any]:
    """Classify one ementa and return the parsed ``{category, locations}`` payload.

    Raises RuntimeError when the backend is unknown, its API key is missing, or
    every attempt fails to produce a schema-valid JSON object.
    """
    backend = os.getenv("CLASSIFIER_BACKEND", DEFAULT_BACKEND).strip().lower()
    call = _BACKENDS.get(backend)
    if call is None:
        raise RuntimeError(f"Unknown CLASSIFIER_BACKEND={backend!r}; expected one of {sorted(_BACKENDS)}")
    api_key = _api_key(backend)

    last_error: Exception | None = None
    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            content = call(api_key, description)
            parsed = _parse_classification_json(content)
            if not validate_classification_schema(parsed):
                raise RuntimeError("Classifier response JSON did not match required schema")
            LOGGER.debug("Classification succeeded via %s: category=%s", backend, parsed["category"])
            return parsed
        except Exception as exc:
            last_error = exc
            LOGGER.warning(
                "Classification via %s failed on attempt %s/%s: %s",
                backend,
                attempt,
                MAX_ATTEMPTS,
                exc,
            )

    raise RuntimeError(f"Classification via {backend} failed: {last_error}")


def _api_key(backend: str) -> str:
    names = _API_KEY_VARS[backend]
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    raise RuntimeError(f"{' or '.join(names)} environment variable is required")


def _call_gemini(api_key: str, description: str) -> str:
    client = genai.Client(api_key=api_key)
    config = types.GenerateContentConfig(
        temperature=CLASSIFIER_TEMPERATURE,
        response_mime_type="application/json",
        response_schema=_gemini_schema(),
    )
    response = client.models.generate_content(
        model=GEMINI_MODEL,
        contents=build_prompt(description),
        config=config,
    )
    if not response.text:
        raise RuntimeError("Gemini returned an empty response")
    return response.text


def _gemini_schema() -> types.Schema:
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "category": types.Schema(
                type=types.Type.STRING,
                enum=list(CATEGORIES),
                description=_CATEGORY_DESCRIPTION,
            ),
            "locations": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING, description=_LOCATION_DESCRIPTION),
                description=_LOCATIONS_DESCRIPTION,
            ),
        },
        required=["category", "locations"],
    )


def _call_openai(api_key: str, description: str) -> str:
    client = OpenAI(api_key=api_key)
    response = client.chat.completions.create(
        model=OPENAI_MODEL,
        temperature=CLASSIFIER_TEMPERATURE,
        response_format={
            "type": "json_schema",
            "json_schema": {"name": "indicacao_classification", "strict": True, "schema": CLASSIFICATION_SCHEMA},
        },
        messages=[
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(description)},
        ],
    )
    content = response.choices[0].message.content
    if not content:
        raise RuntimeError("OpenAI returned an empty response")
    return content


def _call_claude(api_key: str, description: str) -> str:
    client = anthropic.Anthropic(api_key=api_key)
    LOGGER.debug("Calling Claude model=%s", CLAUDE_MODEL)
    response = client.messages.create(
        model=CLAUDE_MODEL,
        max_tokens=512,
        temperature=CLASSIFIER_TEMPERATURE,
        system=_SYSTEM_PROMPT,
        messages=[{"role": "user", "content": build_prompt(description)}],
    )
    if not response.content:
        raise RuntimeError("Claude returned an empty response")
    return response.content[0].text


_BACKENDS: dict[str, Callable[[str, str], str]] = {
    "gemini": _call_gemini,
    "openai": _call_openai,
    "anthropic": _call_claude,
}


def _parse_classification_json(content: str) -> dict[str, Any]:
    """Parse possibly noisy model output into a strict JSON object."""
    try:
        parsed = json.loads(content.strip())
    except JSONDecodeError:
        parsed = _extract_first_json_object(content)

    if not isinstance(parsed, dict):
        raise RuntimeError("Expected JSON object from classifier response")
    return parsed


def _extract_first_json_object(content: str) -> dict[str, Any]:
    """Extract the first decodable JSON object from an arbitrary string."""
    decoder = json.JSONDecoder()
    for index, char in enumerate(content):
        if char != "{":
            continue
        try:
            candidate, _ = decoder.raw_decode(content[index:])
        except JSONDecodeError:
            continue
        if isinstance(candidate, dict):
            return candidate
    raise RuntimeError("Could not extract valid JSON object from classifier output")


def validate_classification_schema(data: dict[str, Any]) -> bool:
    """Structural check only; category membership is enforced by the adapter."""
    category = data.get("category")
    locations = data.get("locations")
    if not isinstance(category, str) or not category:
        return False
    return isinstance(locations, list)
