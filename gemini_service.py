import json
import logging
import os
import re
from typing import Type

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

from api.prompts import ECO_SCANNER_PROMPT, UTILITY_BILL_PROMPT
from api.pydantic_models import (
    BillReading, GreaseTrapEntry, HazardScanEntry, RecycleEntry, ScanResult
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"

_FENCE = re.compile(r"```(?:json)?\s*|```")

# Lazily created so importing this module never needs an API key
_client = None


class AIAnalysisError(Exception):
    """The hosted model could not produce a usable result for an image."""


def get_client():
    global _client
    if _client is None:
        api_key = os.environ.get("GEMINI_API_KEY")
        if not api_key:
            raise AIAnalysisError("GEMINI_API_KEY is not configured.")
        _client = genai.Client(api_key=api_key)
    return _client


def extract_json(text) -> dict:
    """Parses model output that may be wrapped in a markdown code block. Returns {} when unusable."""
    if not text or text == "undefined" or not text.strip():
        return {}
    cleaned = _FENCE.sub("", text).strip()
    try:
        result = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.error(f"Failed to parse JSON from AI response: {text[:500]}")
        return {}
    return result if isinstance(result, dict) else {}


def _generate(image_bytes: bytes, mime_type: str, schema: Type[BaseModel], prompt: str, as_system: bool):
    contents = [types.Part.from_bytes(data=image_bytes, mime_type=mime_type)]
    if not as_system:
        contents.append(prompt)
    config = types.GenerateContentConfig(
        system_instruction=prompt if as_system else None,
        response_mime_type="application/json",
        response_schema=schema,
        temperature=0.1,  # Low temperature for consistent classification
    )

    try:
        response = get_client().models.generate_content(
            model=os.environ.get("GEMINI_MODEL", DEFAULT_MODEL),
            contents=contents,
            config=config,
        )
    except AIAnalysisError:
        raise
    except Exception as e:
        logger.error(f"Gemini request failed: {e}", exc_info=True)
        raise AIAnalysisError("The AI service could not be reached.") from e

    result = extract_json(response.text)
    if not result:
        raise AIAnalysisError("The AI service returned an empty or invalid response.")
    try:
        return schema.model_validate(result)
    except ValidationError as e:
        logger.error(f"AI response did not match {schema.__name__}: {e}")
        raise AIAnalysisError("The AI response was missing required fields.") from e


def analyze_environment_image(image_bytes: bytes, mime_type: str = "image/jpeg") -> ScanResult:
    """Classifies a campus photo as waste, grease trap or hazard."""
    scan = _generate(image_bytes, mime_type, ScanResult, ECO_SCANNER_PROMPT, as_system=True)
    logger.info(f"Scanner result: category={scan.category}, reward={scan.point_reward}")
    return scan


def analyze_utility_bill(image_bytes: bytes, mime_type: str = "image/jpeg") -> BillReading:
    """Reads units, amount and billing month from an electricity bill photo."""
    bill = _generate(image_bytes, mime_type, BillReading, UTILITY_BILL_PROMPT, as_system=False)
    logger.info(f"Bill reading: {bill.units} kWh, {bill.amount} THB for {bill.month}")
    return bill


SCAN_ENTRY_TYPES = {
    "waste": RecycleEntry,
    "grease_trap": GreaseTrapEntry,
    "hazard": HazardScanEntry,
}


def entry_for_scan(scan: ScanResult, evidence=None):
    """Builds the activity entry for a scan, or None when the scan is unclassified or earns nothing."""
    entry_type = SCAN_ENTRY_TYPES.get(scan.category)
    if entry_type is None or scan.point_reward <= 0:
        return None
    return entry_type(scan=scan, evidence=evidence)
