"""
Resume parsing oracles.

The default oracle posts extracted text to the hosted parse-resume function.
GeminiResumeOracle calls Gemini directly with the same extraction schema.
Both return a ParsedResume; any failure surfaces as TransientServiceError and
the pipeline treats it as a soft "parse_failed" outcome.
"""
import json
import logging
import re
from typing import Optional, Protocol

import httpx
from google import genai
from pydantic import ValidationError as PydanticValidationError

from ..config import get_settings
from ..exceptions import TransientServiceError
from ..schemas.resume import ParsedResume

logger = logging.getLogger(__name__)


class ResumeOracle(Protocol):
    async def parse(self, text: str, access_token: str) -> ParsedResume: ...


RESUME_PARSER_PROMPT = """
You are a resume parser. Extract structured information from the resume text provided.
Be accurate and only extract information that is explicitly mentioned in the resume.
If a field is not found, leave it as null or an empty array.

Return ONLY a JSON object with these keys:
- name: full name of the candidate
- headline: professional headline or title (e.g. "Senior Software Engineer")
- location: location/city mentioned in the resume
- phone: contact phone number
- skills: list of technical and soft skills
- experience_years: total years of professional experience (number)
- education_level: one of high_school, associate, bachelor, master, doctorate, other
- about: professional summary or objective from the resume
- work_history: list of {company, role, duration, description}
- education: list of {degree, institution, year, specialization}
- internships: list of {company, role, duration, description, skills}
- projects: list of {title, description, technologies, url}
- languages: list of {language, proficiency}
- certifications: list of certification names

RESUME TEXT:
"""


# ============================================================================
# Output Normalization
# ============================================================================

def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _as_year(value) -> Optional[int]:
    if isinstance(value, int):
        return value
    match = re.search(r"(19|20)\d{2}", str(value or ""))
    return int(match.group(0)) if match else None


def _as_number(value) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    match = re.search(r"\d+(\.\d+)?", str(value or ""))
    return float(match.group(0)) if match else None


def _as_str_list(value) -> list:
    if isinstance(value, str):
        value = [part for part in re.split(r"[,;\n]", value)]
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("name") or item.get("title")
        text = _as_text(item)
        if text:
            items.append(text)
    return items


def _as_dict_list(value) -> list:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def normalize_parser_output(data: dict) -> dict:
    """
    Coerce loosely-typed parser output into ParsedResume's shape.
    Years arrive as strings, skills sometimes as a comma list, and so on.
    """
    if not isinstance(data, dict):
        return {}

    result = {
        "name": _as_text(data.get("name") or data.get("full_name")),
        "headline": _as_text(data.get("headline")),
        "location": _as_text(data.get("location")),
        "phone": _as_text(data.get("phone")),
        "skills": _as_str_list(data.get("skills")),
        "experience_years": _as_number(data.get("experience_years")),
        "education_level": _as_text(data.get("education_level")),
        "about": _as_text(data.get("about") or data.get("summary")),
        "certifications": _as_str_list(data.get("certifications")),
    }

    result["work_history"] = [
        {
            "company": _as_text(entry.get("company")),
            "role": _as_text(entry.get("role") or entry.get("title")),
            "duration": _as_text(entry.get("duration")),
            "description": _as_text(entry.get("description")),
            "is_current": entry.get("is_current") if isinstance(entry.get("is_current"), bool) else None,
        }
        for entry in _as_dict_list(data.get("work_history") or data.get("employment"))
    ]
    result["education"] = [
        {
            "degree": _as_text(entry.get("degree")),
            "institution": _as_text(entry.get("institution") or entry.get("school")),
            "year": _as_year(entry.get("year")),
            "specialization": _as_text(entry.get("specialization") or entry.get("field_of_study")),
        }
        for entry in _as_dict_list(data.get("education"))
    ]
    result["internships"] = [
        {
            "company": _as_text(entry.get("company")),
            "role": _as_text(entry.get("role")),
            "duration": _as_text(entry.get("duration")),
            "description": _as_text(entry.get("description")),
            "skills": _as_str_list(entry.get("skills")),
        }
        for entry in _as_dict_list(data.get("internships"))
    ]
    result["projects"] = [
        {
            "title": _as_text(entry.get("title") or entry.get("name")),
            "description": _as_text(entry.get("description")),
            "technologies": _as_str_list(entry.get("technologies")),
            "url": _as_text(entry.get("url")),
        }
        for entry in _as_dict_list(data.get("projects"))
    ]
    result["languages"] = [
        {
            "language": _as_text(entry.get("language")),
            "proficiency": _as_text(entry.get("proficiency")),
        }
        for entry in _as_dict_list(data.get("languages"))
    ]
    return result


def _to_parsed_resume(data: dict) -> ParsedResume:
    if not isinstance(data, dict):
        raise TransientServiceError("Parser returned an unexpected shape: expected an object")
    try:
        return ParsedResume(**normalize_parser_output(data))
    except PydanticValidationError as e:
        raise TransientServiceError(f"Parser returned an unexpected shape: {e}")


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


# ============================================================================
# Oracles
# ============================================================================

class RemoteResumeOracle:
    """Calls the hosted parse-resume function with the caller's bearer token."""

    def __init__(self, url: str, timeout: float = 60.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def parse(self, text: str, access_token: str) -> ParsedResume:
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, headers=headers, json={"resumeText": text})
        except httpx.TimeoutException:
            raise TransientServiceError("Resume parser timed out")
        except httpx.HTTPError as e:
            raise TransientServiceError(f"Resume parser unreachable: {e}")

        if response.status_code != 200:
            raise TransientServiceError(f"Resume parser failed ({response.status_code}): {response.text[:200]}")
        try:
            payload = response.json()
        except ValueError:
            raise TransientServiceError("Resume parser returned invalid JSON")
        if not isinstance(payload, dict):
            raise TransientServiceError("Resume parser returned an unexpected payload")
        if not payload.get("success"):
            raise TransientServiceError(str(payload.get("error") or "Resume parser reported failure"))
        return _to_parsed_resume(payload.get("data") or {})


class GeminiResumeOracle:
    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        self.client = genai.Client(api_key=api_key)
        self.model = model

    async def parse(self, text: str, access_token: str) -> ParsedResume:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[RESUME_PARSER_PROMPT + text],
                config=genai.types.GenerateContentConfig(
                    temperature=0.1,
                    response_mime_type="application/json",
                ),
            )
        except Exception as e:
            # The SDK raises several unrelated error types; all are retryable here
            raise TransientServiceError(f"Gemini request failed: {e}")

        try:
            data = json.loads(_strip_code_fence(response.text or ""))
        except json.JSONDecodeError as e:
            logger.warning("Failed to decode Gemini response: %s", e)
            raise TransientServiceError("Gemini returned invalid JSON")
        return _to_parsed_resume(data)


def get_resume_oracle() -> ResumeOracle:
    settings = get_settings()
    if settings.gemini_api_key and not settings.resume_parser_url:
        return GeminiResumeOracle(settings.gemini_api_key, settings.gemini_model)
    return RemoteResumeOracle(
        settings.get_resume_parser_url(),
        timeout=settings.resume_parser_timeout,
    )
