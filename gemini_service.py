# gemini_service.py

import asyncio
import json
import logging
from datetime import date
from typing import List, Optional

from google import genai
from google.genai import types
from pydantic import TypeAdapter, ValidationError

import config
from schema import AnalysisResult, JobSearchResult, ResumeInput

logger = logging.getLogger(__name__)

_JOB_LIST = TypeAdapter(List[JobSearchResult])


class AnalysisError(Exception):
    """Raised when the fit analysis cannot produce a usable result."""


def create_client(api_key: Optional[str] = None) -> genai.Client:
    # A missing key is not checked here; calls fail at the transport layer.
    return genai.Client(api_key=api_key if api_key is not None else config.API_KEY)


# --- PROMPTS ---

DISCOVERY_PROMPT = (
    '{anchor} Find {count} RECENT job or internship postings for: "{query}". '
    "Return strictly as JSON array: [{{title, company, location, snippet, url}}]."
)

DETAIL_PROMPT = """{anchor} Navigate to {url}. Provide a comprehensive summary for "{title}" at "{company}".
Focus on:
1. ROLE OVERVIEW: The primary purpose of the position.
2. KEY RESPONSIBILITIES: Bullet points of day-to-day tasks.
3. TECHNICAL SKILLS: Required tools, languages, or platforms.
4. QUALIFICATIONS: Degree or experience requirements.

Exclude company history or generic "equal opportunity" text."""

ANALYSIS_SYSTEM_INSTRUCTION = """{anchor}
You are a very honest, high-stakes recruiter for top-tier tech firms (FAANG, frontier AI labs, HFT).
Your goal is to provide a REALISTIC, ruthlessly accurate percentage of admission.

CRITICAL LOGIC:
1. PRESTIGE PENALTY: For prestigious, highly selective employers, a standard resume has a 1-3% chance.
2. BRUTAL FEEDBACK: Do not sugarcoat skill gaps.
3. TARGETED IMPROVEMENTS: Provide exactly 3 skills to improve, each with exactly 3 mastery steps.
4. RESUME REFINEMENT: Critique the resume line by line and flag the lines that need a stronger rewrite.
5. INTERVIEW PREP: Identify likely technical drill-down topics and specific behavioral scenarios based on the company's known culture.
"""

ANALYSIS_PROMPT = """JOB CONTEXT: {job}
CANDIDATE DATA: {resume}

Perform a ruthless correlation analysis. Return JSON matching the schema.
Ensure 'interviewPrep' is highly tailored to the specific role and company provided."""


def date_anchor(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"Today is {today.strftime('%B')} {today.day}, {today.year}."


def _strip_fences(raw: str) -> str:
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


# --- JOB DISCOVERY ---

async def discover_jobs(client: genai.Client, query: str, today: Optional[date] = None) -> List[JobSearchResult]:
    """Search the web for current postings. A malformed reply yields an empty list."""
    if not query.strip():
        return []

    prompt = DISCOVERY_PROMPT.format(anchor=date_anchor(today), count=config.DISCOVERY_RESULT_COUNT, query=query.strip())
    logger.info("Discovering jobs for %r with %s", query, config.SEARCH_MODEL)
    response = await client.aio.models.generate_content(
        model=config.SEARCH_MODEL,
        contents=prompt,
        config=types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
            response_mime_type="application/json",
            response_schema=list[JobSearchResult],
        ),
    )
    try:
        return _JOB_LIST.validate_json(_strip_fences(response.text or "[]"))
    except ValidationError as e:
        logger.warning("Discarding malformed discovery payload: %s", e)
        return []


async def fetch_job_detail(client: genai.Client, url: str, company: str, title: str, today: Optional[date] = None) -> str:
    """Summarize the posting at `url`. Returns "" when the oracle has nothing to say; transport errors propagate."""
    prompt = DETAIL_PROMPT.format(anchor=date_anchor(today), url=url, title=title, company=company)
    logger.info("Fetching detail for %r at %r", title, company)
    response = await client.aio.models.generate_content(
        model=config.SEARCH_MODEL,
        contents=prompt,
        config=types.GenerateContentConfig(tools=[types.Tool(google_search=types.GoogleSearch())]),
    )
    return (response.text or "").strip()


# --- FIT ANALYSIS ---

def parse_analysis(raw: Optional[str]) -> AnalysisResult:
    try:
        payload = json.loads(_strip_fences(raw or ""))
    except json.JSONDecodeError as e:
        raise AnalysisError("Deep analysis returned malformed JSON.") from e

    # A reply without a verdict counts as a failure even when the call itself succeeded.
    if not isinstance(payload, dict) or not str(payload.get("executiveSummary") or "").strip():
        raise AnalysisError("Deep analysis failed to return data.")

    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as e:
        raise AnalysisError(f"Deep analysis returned an incomplete result ({e.error_count()} schema errors).") from e


def build_analysis_parts(resume: ResumeInput, job_description: str) -> List[types.Part]:
    parts = []
    if resume.file is not None:
        parts.append(types.Part.from_bytes(data=resume.file.raw_bytes(), mime_type=resume.file.mime_type))
    candidate = resume.text if resume.text.strip() else "See Attached Resume File"
    parts.append(types.Part.from_text(text=ANALYSIS_PROMPT.format(job=job_description, resume=candidate)))
    return parts


async def analyze_fit(
    client: genai.Client,
    resume: ResumeInput,
    job_description: str,
    timeout: Optional[float] = None,
    today: Optional[date] = None,
) -> AnalysisResult:
    """Run the deep fit analysis. Every failure surfaces as AnalysisError."""
    if not job_description.strip() or not resume.has_content:
        raise AnalysisError("Provide both a resume and a job description before analyzing.")

    logger.info(
        "Analyzing fit with %s (attachment=%s, resume_chars=%d, job_chars=%d)",
        config.ANALYSIS_MODEL, resume.file.name if resume.file else None, len(resume.text), len(job_description),
    )
    request = client.aio.models.generate_content(
        model=config.ANALYSIS_MODEL,
        contents=types.Content(role="user", parts=build_analysis_parts(resume, job_description)),
        config=types.GenerateContentConfig(
            system_instruction=ANALYSIS_SYSTEM_INSTRUCTION.format(anchor=date_anchor(today)),
            response_mime_type="application/json",
            response_schema=AnalysisResult,
        ),
    )
    try:
        if timeout:
            response = await asyncio.wait_for(request, timeout)
        else:
            response = await request
    except asyncio.TimeoutError as e:
        logger.error("Deep analysis timed out after %.0fs", timeout)
        raise AnalysisError(f"Deep analysis did not finish within {timeout:g} seconds.") from e
    except Exception as e:
        logger.exception("Deep analysis request failed")
        raise AnalysisError(f"Deep analysis request failed: {e}") from e

    result = parse_analysis(response.text)
    logger.info("Analysis complete: admission probability %s%%", result.realistic_admission_probability)
    return result
