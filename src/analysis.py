import asyncio
import json
import logging
import os
import re
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from config import PROMPTS_DIR
from llm_providers import LLMProvider, LLMProviderError
from transcripts import get_transcript_text
from video_ids import resolve_video_id

logger = logging.getLogger(__name__)


# --- Result shape ---


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SummarySection(_CamelModel):
    title: str
    content: str


class ExecutiveSummary(_CamelModel):
    overview: str
    sections: List[SummarySection]


class KeyQuote(_CamelModel):
    quote: str
    context: str


class QualityScore(_CamelModel):
    informational: float = Field(..., ge=1, le=10)
    salesly: float = Field(..., ge=1, le=10)
    analysis: str


class AnalysisResult(_CamelModel):
    """What the UI renders. Three to five key quotes are asked for, not enforced."""

    video_title: str
    bluf: str
    tldr: List[str]
    executive_summary: ExecutiveSummary
    key_quotes: List[KeyQuote]
    quality_score: QualityScore

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


# --- Prompt ---


def read_prompt(filename):
    """Helper function to read a prompt file."""
    filepath = os.path.join(PROMPTS_DIR, f"{filename}.md")
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Prompt file not found: {filepath}")
    with open(filepath, "r", encoding="utf-8") as f:
        return f.read()


ANALYZE_PROMPT = read_prompt("analyze")


def build_prompt(transcript: str) -> str:
    # The transcript goes in verbatim; the provider enforces its own limits.
    return ANALYZE_PROMPT.replace("{{transcript}}", transcript)


# --- Sanitizing and parsing ---

_FENCED_PAYLOAD = re.compile(
    r"^\s*```(?:json)?[ \t]*\r?\n?(.*?)\r?\n?[ \t]*```\s*$", re.DOTALL | re.IGNORECASE
)
# C0 controls except tab, LF and CR, plus DEL and the C1 block
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


class AnalysisParseError(Exception):
    """The completion could not be turned into an AnalysisResult."""

    def __init__(self, message: str, raw: str, sanitized: str):
        self.raw = raw
        self.sanitized = sanitized
        super().__init__(message)


def strip_code_fences(text: str) -> str:
    match = _FENCED_PAYLOAD.match(text)
    return match.group(1) if match else text


def remove_control_characters(text: str) -> str:
    return _CONTROL_CHARS.sub("", text)


def sanitize_completion(raw: Optional[str]) -> str:
    """
    Mechanical cleanup of a raw completion before parsing.

    Strips a code fence bracketing the payload, drops control characters
    that never belong in JSON, and trims surrounding whitespace. Line breaks
    are left alone here; parse_analysis deals with the ones that end up
    inside string values.
    """
    text = strip_code_fences(raw or "")
    text = remove_control_characters(text)
    return text.strip()


def _loads(text: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # Models regularly emit raw line breaks inside string values.
        # strict=False accepts them without touching newlines between tokens.
        return json.loads(text, strict=False)


def parse_analysis(raw: Optional[str]) -> AnalysisResult:
    """
    Turns a raw completion into a validated AnalysisResult.

    Raises:
        AnalysisParseError: if the sanitized text is not JSON or does not
            match the result shape. Carries both the raw and sanitized text.
    """
    return parse_sanitized(sanitize_completion(raw), raw)


def parse_sanitized(sanitized: str, raw: Optional[str] = None) -> AnalysisResult:
    """parse_analysis for text that already went through sanitize_completion."""
    try:
        payload = _loads(sanitized)
    except json.JSONDecodeError as e:
        raise AnalysisParseError(f"Invalid JSON: {e}", raw or "", sanitized) from e

    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as e:
        raise AnalysisParseError(
            f"Unexpected result shape: {e.error_count()} validation error(s)",
            raw or "",
            sanitized,
        ) from e


# --- Pipeline ---


class AnalysisState(str, Enum):
    START = "START"
    FETCHING_TRANSCRIPT = "FETCHING_TRANSCRIPT"
    COMPLETING = "COMPLETING"
    SANITIZING = "SANITIZING"
    PARSING = "PARSING"
    INPUT_INVALID = "INPUT_INVALID"
    NO_TRANSCRIPT = "NO_TRANSCRIPT"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    PARSE_FAILURE = "PARSE_FAILURE"
    DONE = "DONE"


class AnalysisOutcome(BaseModel):
    status: AnalysisState
    video_id: Optional[str] = None
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == AnalysisState.DONE


def _enter(video_id, state: AnalysisState) -> AnalysisState:
    logger.debug(f"[{video_id}] -> {state.value}")
    return state


async def analyze_video(
    reference: str,
    llm_provider: LLMProvider,
    fetch_transcript_text: Optional[Callable[[str], Optional[str]]] = None,
) -> AnalysisOutcome:
    """
    Runs one analysis request from a video reference to a validated result.

    Args:
        reference: A video ID, or a youtu.be / youtube.com link to one.
        llm_provider: Completion provider to send the prompt to.
        fetch_transcript_text: Blocking transcript lookup, run in the
            default executor. Returns None when there is no transcript.
            Defaults to transcripts.get_transcript_text.

    Every failure is terminal and comes back as an outcome rather than an
    exception; nothing is retried.
    """
    video_id = resolve_video_id(reference)
    _enter(video_id, AnalysisState.START)
    if video_id is None:
        state = _enter(video_id, AnalysisState.INPUT_INVALID)
        return AnalysisOutcome(status=state, error="Invalid YouTube URL or video ID")

    _enter(video_id, AnalysisState.FETCHING_TRANSCRIPT)
    fetch_transcript_text = fetch_transcript_text or get_transcript_text
    loop = asyncio.get_running_loop()
    transcript = await loop.run_in_executor(None, fetch_transcript_text, video_id)
    if not transcript:
        state = _enter(video_id, AnalysisState.NO_TRANSCRIPT)
        return AnalysisOutcome(
            status=state,
            video_id=video_id,
            error="No transcript available for this video",
        )

    _enter(video_id, AnalysisState.COMPLETING)
    try:
        raw = await llm_provider.generate_content(build_prompt(transcript))
    except LLMProviderError as e:
        logger.error(f"Completion failed for {video_id}: {e}")
        state = _enter(video_id, AnalysisState.PROVIDER_ERROR)
        return AnalysisOutcome(
            status=state, video_id=video_id, error="Failed to generate analysis"
        )

    _enter(video_id, AnalysisState.SANITIZING)
    sanitized = sanitize_completion(raw)

    _enter(video_id, AnalysisState.PARSING)
    try:
        result = parse_sanitized(sanitized, raw)
    except AnalysisParseError as e:
        logger.error(f"Raw response: {e.raw}")
        logger.error(f"Cleaned response: {e.sanitized}")
        logger.error(f"JSON parsing error: {e}")
        state = _enter(video_id, AnalysisState.PARSE_FAILURE)
        return AnalysisOutcome(
            status=state, video_id=video_id, error="Failed to parse analysis results"
        )

    state = _enter(video_id, AnalysisState.DONE)
    logger.info(f"Analysis complete for {video_id}")
    return AnalysisOutcome(status=state, video_id=video_id, result=result)
