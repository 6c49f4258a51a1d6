# workflow.py

import asyncio
import contextlib
import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from google import genai
from pydantic import BaseModel, ConfigDict, Field

import config
import gemini_service
from schema import AnalysisResult, FileData, JobSearchResult, ResumeInput

logger = logging.getLogger(__name__)

GENERIC_ANALYSIS_ERROR = "Deep matching failed. Please review inputs."
DISCOVERY_FAILED = "Discovery failed. Try a more general search."
DISCOVERY_EMPTY = "No postings found. Try a more general search."

# Shown one after another while the deep analysis runs
LOADING_PHASES = (
    "Initializing Reasoning Engine...",
    "Crawling job requirements & context...",
    "Factoring in company reputation & selectivity...",
    "Correlating candidate skills to market data...",
    "Calculating realistic admission odds...",
    "Finalizing strategy recommendations...",
)


class Step(str, Enum):
    INPUT = "INPUT"
    SEARCH = "SEARCH"
    ANALYZING = "ANALYZING"
    RESULT = "RESULT"


class WorkflowState(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: Step = Step.INPUT
    resume: ResumeInput = Field(default_factory=ResumeInput)
    job_description: str = ""
    search_query: str = ""
    search_results: List[JobSearchResult] = Field(default_factory=list)
    is_searching: bool = False
    is_fetching_detail: bool = False
    result: Optional[AnalysisResult] = None
    error_message: str = ""
    analysis_started_at: Optional[float] = None
    # Token of the single in-flight oracle call; completions carrying another token are stale.
    pending_request: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self.pending_request is not None

    @property
    def can_analyze(self) -> bool:
        return bool(self.job_description.strip()) and self.resume.has_content and not self.is_fetching_detail


# --- EVENTS ---

@dataclass(frozen=True)
class Navigate:
    step: Step


@dataclass(frozen=True)
class ResumeTextChanged:
    text: str


@dataclass(frozen=True)
class ResumeFileAttached:
    file: FileData


@dataclass(frozen=True)
class ResumeCleared:
    pass


@dataclass(frozen=True)
class JobDescriptionChanged:
    text: str


@dataclass(frozen=True)
class SearchStarted:
    request_id: str
    query: str


@dataclass(frozen=True)
class SearchSucceeded:
    request_id: str
    results: List[JobSearchResult]


@dataclass(frozen=True)
class SearchFailed:
    request_id: str


@dataclass(frozen=True)
class JobSelected:
    request_id: str
    job: JobSearchResult


@dataclass(frozen=True)
class DetailFetched:
    request_id: str
    job: JobSearchResult
    text: str


@dataclass(frozen=True)
class DetailFailed:
    request_id: str
    job: JobSearchResult


@dataclass(frozen=True)
class AnalysisStarted:
    request_id: str
    at: float


@dataclass(frozen=True)
class AnalysisSucceeded:
    request_id: str
    result: AnalysisResult


@dataclass(frozen=True)
class AnalysisFailed:
    request_id: str
    message: str = ""


@dataclass(frozen=True)
class RequestAbandoned:
    pass


@dataclass(frozen=True)
class ResetAll:
    pass


@dataclass(frozen=True)
class AnotherJob:
    pass


def fallback_job_description(job: JobSearchResult) -> str:
    return f"{job.title} at {job.company}\n\n{job.snippet}"


def _leave_analyzing(state: WorkflowState, **update) -> WorkflowState:
    update.setdefault("pending_request", None)
    update["analysis_started_at"] = None
    return state.model_copy(update=update)


def transition(state: WorkflowState, event) -> WorkflowState:
    """Pure state transition. Events that do not apply to `state` return it unchanged."""
    if isinstance(event, Navigate):
        if event.step not in (Step.INPUT, Step.SEARCH):
            return state
        if state.step == Step.ANALYZING:
            # The in-flight analysis becomes stale; its completion will be ignored.
            return _leave_analyzing(state, step=event.step)
        return state.model_copy(update={"step": event.step})

    if isinstance(event, ResumeTextChanged):
        return state.model_copy(update={"resume": state.resume.with_text(event.text)})

    if isinstance(event, ResumeFileAttached):
        return state.model_copy(update={"resume": state.resume.with_file(event.file)})

    if isinstance(event, ResumeCleared):
        return state.model_copy(update={"resume": ResumeInput()})

    if isinstance(event, JobDescriptionChanged):
        if state.is_fetching_detail:
            return state
        return state.model_copy(update={"job_description": event.text})

    # --- discovery ---

    if isinstance(event, SearchStarted):
        if state.is_busy or not event.query.strip():
            return state
        return state.model_copy(update={
            "search_query": event.query,
            "search_results": [],
            "is_searching": True,
            "error_message": "",
            "pending_request": event.request_id,
        })

    if isinstance(event, (SearchSucceeded, SearchFailed)):
        if event.request_id != state.pending_request:
            return state
        results = event.results if isinstance(event, SearchSucceeded) else []
        if isinstance(event, SearchFailed):
            message = DISCOVERY_FAILED
        else:
            message = "" if results else DISCOVERY_EMPTY
        return state.model_copy(update={
            "search_results": list(results),
            "is_searching": False,
            "error_message": message,
            "pending_request": None,
        })

    # --- detail fetch ---

    if isinstance(event, JobSelected):
        if state.is_busy:
            return state
        return state.model_copy(update={
            "step": Step.INPUT,
            "job_description": "",
            "is_fetching_detail": True,
            "error_message": "",
            "pending_request": event.request_id,
        })

    if isinstance(event, (DetailFetched, DetailFailed)):
        if event.request_id != state.pending_request:
            return state
        text = event.text.strip() if isinstance(event, DetailFetched) else ""
        return state.model_copy(update={
            "job_description": text or fallback_job_description(event.job),
            "is_fetching_detail": False,
            "pending_request": None,
        })

    # --- analysis ---

    if isinstance(event, AnalysisStarted):
        if state.is_busy or state.step != Step.INPUT or not state.can_analyze:
            return state
        return state.model_copy(update={
            "step": Step.ANALYZING,
            "error_message": "",
            "analysis_started_at": event.at,
            "pending_request": event.request_id,
        })

    if isinstance(event, AnalysisSucceeded):
        if state.step != Step.ANALYZING or event.request_id != state.pending_request:
            return state
        return _leave_analyzing(state, step=Step.RESULT, result=event.result)

    if isinstance(event, AnalysisFailed):
        if state.step != Step.ANALYZING or event.request_id != state.pending_request:
            return state
        return _leave_analyzing(state, step=Step.INPUT, error_message=event.message or GENERIC_ANALYSIS_ERROR)

    if isinstance(event, RequestAbandoned):
        if not state.is_busy:
            return state
        update = {"is_searching": False, "is_fetching_detail": False}
        if state.step == Step.ANALYZING:
            update["step"] = Step.INPUT
        return _leave_analyzing(state, **update)

    # --- result actions ---

    if isinstance(event, ResetAll):
        if state.step == Step.ANALYZING:
            return state
        return WorkflowState(search_query=state.search_query, search_results=state.search_results)

    if isinstance(event, AnotherJob):
        if state.step == Step.ANALYZING:
            return state
        return state.model_copy(update={"step": Step.SEARCH, "job_description": "", "error_message": ""})

    raise TypeError(f"Unknown workflow event: {event!r}")


# --- LOADING PHASES ---

def loading_phase(state: WorkflowState, now: float, interval: float = config.PHASE_INTERVAL_SECONDS) -> int:
    """Index into LOADING_PHASES for `now`; advances once per interval and holds at the last phase."""
    if state.step != Step.ANALYZING or state.analysis_started_at is None:
        return 0
    elapsed = max(0.0, now - state.analysis_started_at)
    return min(int(elapsed // interval), len(LOADING_PHASES) - 1)


async def cycle_phases(
    on_phase: Callable[[int], None],
    interval: float = config.PHASE_INTERVAL_SECONDS,
    sleep=asyncio.sleep,
) -> None:
    on_phase(0)
    for index in range(1, len(LOADING_PHASES)):
        await sleep(interval)
        on_phase(index)


# --- ORCHESTRATOR ---

def _new_request_id() -> str:
    return uuid.uuid4().hex


class Workflow:
    """Drives WorkflowState through the three oracle calls, one at a time."""

    def __init__(
        self,
        client: genai.Client,
        state: Optional[WorkflowState] = None,
        clock: Callable[[], float] = time.monotonic,
        timeout: Optional[float] = config.ANALYSIS_TIMEOUT_SECONDS,
        phase_interval: float = config.PHASE_INTERVAL_SECONDS,
    ):
        self.client = client
        self.state = state or WorkflowState()
        self.clock = clock
        self.timeout = timeout
        self.phase_interval = phase_interval
        self._ticker: Optional[asyncio.Task] = None

    def dispatch(self, event) -> WorkflowState:
        self.state = transition(self.state, event)
        if self.state.step != Step.ANALYZING and self._ticker is not None:
            self._ticker.cancel()
        return self.state

    def current_phase(self) -> int:
        return loading_phase(self.state, self.clock(), self.phase_interval)

    async def search(self, query: str) -> WorkflowState:
        request_id = _new_request_id()
        if self.dispatch(SearchStarted(request_id, query)).pending_request != request_id:
            return self.state

        try:
            results = await gemini_service.discover_jobs(self.client, query)
        except Exception as e:
            logger.warning("Job discovery failed for %r: %s", query, e)
            return self.dispatch(SearchFailed(request_id))
        return self.dispatch(SearchSucceeded(request_id, results))

    async def select_job(self, job: JobSearchResult) -> WorkflowState:
        request_id = _new_request_id()
        if self.dispatch(JobSelected(request_id, job)).pending_request != request_id:
            return self.state

        try:
            text = await gemini_service.fetch_job_detail(self.client, job.url, job.company, job.title)
        except Exception as e:
            logger.warning("Detail fetch failed for %s, using snippet: %s", job.url, e)
            return self.dispatch(DetailFailed(request_id, job))
        return self.dispatch(DetailFetched(request_id, job, text))

    async def analyze(self, on_phase: Optional[Callable[[int], None]] = None) -> WorkflowState:
        request_id = _new_request_id()
        if self.dispatch(AnalysisStarted(request_id, self.clock())).pending_request != request_id:
            logger.debug("Analysis preconditions not met; no request sent")
            return self.state

        ticker = asyncio.create_task(cycle_phases(on_phase, self.phase_interval)) if on_phase else None
        self._ticker = ticker
        try:
            try:
                result = await gemini_service.analyze_fit(
                    self.client, self.state.resume, self.state.job_description, timeout=self.timeout,
                )
            except Exception as e:
                logger.error("Analysis failed: %s", e)
                return self.dispatch(AnalysisFailed(request_id, str(e)))
            return self.dispatch(AnalysisSucceeded(request_id, result))
        finally:
            await self._stop_ticker(ticker)

    async def _stop_ticker(self, ticker: Optional[asyncio.Task]) -> None:
        if ticker is None:
            return
        if self._ticker is ticker:
            self._ticker = None
        ticker.cancel()
        # Collect the outcome so an error raised by on_phase is not lost.
        with contextlib.suppress(asyncio.CancelledError):
            await ticker
