"""
Pytest configuration and fixtures.

Oracle doubles live in tests/mocks/gemini_mocks.py.
"""
import pytest

from schema import AnalysisResult, JobSearchResult
from tests.mocks.gemini_mocks import analysis_payload, job_postings


@pytest.fixture
def analysis_result() -> AnalysisResult:
    return AnalysisResult.model_validate(analysis_payload())


@pytest.fixture
def job() -> JobSearchResult:
    return JobSearchResult.model_validate(job_postings(1)[0])
