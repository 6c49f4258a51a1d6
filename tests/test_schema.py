"""
Unit tests for the pydantic models in schema.py.

Tests verify:
- ResumeInput keeps raw text and attachments mutually exclusive
- AnalysisResult parses the camelCase oracle payload
- The 3 recommendations / 3 mastery steps contract is enforced
"""
import pytest
from pydantic import ValidationError

from schema import AnalysisResult, FileData, ResumeInput
from tests.mocks.gemini_mocks import analysis_payload


@pytest.fixture
def pdf_file():
    return FileData.from_bytes("resume.pdf", "application/pdf", b"%PDF-1.4 fake")


class TestResumeInput:
    """Tests for text/attachment exclusivity."""

    def test_attaching_file_clears_text(self, pdf_file):
        resume = ResumeInput(text="Built 3 ML pipelines").with_file(pdf_file)

        assert resume.file == pdf_file
        assert resume.text == ""

    def test_setting_text_clears_file(self, pdf_file):
        resume = ResumeInput(file=pdf_file).with_text("Built 3 ML pipelines")

        assert resume.file is None
        assert resume.text == "Built 3 ML pipelines"

    def test_both_at_once_is_rejected(self, pdf_file):
        with pytest.raises(ValidationError):
            ResumeInput(text="x", file=pdf_file)

    def test_has_content(self, pdf_file):
        assert not ResumeInput().has_content
        assert not ResumeInput(text="   \n").has_content
        assert ResumeInput(text="Python").has_content
        assert ResumeInput(file=pdf_file).has_content

    def test_file_bytes_round_trip(self, pdf_file):
        assert pdf_file.raw_bytes() == b"%PDF-1.4 fake"
        assert pdf_file.model_dump(by_alias=True)["mimeType"] == "application/pdf"


class TestAnalysisResult:
    """Tests for parsing the full analysis payload."""

    def test_parses_camel_case_payload(self):
        result = AnalysisResult.model_validate(analysis_payload())

        assert result.realistic_admission_probability == 12
        assert result.extracted_skills.overlap == ["Python"]
        assert result.recommendations[0].mastery_steps[0] == "Learn Spring Boot"
        assert result.bullet_feedback[1].feedback is None
        assert result.interview_prep.insider_tips == ["Expect a live debugging round"]
        assert result.cover_letter_tips.tone == "Precise and builder-minded"

    def test_cover_letter_tips_are_optional(self):
        payload = analysis_payload()
        del payload["coverLetterTips"]

        assert AnalysisResult.model_validate(payload).cover_letter_tips is None

    @pytest.mark.parametrize("key", ["bulletFeedback", "interviewPrep"])
    def test_bullet_feedback_and_interview_prep_are_required(self, key):
        payload = analysis_payload()
        del payload[key]

        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(payload)

    def test_requires_exactly_three_recommendations(self):
        payload = analysis_payload()
        payload["recommendations"] = payload["recommendations"][:2]

        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(payload)

    def test_requires_exactly_three_mastery_steps(self):
        payload = analysis_payload()
        payload["recommendations"][0]["masterySteps"].append("A fourth step")

        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(payload)

    def test_rejects_unknown_priority(self):
        payload = analysis_payload()
        payload["recommendations"][1]["priority"] = "Urgent"

        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(payload)

    def test_result_is_immutable(self):
        result = AnalysisResult.model_validate(analysis_payload())

        with pytest.raises(ValidationError):
            result.match_score = 99
