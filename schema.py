# schema.py

import base64
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Oracle payloads use camelCase keys; Python code uses snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# --- RESUME INPUT ---

class FileData(CamelModel):
    name: str = Field(description="Original file name of the uploaded resume.")
    mime_type: str = Field(description="Content type, e.g. 'application/pdf' or 'image/png'.")
    base64: str = Field(description="Base64-encoded file contents.")

    @classmethod
    def from_bytes(cls, name: str, mime_type: str, payload: bytes) -> "FileData":
        return cls(name=name, mime_type=mime_type, base64=base64.b64encode(payload).decode("ascii"))

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.base64)


class ResumeInput(CamelModel):
    """Either pasted text or an attached file, never both."""
    text: str = ""
    file: Optional[FileData] = None

    @model_validator(mode="after")
    def _text_or_file(self):
        if self.file is not None and self.text:
            raise ValueError("A resume holds either raw text or an attachment, not both.")
        return self

    def with_text(self, text: str) -> "ResumeInput":
        return ResumeInput(text=text)

    def with_file(self, file: FileData) -> "ResumeInput":
        return ResumeInput(file=file)

    @property
    def has_content(self) -> bool:
        return self.file is not None or bool(self.text.strip())


# --- JOB DISCOVERY ---

class JobSearchResult(CamelModel):
    title: str = Field(description="The posting's job title.")
    company: str = Field(description="The hiring company.")
    location: str = Field(description="City, region or 'Remote'.")
    snippet: str = Field(description="One or two sentences describing the role.")
    url: str = Field(description="Direct link to the posting.")


# --- ANALYSIS RESULT ---

class ExtractionSegment(CamelModel):
    resume: List[str] = Field(default_factory=list, description="Terms found in the candidate's resume.")
    job: List[str] = Field(default_factory=list, description="Terms required by the job.")
    overlap: List[str] = Field(default_factory=list, description="Terms present on both sides.")


class Recommendation(CamelModel):
    title: str = Field(description="The skill or area to improve.")
    description: str = Field(description="Why this gap matters for the target role.")
    priority: Literal["High", "Medium", "Low"]
    difficulty: Literal["Easy", "Medium", "Hard"]
    mastery_steps: List[str] = Field(min_length=3, max_length=3, description="Exactly 3 concrete steps to close the gap.")


class BulletFeedback(CamelModel):
    original_text: str = Field(description="The resume line as written.")
    feedback: Optional[str] = Field(default=None, description="Critique of the line.")
    suggested_update: Optional[str] = Field(default=None, description="A rewritten, higher-impact version of the line.")
    needs_improvement: bool


class InterviewPrep(CamelModel):
    technical_topics: List[str] = Field(default_factory=list)
    behavioral_prompts: List[str] = Field(default_factory=list)
    insider_tips: List[str] = Field(default_factory=list)


class CoverLetterTips(CamelModel):
    key_narratives: List[str] = Field(default_factory=list)
    tone: str = ""
    must_mention_skills: List[str] = Field(default_factory=list)


class AnalysisResult(CamelModel):
    match_score: float = Field(description="Raw skill/experience match from 0 to 100.")
    selectivity_score: float = Field(description="How selective the employer is, from 0 to 100.")
    realistic_admission_probability: float = Field(description="Realistic chance of an offer, from 0 to 100.")
    executive_summary: str = Field(description="A blunt 2-4 sentence verdict.")
    extracted_skills: ExtractionSegment = Field(default_factory=ExtractionSegment)
    extracted_experience: ExtractionSegment = Field(default_factory=ExtractionSegment)
    recommendations: List[Recommendation] = Field(min_length=3, max_length=3)
    bullet_feedback: List[BulletFeedback] = Field(description="Per-line critique of the resume.")
    interview_prep: InterviewPrep
    cover_letter_tips: Optional[CoverLetterTips] = None
