# presentation.py

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from schema import AnalysisResult, BulletFeedback, CoverLetterTips, ExtractionSegment, Recommendation

PANEL_TERM_LIMIT = 10


class ComparisonTerm(BaseModel):
    term: str
    overlapping: bool


class ComparisonPanel(BaseModel):
    title: str
    candidate: List[ComparisonTerm]
    requirements: List[ComparisonTerm]


class InterviewLists(BaseModel):
    technical_topics: List[str]
    behavioral_prompts: List[str]
    insider_tips: List[str]


def admission_odds(result: AnalysisResult) -> str:
    """'12%' for a probability of 12; no clamping, the oracle is trusted to stay in range."""
    return f"{result.realistic_admission_probability:g}%"


def comparison_panel(title: str, segment: ExtractionSegment, limit: int = PANEL_TERM_LIMIT) -> ComparisonPanel:
    overlap = set(segment.overlap)
    return ComparisonPanel(
        title=title,
        candidate=[ComparisonTerm(term=t, overlapping=t in overlap) for t in segment.resume[:limit]],
        requirements=[ComparisonTerm(term=t, overlapping=t in overlap) for t in segment.job[:limit]],
    )


def comparison_panels(result: AnalysisResult) -> List[ComparisonPanel]:
    return [
        comparison_panel("Skills", result.extracted_skills),
        comparison_panel("Experience", result.extracted_experience),
    ]


def improvement_cards(result: AnalysisResult) -> List[Recommendation]:
    return list(result.recommendations[:3])


def flagged_bullets(result: AnalysisResult) -> List[BulletFeedback]:
    return [b for b in result.bullet_feedback if b.needs_improvement]


def interview_lists(result: AnalysisResult) -> InterviewLists:
    prep = result.interview_prep
    return InterviewLists(
        technical_topics=list(prep.technical_topics),
        behavioral_prompts=list(prep.behavioral_prompts),
        insider_tips=list(prep.insider_tips),
    )


def cover_letter_block(result: AnalysisResult) -> Optional[CoverLetterTips]:
    tips = result.cover_letter_tips
    if tips is None:
        return None
    return CoverLetterTips(
        key_narratives=tips.key_narratives[:3],
        tone=tips.tone,
        must_mention_skills=tips.must_mention_skills[:8],
    )


class BulletSelection(BaseModel):
    """Which flagged bullet is open in the detail pane. At most one; none by default."""
    model_config = ConfigDict(frozen=True)

    index: Optional[int] = None

    def select(self, index: int) -> "BulletSelection":
        return BulletSelection(index=index)

    def clear(self) -> "BulletSelection":
        return BulletSelection()

    def selected(self, result: AnalysisResult) -> Optional[BulletFeedback]:
        flagged = flagged_bullets(result)
        if self.index is None or not 0 <= self.index < len(flagged):
            return None
        return flagged[self.index]
