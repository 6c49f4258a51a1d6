"""
Stand-ins for the google-genai client used across the test suite.

`make_client` returns a MagicMock whose `aio.models.generate_content` is an
AsyncMock, so tests can assert exactly which oracle calls were made.
"""
import copy
import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock


def make_response(text: Optional[str]) -> MagicMock:
    response = MagicMock()
    response.text = text
    return response


def make_client(*texts: Optional[str]) -> MagicMock:
    """Client whose successive generate_content calls return `texts` in order."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(side_effect=[make_response(t) for t in texts])
    return client


def failing_client(exc: BaseException) -> MagicMock:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(side_effect=exc)
    return client


def job_postings(count: int = 5) -> List[Dict[str, str]]:
    return [
        {
            "title": f"Software Engineering Intern {i}",
            "company": f"Fintech Co {i}",
            "location": "New York, NY",
            "snippet": f"Build payment infrastructure on team {i}.",
            "url": f"https://jobs.example.com/{i}",
        }
        for i in range(1, count + 1)
    ]


_ANALYSIS_PAYLOAD: Dict[str, Any] = {
    "matchScore": 64,
    "selectivityScore": 91,
    "realisticAdmissionProbability": 12,
    "executiveSummary": "Strong ML pipeline work, but no production backend experience for a payments role.",
    "extractedSkills": {
        "resume": ["Python", "PyTorch", "Airflow"],
        "job": ["Python", "Java", "Kafka"],
        "overlap": ["Python"],
    },
    "extractedExperience": {
        "resume": ["ML pipelines", "Research assistant"],
        "job": ["Distributed systems", "ML pipelines"],
        "overlap": ["ML pipelines"],
    },
    "recommendations": [
        {
            "title": "Java backend services",
            "description": "The team ships JVM services; you have none.",
            "priority": "High",
            "difficulty": "Medium",
            "masterySteps": ["Learn Spring Boot", "Build a ledger API", "Deploy it with CI"],
        },
        {
            "title": "Event streaming",
            "description": "Kafka is listed as required.",
            "priority": "Medium",
            "difficulty": "Hard",
            "masterySteps": ["Run Kafka locally", "Write a consumer group", "Handle exactly-once delivery"],
        },
        {
            "title": "Quantified impact",
            "description": "Bullets lack numbers.",
            "priority": "Low",
            "difficulty": "Easy",
            "masterySteps": ["Collect metrics", "Rewrite bullets", "Get a peer review"],
        },
    ],
    "bulletFeedback": [
        {"originalText": "Built 3 ML pipelines", "feedback": "No scale or outcome.", "suggestedUpdate": "Built 3 ML pipelines processing 2M events/day", "needsImprovement": True},
        {"originalText": "Dean's list 2024", "needsImprovement": False},
        {"originalText": "Helped with team projects", "feedback": "Vague.", "needsImprovement": True},
    ],
    "interviewPrep": {
        "technicalTopics": ["Idempotent payment APIs", "SQL isolation levels"],
        "behavioralPrompts": ["Tell me about a time you shipped under pressure"],
        "insiderTips": ["Expect a live debugging round"],
    },
    "coverLetterTips": {
        "keyNarratives": ["Data reliability", "Ownership", "Curiosity about payments", "Extra narrative"],
        "tone": "Precise and builder-minded",
        "mustMentionSkills": ["Python", "SQL"],
    },
}


def analysis_payload(**overrides: Any) -> Dict[str, Any]:
    payload = copy.deepcopy(_ANALYSIS_PAYLOAD)
    payload.update(overrides)
    return payload


def analysis_json(**overrides: Any) -> str:
    return json.dumps(analysis_payload(**overrides))
