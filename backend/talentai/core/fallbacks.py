# backend/talentai/core/fallbacks.py
"""
Static content used whenever the AI gateway cannot produce usable output.

- FALLBACK_QUESTIONS: position-keyed quiz bank (unknown positions use DEFAULT_QUIZ_POSITION)
- resume_heuristic(): keyword scan used as the last-resort resume analysis; never raises
- INTERVIEW_QUESTIONS: generic questions for the text interview when generation fails
- VIDEO_TEMPLATE: the fixed "analysis" returned by the stub video scorer
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional

DEFAULT_QUIZ_POSITION = "Software Engineer"

FALLBACK_QUESTIONS: Dict[str, List[Dict[str, Any]]] = {
    "Software Engineer": [
        {
            "question": "What is the time complexity of binary search?",
            "options": ["O(n)", "O(log n)", "O(n²)", "O(1)"],
            "correctAnswer": 1,
        },
        {
            "question": "Which data structure uses LIFO principle?",
            "options": ["Queue", "Stack", "Tree", "Hash Table"],
            "correctAnswer": 1,
        },
        {
            "question": "What does REST stand for?",
            "options": [
                "Remote Execution Standard Transfer",
                "Representational State Transfer",
                "Real-time Execution State Transfer",
                "Resource Execution State Transfer",
            ],
            "correctAnswer": 1,
        },
        {
            "question": "Which HTTP method is idempotent?",
            "options": ["POST", "PUT", "PATCH", "All of the above"],
            "correctAnswer": 1,
        },
        {
            "question": "What is the purpose of version control systems?",
            "options": ["Code backup only", "Track changes and collaboration", "Compile code", "Debug applications"],
            "correctAnswer": 1,
        },
    ],
    "Data Scientist": [
        {
            "question": "What is overfitting in machine learning?",
            "options": [
                "Model performs well on training data but poorly on test data",
                "Model performs poorly on all data",
                "Model is too simple",
                "Model training takes too long",
            ],
            "correctAnswer": 0,
        },
        {
            "question": "Which algorithm is best for classification?",
            "options": ["Linear Regression", "K-Means", "Random Forest", "PCA"],
            "correctAnswer": 2,
        },
        {
            "question": "What does SQL stand for?",
            "options": [
                "Simple Query Language",
                "Structured Query Language",
                "System Query Language",
                "Standard Query Logic",
            ],
            "correctAnswer": 1,
        },
        {
            "question": "What is the purpose of cross-validation?",
            "options": ["Speed up training", "Assess model performance", "Reduce features", "Clean data"],
            "correctAnswer": 1,
        },
        {
            "question": "What is a confusion matrix used for?",
            "options": [
                "Data cleaning",
                "Feature selection",
                "Evaluating classification models",
                "Optimizing hyperparameters",
            ],
            "correctAnswer": 2,
        },
    ],
}


def fallback_questions(position: Optional[str], count: int = 5) -> List[Dict[str, Any]]:
    bank = FALLBACK_QUESTIONS.get(position or "") or FALLBACK_QUESTIONS[DEFAULT_QUIZ_POSITION]
    return copy.deepcopy(bank[: max(0, count)])


# --- Resume heuristic -----------------------------------------------------------

def resume_heuristic(
    resume_text: Optional[str],
    keywords: Iterable[str],
    ats_score: int = 75,
    hit_score: int = 80,
    miss_score: int = 60,
) -> Dict[str, Any]:
    """Keyword scan used when AI analysis is unavailable. Pure; never raises."""
    lowered = str(resume_text or "").lower()
    has_projects = any(str(k).lower() in lowered for k in keywords or [])
    return {
        "atsScore": ats_score,
        "projectScore": hit_score if has_projects else miss_score,
        "projects": [
            {
                "name": "Identified Project",
                "description": "Projects detected in resume - detailed analysis requires successful AI processing",
                "technologies": ["Various technologies mentioned"],
            }
        ] if has_projects else [],
        "strengths": [
            "Professional resume format",
            "Practical project experience mentioned" if has_projects else "Clear experience presentation",
            "Relevant for position",
        ],
        "improvements": [
            "Add more quantifiable metrics and outcomes",
            "Highlight specific technologies used in projects",
            "Include measurable impact of work",
        ],
        "projectAnalysis": (
            "Resume contains project references. Full analysis temporarily unavailable."
            if has_projects
            else "Consider adding more hands-on project examples to demonstrate practical skills."
        ),
        "fallback": True,
    }


# --- Interview -------------------------------------------------------------------

INTERVIEW_QUESTIONS: List[str] = [
    "Tell me about a challenging project you worked on and how you overcame obstacles.",
    "How do you handle working under tight deadlines and pressure?",
    "Describe a time you disagreed with a teammate. How did you resolve it?",
    "Which technical skill are you most proud of, and how did you build it?",
    "Where do you see yourself in 5 years and how does this role fit into your career goals?",
]

INTERVIEW_CLOSING = (
    "Thank you for your thoughtful answers. Before we wrap up: what are your career goals, "
    "and when would you be available to start? This concludes our interview."
)


def interview_greeting(position: str, max_questions: int) -> str:
    return (
        f"Hello! I'm your AI interviewer. I'll ask you {max_questions} questions about your "
        f"experience and the {position} role. Let's begin:\n\n"
        "Tell me about your background and why you're interested in this position?"
    )


def fallback_interview_question(turn: int, closing: bool = False) -> str:
    if closing:
        return INTERVIEW_CLOSING
    return INTERVIEW_QUESTIONS[turn % len(INTERVIEW_QUESTIONS)]


# --- Video -----------------------------------------------------------------------

VIDEO_TEMPLATE: Dict[str, Any] = {
    "total": 88,
    "subScores": {
        "bodyLanguage": 22,
        "communication": 23,
        "eyeContact": 21,
        "presentation": 22,
    },
    "strengths": ["Professional appearance", "Clear communication", "Good eye contact"],
    "improvements": ["Reduce nervous gestures", "More confident tone"],
    "summary": "Candidate demonstrated strong professional presence and communication skills.",
}

VIDEO_FALLBACK_STRENGTHS = ["Professional appearance", "Clear communication", "Good confidence level"]
VIDEO_FALLBACK_IMPROVEMENTS = ["Maintain more eye contact", "Reduce filler words"]


__all__ = [
    "DEFAULT_QUIZ_POSITION",
    "FALLBACK_QUESTIONS",
    "fallback_questions",
    "resume_heuristic",
    "INTERVIEW_QUESTIONS",
    "INTERVIEW_CLOSING",
    "interview_greeting",
    "fallback_interview_question",
    "VIDEO_TEMPLATE",
    "VIDEO_FALLBACK_STRENGTHS",
    "VIDEO_FALLBACK_IMPROVEMENTS",
]
