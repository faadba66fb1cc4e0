# backend/talentai/core/prompts.py
"""
Prompt templates used by the pipeline stages.
- Keys: resume_analysis, quiz_questions, interview_followup, interview_closing
- Templates are LangChain-friendly (rendered with PromptTemplate.from_template);
  literal JSON braces are escaped, only the listed variables stay substitutable.
"""

from __future__ import annotations

from typing import Dict, List

from langchain_core.prompts import PromptTemplate


def _escape_braces_keep_vars(template: str, keep_vars: List[str]) -> str:
    esc = template.replace("{", "{{").replace("}", "}}")
    for v in keep_vars:
        esc = esc.replace("{{" + v + "}}", "{" + v + "}")
    return esc


PROMPTS: Dict[str, str] = {}
SYSTEM_PROMPTS: Dict[str, str] = {}

# 1) Resume analysis with focus on real-life projects
PROMPTS["resume_analysis"] = _escape_braces_keep_vars(r"""
Analyze this resume for a {position} position.

**SPECIAL FOCUS: Real-Life Projects**
Pay special attention to identifying and evaluating practical projects, real-world experience, and hands-on work.

Resume Text:
{resume_text}

Provide analysis in this EXACT JSON format:
{
  "atsScore": 85,
  "projectScore": 90,
  "projects": [
    {
      "name": "Project name",
      "description": "Brief description of what was built",
      "technologies": ["Tech1", "Tech2"],
      "impact": "What problem it solved or business value"
    }
  ],
  "strengths": ["..."],
  "improvements": ["..."],
  "projectAnalysis": "Evaluation of hands-on experience and practical skills demonstrated through projects"
}

Focus on:
1. Identifying ALL real-life projects (personal, professional, open-source, freelance)
2. Technologies and tools used in practice
3. Problem-solving demonstrated through projects
4. Impact and outcomes of project work
5. Hands-on technical skills vs theoretical knowledge
""", ["position", "resume_text"])

SYSTEM_PROMPTS["resume_analysis"] = (
    "You are TalentAI, an expert ATS system that specializes in evaluating practical "
    "project experience. Return only valid JSON."
)

# 2) Quiz generation (strict JSON array)
PROMPTS["quiz_questions"] = _escape_braces_keep_vars(r"""
Generate {num_questions} technical multiple-choice questions for a {position} position.

Return ONLY a valid JSON array with this exact structure:
[
  {
    "question": "Question text here?",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswer": 0
  }
]

Every question has exactly 4 options and correctAnswer is the 0-based index of the right one.
Make questions practical and position-specific.
""", ["num_questions", "position"])

SYSTEM_PROMPTS["quiz_questions"] = (
    "You are a technical interviewer. Return only valid JSON, no markdown, no explanations."
)

# 3) Text interview: next question
PROMPTS["interview_followup"] = _escape_braces_keep_vars(r"""
You are interviewing a candidate for {position}. This is question {question_number} of {max_questions}.

Previous conversation:
{transcript}

Ask a relevant follow-up interview question based on their response. Focus on: technical skills,
problem-solving, teamwork, or specific experiences. Keep it conversational and natural.
""", ["position", "question_number", "max_questions", "transcript"])

# 4) Text interview: last turn
PROMPTS["interview_closing"] = _escape_braces_keep_vars(r"""
You are interviewing a candidate for {position}. This is the final question ({max_questions} of {max_questions}).

Previous conversation:
{transcript}

Thank them for their responses and ask one final question about their career goals or availability.
Then provide a brief closing statement.
""", ["position", "max_questions", "transcript"])

SYSTEM_PROMPTS["interview"] = (
    "You are TalentAI, a friendly and professional interviewer. Reply with the next "
    "interviewer message only."
)


def render(key: str, **values) -> str:
    return PromptTemplate.from_template(PROMPTS[key]).format(**values).strip()


__all__ = ["PROMPTS", "SYSTEM_PROMPTS", "render"]
