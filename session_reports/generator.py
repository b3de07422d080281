from __future__ import annotations  # Feedback report assembly from a session snapshot

from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from config.prompt_config import InterviewerPrompt
from flow_manager.models import ConversationEntry, SessionSnapshot
from flow_manager.templates import format_list, format_scores, substitute

from . import scoring
from .models import Report, RubricScore

FALLBACK_STRENGTH = "Good effort and engagement"
FALLBACK_IMPROVEMENT = "Continue practicing similar problems"
APPROACH_KEYWORDS = ("approach", "algorithm", "data structure")
APPROACH_PREVIEW_CHARS = 100

NEXT_STEPS = [
    "Review the areas marked for improvement",
    "Practice similar problems focusing on weak areas",
    "Work on explaining your thought process more clearly",
    "Consider scheduling another practice session",
]


def extract_approach(history: Sequence[ConversationEntry]) -> str:  # First candidate turn that talks about the approach
    for entry in history:
        if entry.role != "user":
            continue
        lowered = entry.content.lower()
        if any(word in lowered for word in APPROACH_KEYWORDS):
            return entry.content[:APPROACH_PREVIEW_CHARS] + "..."
    return "Standard algorithmic approach"


def describe_changes(last_code_diff: Optional[str]) -> str:
    if not last_code_diff:
        return "No significant code changes tracked"
    changed = [
        line
        for line in last_code_diff.splitlines()
        if line[:1] in {"+", "-"} and not line.startswith(("+++", "---"))
    ]
    if not changed:
        return "Code improvements and optimizations"
    return f"Code improvements and optimizations ({len(changed)} changed lines in the last diff)"


def session_summary(problem_title: str, elapsed_minutes: int, exchanges: int) -> str:
    return (
        f"You worked on {problem_title} for {elapsed_minutes} minutes with {exchanges} exchanges. "
        "You demonstrated a structured problem-solving approach and engaged with the interview process."
    )


def render_rubric(scores: Sequence[RubricScore]) -> str:
    return "\n\n".join(f"### {item.dimension}: {item.score}/5\n\n{item.feedback}" for item in scores)


def _numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{index}. {item}" for index, item in enumerate(items, start=1))


def generate_report(
    prompt: InterviewerPrompt,
    snapshot: SessionSnapshot,
    *,
    now: Optional[Callable[[], datetime]] = None,
) -> Report:
    """Score the session against the configured rubric and render the report templates."""

    context = snapshot.context
    has_code = context.has_code()
    problem_title = context.problem.title if context.has_problem() else ""

    rubric = scoring.score_dimensions(prompt.rubric, snapshot.history, has_code)
    overall = scoring.overall_score(rubric)
    strengths: List[str] = scoring.strengths(rubric) or [FALLBACK_STRENGTH]
    improvements: List[str] = scoring.improvements(rubric) or [FALLBACK_IMPROVEMENT]
    recommendations = scoring.recommendations(rubric, prompt.rubric)
    summary_text = session_summary(problem_title or "the problem", snapshot.elapsed_minutes, len(snapshot.history))
    generated_at = (now or (lambda: datetime.now(timezone.utc)))().isoformat()

    variables = {
        "session_id": snapshot.session_id,
        "problem_title": problem_title or "Unknown Problem",
        "duration": snapshot.elapsed_minutes,
        "overall_score": f"{overall:.1f}",
        "scores": format_scores({scoring.dimension_key(item.dimension): item.score for item in rubric}),
        "rubric": render_rubric(rubric),
        "strengths": format_list(strengths),
        "improvements": format_list(improvements),
        "recommendations": format_list(recommendations),
        "summary": summary_text,
        "approach": extract_approach(snapshot.history),
        "diff_points": describe_changes(snapshot.last_code_diff),
        "next_steps": _numbered(NEXT_STEPS),
        "generated_at": generated_at,
    }
    templates = prompt.report_templates
    return Report(
        session_id=snapshot.session_id,
        problem_title=variables["problem_title"],
        duration_minutes=snapshot.elapsed_minutes,
        rubric=rubric,
        overall_score=overall,
        strengths=strengths,
        improvements=improvements,
        recommendations=recommendations,
        summary=substitute(templates.summary, variables),
        markdown=substitute(templates.markdown, variables),
        generated_at=generated_at,
    )


__all__ = ["FALLBACK_IMPROVEMENT", "FALLBACK_STRENGTH", "describe_changes", "extract_approach", "generate_report"]
