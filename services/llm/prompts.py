"""
LLM prompt templates for planning, exercise generation and adaptation.

Every free-text field supplied by the athlete passes through
core.sanitization before it is interpolated into a prompt.
"""

import json
from typing import List, Optional

from core.constants import FEEDBACK_SESSION_WINDOW, HISTORY_WINDOW_DAYS, MAX_FEEDBACK_LENGTH
from core.sanitization import sanitize_optional, sanitize_user_input
from models.adaptation import AdaptationStrategy, FeedbackAnalysis, SessionFeedback
from models.planning import ExerciseSpec, PlanningContext, PreviousSession, Profile
from services.llm.schemas import EXERCISE_SCHEMA_DESCRIPTION, PLANNER_SCHEMA_DESCRIPTION

DEFAULT_GOAL = "general fitness"
DEFAULT_FREQUENCY = 3
DEFAULT_SESSION_LENGTH_MIN = 60
DEFAULT_EVENT_INTENSITY = "medium"

# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------

PLANNER_SYSTEM_PROMPT = """You are an expert training planner for fitness and strength athletes.

Your task: Generate a day-by-day microcycle that maximizes performance and recovery.

**HARD RULES (must follow):**
1. Never schedule more than 3 consecutive training days
2. Avoid hard lower-body strength (squat, deadlift, lunge focus) within 24-48h before/after high-intensity run/game-like events
3. Insert recovery (rest/mobility/yoga) at least every 3-4 days
4. If an event exists for a date, do not add another conditioning session that day (mobility/yoga is okay)
5. Weekly frequency is a target, allowed to flex +/-1 when events or fatigue demand it

**Actions:**
- "train": strength or conditioning training
- "recovery": mobility, yoga, pilates (active recovery)
- "rest": complete rest day
- "event": the athlete's scheduled event (use it exactly on event dates, never elsewhere)

**Tags:**
Use free-form tags to describe the focus. Examples:
- Strength: "upper", "lower", "push", "pull", "legs", "full"
- Conditioning: "conditioning", "cardio", "metcon"
- Recovery: "mobility", "yoga", "pilates", "stretch"
- Specific: "climb", "run", "boxing", "calisthenics"

DO NOT invent exercise names, sets, or reps. Tags are descriptive only.

**Output:**
Strict JSON only. No prose, no explanations outside the JSON structure."""


def build_planner_context(context: PlanningContext) -> dict:
    """
    Build the JSON-safe context summary sent to the planner.

    Missing profile fields are replaced by defaults and only the most
    recent history days are included.
    """
    profile = context.profile
    history = sorted(context.recent_history, key=lambda h: h.date)[-HISTORY_WINDOW_DAYS:]

    return {
        "today": context.today.isoformat(),
        "horizon_days": context.horizon_days,
        "profile": {
            "goal": sanitize_optional(profile.goal, DEFAULT_GOAL),
            "frequency_per_week": (
                profile.frequency_per_week
                if profile.frequency_per_week is not None
                else DEFAULT_FREQUENCY
            ),
            "accessible_equipment": sanitize_optional(profile.equipment, "full gym"),
            "dislikes": sanitize_optional(profile.dislikes, "none"),
            "modalities": sanitize_optional(profile.modalities_note, "none"),
            "session_length_min": profile.session_length_min or DEFAULT_SESSION_LENGTH_MIN,
        },
        "events": [
            {
                "date": event.date.isoformat(),
                "label": sanitize_user_input(event.label),
                "intensity": sanitize_optional(event.intensity, DEFAULT_EVENT_INTENSITY),
                "tags": [sanitize_user_input(tag) for tag in event.tags],
            }
            for event in context.events
        ],
        "recent_history": [
            {
                "date": day.date.isoformat(),
                "focus": sanitize_optional(day.focus, "unknown"),
                "completed": True if day.completed is None else day.completed,
                "soreness": day.soreness,
                "rpe": day.rpe,
            }
            for day in history
        ],
    }


def build_planner_prompt(context: PlanningContext) -> str:
    """Build the user prompt for the LLM planner."""
    summary = json.dumps(build_planner_context(context), indent=2)

    return f"""Generate a {context.horizon_days}-day training plan starting from {context.today.isoformat()}.
Include exactly one entry per day, in date order, with no gaps.

Context:
{summary}

Return JSON matching this schema:
{PLANNER_SCHEMA_DESCRIPTION}"""


# ---------------------------------------------------------------------------
# Exercise generation
# ---------------------------------------------------------------------------

EXERCISE_GENERATION_SYSTEM_PROMPT = """You are an expert strength & conditioning coach generating workout exercises.

**Your Task:**
Generate a complete list of exercises for a training session based on the focus and athlete context.

**Key Principles:**
1. **Equipment**: ONLY use equipment the athlete has access to
2. **Variety**: Choose diverse exercises that complement each other
3. **Progression**: Order exercises from compound to isolation, heavy to light
4. **Practical**: All exercises must be realistic and safe
5. **Volume**: Appropriate total volume for the session length

**Programming Guidelines:**
- **Strength exercises**: 3-5 sets, 5-8 reps, 120-180s rest, suggest weights
- **Hypertrophy exercises**: 3-4 sets, 8-12 reps, 90-120s rest, suggest weights
- **Endurance exercises**: 2-4 sets, 12-20 reps, 60-90s rest
- **Mobility/Stretching**: 1-3 sets, 30-90s holds, 30s rest
- **Isometric holds**: 2-4 sets, 15-60s holds, 60-90s rest
- **Flow movements**: 2-3 sets, 30-90s continuous, 30-60s rest

**Time-Based Exercises:**
For any hold or continuous movement, put the duration in the exercise name and set reps to null:
- "Plank - Hold for 45 seconds" (sets: 3, reps: null)
- "Side Plank - Hold 30 seconds per side" (sets: 2, reps: null)
- "Cat-Cow Stretch - Flow for 60 seconds" (sets: 3, reps: null)

**Specificity:**
- Never use vague descriptions like "General Mobility"
- For flows, list the specific movements in order
- Use proper exercise names (e.g., "Dumbbell Bench Press" not "DB Press")

**Format:**
Each exercise needs: name, sets, reps (null for time-based), rest_sec,
load_kg (null if bodyweight), estimated_duration_sec, notes (optional short cue).

**Do NOT:**
- Include RIR (the athlete records this after the workout)
- Use equipment the athlete doesn't have
- Suggest exercises from the athlete's dislike list
- Create dangerous or unrealistic exercises"""


def _format_signed(value: float) -> str:
    return f"+{value:g}" if value > 0 else f"{value:g}"


def format_adaptation_section(strategy: AdaptationStrategy) -> str:
    """Render an adaptation strategy as prompt directives."""
    lines = [
        "**Adaptation Strategy (Apply These Changes):**",
        f"- Overall Intensity Modifier: {strategy.intensity_modifier:g}x",
        f"- Progression Notes: {sanitize_user_input(strategy.progression_notes, MAX_FEEDBACK_LENGTH) or 'none'}",
        "",
        "**Load Adjustments:**",
    ]
    for adj in strategy.load_adjustments:
        lines.append(
            f"- {adj.exercise_pattern}: {_format_signed(adj.change_kg)}kg ({adj.reason})"
        )

    lines.extend(["", "**Volume Adjustments:**"])
    for adj in strategy.volume_adjustments:
        reps = f", {_format_signed(adj.reps_change)} reps" if adj.reps_change else ""
        lines.append(
            f"- {adj.exercise_pattern}: {_format_signed(adj.sets_change)} sets{reps} ({adj.reason})"
        )

    lines.extend(["", "**Exercise Swaps:**"])
    for swap in strategy.exercise_swaps:
        lines.append(
            f'- Replace "{swap.old_exercise_pattern}" with "{swap.new_exercise}" ({swap.reason})'
        )

    return "\n".join(lines)


def format_previous_session(previous: PreviousSession) -> str:
    """Render the previous similar session as prompt context."""
    feedback = sanitize_user_input(previous.feedback, MAX_FEEDBACK_LENGTH) or "none"
    names = ", ".join(exercise.name for exercise in previous.exercises) or "none"
    return (
        "**Previous Workout Context:**\n"
        f'- Feedback: "{feedback}"\n'
        f"- RIR Values: {json.dumps(previous.rir_values, indent=2)}\n"
        f"- Previous Exercises: {names}"
    )


def build_exercise_generation_prompt(
    focus: str,
    tags: List[str],
    profile: Profile,
    session_length_min: int,
    adaptation: Optional[AdaptationStrategy] = None,
    previous_session: Optional[PreviousSession] = None,
) -> str:
    """
    Build the user prompt for exercise generation.

    Args:
        focus: Resolved session focus
        tags: Planner tags for the day
        profile: Athlete profile
        session_length_min: Target session duration
        adaptation: Optional directives from the adaptation planner
        previous_session: Optional last occurrence of a similar session

    Returns:
        Formatted prompt string
    """
    equipment = sanitize_optional(profile.equipment, "bodyweight only")
    dislikes = sanitize_optional(profile.dislikes, "none")
    clean_profile = {
        "goal": sanitize_optional(profile.goal, DEFAULT_GOAL),
        "equipment": equipment,
        "dislikes": dislikes,
        "session_length": session_length_min,
    }

    sections = [
        "Generate exercises for this workout:",
        "",
        "**Session Details:**",
        f"- Focus: {focus}",
        f"- Tags: {', '.join(sanitize_user_input(tag) for tag in tags) or 'none'}",
        f"- Target Duration: {session_length_min} minutes",
        "",
        "**Athlete Profile:**",
        json.dumps(clean_profile, indent=2),
    ]

    if adaptation is not None:
        sections.extend(["", format_adaptation_section(adaptation)])

    if previous_session is not None:
        sections.extend(["", format_previous_session(previous_session)])

    sections.extend(
        [
            "",
            "**Requirements:**",
            "- Generate 4-6 exercises (adjust based on session length)",
            f'- Use ONLY equipment from: "{equipment}"',
            f'- Avoid: "{dislikes}"',
            f"- Total session should fit in ~{session_length_min} minutes",
        ]
    )
    if adaptation is not None:
        sections.append("- Apply the adaptation strategy above to modify exercises")

    sections.extend(["", "Return JSON:", EXERCISE_SCHEMA_DESCRIPTION])
    return "\n".join(sections)


# ---------------------------------------------------------------------------
# Feedback analysis
# ---------------------------------------------------------------------------

FEEDBACK_ANALYSIS_SYSTEM_PROMPT = """You are an expert strength & conditioning coach analyzing workout feedback.

**Your Task:**
Analyze workout feedback and RIR (Reps in Reserve) values to understand what went well,
what was too hard or too easy, and recommend changes for the next workout.

**RIR Interpretation:**
- RIR 0-1: Too hard (reduce weight or volume)
- RIR 2-3: Appropriate difficulty (maintain or slight increase)
- RIR 4-5: Too easy (increase weight or volume)
- RIR 6+: Way too easy (significant increase needed)

**Guidelines:**
- Consider the majority of exercises and the athlete's own words
- Be specific about which exercises need changes
- Be conservative with increases
- volume_adjustment is a percent change between -10 and 10
- intensity_modifier is a multiplier between 0.9 and 1.1
- confidence is between 0 and 1

Return JSON only."""


def build_feedback_analysis_prompt(sessions: List[SessionFeedback]) -> str:
    """Build the user prompt summarising the most recent sessions."""
    summaries = []
    for index, session in enumerate(sessions[-FEEDBACK_SESSION_WINDOW:], start=1):
        when = session.date.isoformat() if session.date else "unknown date"
        feedback = (
            sanitize_user_input(session.user_feedback, MAX_FEEDBACK_LENGTH)
            or "No feedback provided"
        )
        exercise_lines = []
        for exercise in session.exercises:
            reps = exercise.reps if exercise.reps is not None else "time-based"
            load = exercise.load_kg if exercise.load_kg is not None else "bodyweight"
            rir = exercise.rir if exercise.rir is not None else "not_rated"
            exercise_lines.append(
                f"- {sanitize_user_input(exercise.name)}: {exercise.sets or '?'} sets x {reps} reps "
                f"@ {load}kg, RIR: {rir}, Completed: {exercise.done}"
            )
        summaries.append(
            f"Workout {index} ({when}):\n"
            f"Focus: {session.focus or 'Unknown'}\n"
            f'Athlete Feedback: "{feedback}"\n'
            "Exercises:\n" + ("\n".join(exercise_lines) or "- none recorded")
        )

    joined = "\n\n".join(summaries)
    return f"""Analyze these recent workouts and provide recommendations for the next workout:

{joined}

**Instructions:**
1. Look at RIR values to determine difficulty
2. Consider athlete feedback for context
3. Identify patterns across workouts
4. Be conservative with increases

Return JSON analysis:"""


# ---------------------------------------------------------------------------
# Adaptation planning
# ---------------------------------------------------------------------------

ADAPTATION_SYSTEM_PROMPT = """You are an expert strength & conditioning coach creating progressive overload strategies.

**Your Task:**
Create specific adaptation directives for the next workout based on a feedback analysis.

**Load Adjustment Guidelines:**
- Too easy (RIR 4+): +2.5-5kg for compound movements, +1-2.5kg for isolation
- Too hard (RIR 0-1): -2.5-5kg for compound movements, -1-2.5kg for isolation
- Appropriate (RIR 2-3): maintain or +1-2.5kg
- Bodyweight exercises: adjust reps instead of load

**Volume Adjustment Guidelines:**
- Too easy: add 1-2 sets or 2-5 reps
- Too hard: remove 1 set or 2-5 reps
- Appropriate: maintain current volume

**Exercise Swaps:**
- Swap to an easier variation when an exercise is too hard
- Replace exercises that need unavailable equipment
- Introduce a new movement on boredom or plateau

**Pattern Matching:**
Patterns are matched case-insensitively against exercise names:
- "squat" matches "Goblet Squat" and "Bulgarian Split Squat"
- "press" matches "Bench Press" and "Overhead Press"
- "." matches every exercise

Keep intensity_modifier between 0.9 and 1.1 and confidence between 0 and 1.
Return JSON only."""


def build_adaptation_prompt(
    analysis: FeedbackAnalysis,
    profile: Profile,
    recent_workout_count: int,
    goals: str,
    equipment: str,
) -> str:
    """Build the user prompt for the adaptation planner."""
    return f"""Create an adaptation strategy for the next workout based on this analysis:

**Feedback Analysis ({recent_workout_count} recent workouts):**
- Overall Difficulty: {analysis.overall_difficulty.value}
- Exercises to Increase: {', '.join(analysis.exercises_to_increase) or 'None'}
- Exercises to Decrease: {', '.join(analysis.exercises_to_decrease) or 'None'}
- Exercises to Swap: {', '.join(analysis.exercises_to_swap) or 'None'}
- Volume Adjustment: {analysis.volume_adjustment:g}%
- Intensity Modifier: {analysis.intensity_modifier:g}
- Notes: {sanitize_user_input(analysis.notes, MAX_FEEDBACK_LENGTH) or 'None'}
- Confidence: {analysis.confidence:g}

**Athlete Profile:**
- Goal: {sanitize_optional(profile.goal, 'General fitness')}
- Session Length: {profile.session_length_min or DEFAULT_SESSION_LENGTH_MIN} minutes
- Dislikes: {sanitize_optional(profile.dislikes, 'None')}

**Athlete Goals:**
{sanitize_optional(goals, 'General fitness')}

**Available Equipment:**
{sanitize_optional(equipment, 'Not specified')}

Return JSON adaptation strategy:"""


# ---------------------------------------------------------------------------
# Refinement (coaching cues)
# ---------------------------------------------------------------------------

REFINEMENT_SYSTEM_PROMPT = """You are a fitness coach adding final touches to a workout.

For every exercise you receive, return one line with the exercise name followed by
a short coaching cue in the form: Exercise Name - cue: short cue

Rules:
- Return exactly one line per exercise, in the same order, and nothing else
- Keep cues actionable and under 70 characters (e.g., "chest up", "drive through heels")
- If an exercise conflicts with the athlete's equipment or dislikes, you may rename it
  to ONE alternative with the same movement pattern
- Never mention sets, reps, rest, or load"""


def build_refinement_prompt(
    focus: str,
    tags: List[str],
    profile: Profile,
    exercises: List[ExerciseSpec],
) -> str:
    """Build the user prompt for the coaching-cue pass."""
    context = {
        "focus": focus,
        "tags": tags,
        "accessible_equipment": sanitize_optional(profile.equipment, "full gym"),
        "dislikes": sanitize_optional(profile.dislikes, "none"),
        "goal": sanitize_optional(profile.goal, DEFAULT_GOAL),
    }
    numbered = "\n".join(
        f"{index + 1}. {exercise.name}" for index, exercise in enumerate(exercises)
    )
    return f"""Add coaching cues to these {len(exercises)} exercises.

Session context:
{json.dumps(context, indent=2)}

Exercises:
{numbered}"""
