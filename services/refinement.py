"""
Optional refinement pass: coaching cues appended to exercise names.

Only names change. Sets, reps, rest, load, duration and order are copied
from the input, and any failure returns the input unchanged.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from application.ports import CompletionService
from models.planning import ExerciseSpec, Profile
from services.llm.client import CompletionOptions
from services.llm.prompts import REFINEMENT_SYSTEM_PROMPT, build_refinement_prompt

logger = logging.getLogger(__name__)

CUE_SEPARATOR = " - cue:"
MAX_NAME_LENGTH = 200

REFINEMENT_OPTIONS = CompletionOptions(temperature=0.6, max_tokens=1000, retries=1)

_LINE_PREFIX = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s*")


@dataclass
class RefinementResult:
    exercises: List[ExerciseSpec]
    refined: bool


def strip_cue(name: str) -> str:
    """Exercise name without its coaching cue."""
    index = name.find(CUE_SEPARATOR)
    if index == -1:
        return name
    return name[:index].strip()


def extract_cue(name: str) -> Optional[str]:
    """The coaching cue from an exercise name, or None."""
    index = name.find(CUE_SEPARATOR)
    if index == -1:
        return None
    return name[index + len(CUE_SEPARATOR):].strip() or None


def parse_refined_names(text: str) -> List[str]:
    """One cleaned name per non-empty line, list markers removed."""
    names = []
    for line in text.splitlines():
        cleaned = _LINE_PREFIX.sub("", line).strip().strip('"')
        if cleaned:
            names.append(cleaned[:MAX_NAME_LENGTH])
    return names


async def refine_exercises(
    client: Optional[CompletionService],
    model: Optional[str],
    focus: str,
    tags: List[str],
    profile: Profile,
    exercises: List[ExerciseSpec],
) -> RefinementResult:
    """
    Ask for one cue per exercise and merge the new names back.

    The response must contain exactly one line per exercise; otherwise the
    original exercises are kept.
    """
    if not exercises or client is None or not client.is_available():
        return RefinementResult(exercises=exercises, refined=False)

    messages = [
        {"role": "system", "content": REFINEMENT_SYSTEM_PROMPT},
        {"role": "user", "content": build_refinement_prompt(focus, tags, profile, exercises)},
    ]

    try:
        text = await client.generate_text(
            model or client.default_model, messages, options=REFINEMENT_OPTIONS
        )
    except Exception as e:
        logger.warning(f"Refinement pass failed, keeping original exercises: {e}")
        return RefinementResult(exercises=exercises, refined=False)

    names = parse_refined_names(text)
    if len(names) != len(exercises):
        logger.warning(
            f"Refinement returned {len(names)} lines for {len(exercises)} exercises, ignoring"
        )
        return RefinementResult(exercises=exercises, refined=False)

    refined = [
        exercise.model_copy(update={"name": name})
        for exercise, name in zip(exercises, names)
    ]
    return RefinementResult(exercises=refined, refined=True)
