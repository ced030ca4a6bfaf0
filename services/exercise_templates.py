"""
Template exercise compiler.

Deterministic fallback used when exercise generation is unavailable or
fails. Every focus has a template table; exercises are filtered by the
athlete's equipment and dislikes. A disliked or unequipped exercise is
replaced by its first alternative that passes the same two checks, and a
bodyweight baseline guarantees the result is never empty.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Set, Tuple, Union

from models.planning import ExerciseSpec, Focus, Profile

logger = logging.getLogger(__name__)

BODYWEIGHT = "bodyweight"

# Free-text keyword -> equipment token, checked in order
EQUIPMENT_KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("dumbbell",), "dumbbells"),
    (("kettlebell",), "kettlebell"),
    (("barbell",), "barbell"),
    (("pull-up bar", "pullup bar", "pull up bar", "chin-up bar"), "pull-up bar"),
    (("dip bar", "dip station"), "dip bars"),
    (("bench",), "bench"),
    (("rack",), "squat rack"),
    (("mat", "yoga"), "mat"),
    (("band",), "bands"),
    (("cable",), "cable"),
    (("machine",), "machines"),
)

FULL_GYM_EQUIPMENT: FrozenSet[str] = frozenset(
    token for _, token in EQUIPMENT_KEYWORDS
) | {BODYWEIGHT}

_DISLIKE_SEPARATORS = re.compile(r",|;|/|\n|\band\b|\bor\b", re.IGNORECASE)
_EMPTY_DISLIKES = frozenset({"", "none", "nothing", "n/a", "na", "no"})


@dataclass(frozen=True)
class Alternative:
    """A substitute movement and the equipment it needs."""

    name: str
    equipment: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ExerciseTemplate:
    """A template row: dosing, required equipment and substitutes."""

    name: str
    sets: int
    reps: Optional[int]
    rest_sec: int
    estimated_duration: int
    load_kg: Optional[float] = None
    equipment: Tuple[str, ...] = ()
    alternatives: Tuple[Alternative, ...] = ()


# ---------------------------------------------------------------------------
# Template tables
# ---------------------------------------------------------------------------

UPPER_TEMPLATES = (
    ExerciseTemplate("Dumbbell Bench Press", 4, 8, 180, 900, 20, ("dumbbells",), (Alternative("Push-ups"), Alternative("Floor Press", ("dumbbells",)))),
    ExerciseTemplate("Dumbbell Row", 4, 8, 150, 780, 22, ("dumbbells",), (Alternative("Inverted Row", ("pull-up bar",)),)),
    ExerciseTemplate("Dumbbell Shoulder Press", 3, 10, 120, 600, 15, ("dumbbells",), (Alternative("Pike Push-ups"),)),
    ExerciseTemplate("Dumbbell Lateral Raise", 3, 12, 90, 450, 8, ("dumbbells",), (Alternative("Side Plank Raises"),)),
)

LOWER_TEMPLATES = (
    ExerciseTemplate("Dumbbell Goblet Squat", 4, 10, 180, 960, 20, ("dumbbells",), (Alternative("Bodyweight Squats"),)),
    ExerciseTemplate("Dumbbell Romanian Deadlift", 3, 10, 150, 720, 25, ("dumbbells",), (Alternative("Single-leg RDL"),)),
    ExerciseTemplate("Dumbbell Bulgarian Split Squat", 3, 10, 90, 630, 15, ("dumbbells",), (Alternative("Bodyweight Lunges"), Alternative("Step-ups", ("bench",)))),
    ExerciseTemplate("Dumbbell Calf Raise", 3, 15, 60, 450, 20, ("dumbbells",), (Alternative("Bodyweight Calf Raises"),)),
)

FULL_BODY_TEMPLATES = (
    ExerciseTemplate("Dumbbell Goblet Squat", 3, 12, 90, 540, 16, ("dumbbells",), (Alternative("Bodyweight Squats"),)),
    ExerciseTemplate("Push-ups", 3, 15, 60, 360, None, (), (Alternative("Incline Push-ups"), Alternative("Knee Push-ups"))),
    ExerciseTemplate("Dumbbell Row", 3, 12, 90, 540, 18, ("dumbbells",), (Alternative("Inverted Row", ("pull-up bar",)),)),
    ExerciseTemplate("Dumbbell Overhead Press", 3, 10, 90, 450, 12, ("dumbbells",), (Alternative("Pike Push-ups"),)),
    ExerciseTemplate("Plank - Hold for 45 seconds", 3, None, 60, 315),
)

CONDITIONING_TEMPLATES = (
    ExerciseTemplate("Burpees", 4, 10, 60, 480, None, (), (Alternative("Squat Thrusts"), Alternative("Jumping Jacks"))),
    ExerciseTemplate("Dumbbell Thrusters", 4, 12, 90, 600, 10, ("dumbbells",), (Alternative("Jump Squats"),)),
    ExerciseTemplate("Mountain Climbers", 4, 20, 60, 400, None, (), (Alternative("High Knees"),)),
    ExerciseTemplate("Kettlebell Swings", 4, 15, 90, 600, 16, ("kettlebell",), (Alternative("Jumping Jacks"),)),
)

MOBILITY_TEMPLATES = (
    ExerciseTemplate("Cat-Cow Stretch - Flow for 45 seconds", 3, None, 30, 225),
    ExerciseTemplate("Downward Dog - Hold for 30 seconds", 3, None, 30, 180),
    ExerciseTemplate("Standing Forward Fold - Hold for 45 seconds", 2, None, 30, 150),
    ExerciseTemplate("Lizard Lunge - Hold 30 seconds per side", 2, None, 30, 210),
    ExerciseTemplate("Seated Forward Bend - Hold for 60 seconds", 2, None, 30, 180),
    ExerciseTemplate("Child's Pose - Hold for 90 seconds", 1, None, 0, 90),
)

YOGA_TEMPLATES = (
    ExerciseTemplate("Sun Salutation A - 5 rounds, flow with the breath", 3, None, 60, 600),
    ExerciseTemplate("Warrior II - Hold 45 seconds per side", 2, None, 30, 210),
    ExerciseTemplate("Downward Dog - Hold for 45 seconds", 3, None, 30, 225),
    ExerciseTemplate("Pigeon Pose - Hold 60 seconds per side", 2, None, 30, 300),
    ExerciseTemplate("Savasana - Relax for 5 minutes", 1, None, 0, 300),
)

PILATES_TEMPLATES = (
    ExerciseTemplate("The Hundred - 100 pulses with controlled breathing", 2, None, 45, 240, None, ("mat",), (Alternative("Dead Bug - 30 seconds per side"),)),
    ExerciseTemplate("Single Leg Stretch", 3, 10, 45, 270),
    ExerciseTemplate("Pilates Roll-Up", 3, 8, 45, 270),
    ExerciseTemplate("Side-Lying Leg Lifts", 2, 12, 30, 240),
    ExerciseTemplate("Swimming - Flow for 30 seconds", 3, None, 30, 180),
)

CALISTHENICS_TEMPLATES = (
    ExerciseTemplate("Pull-ups", 4, 6, 120, 600, None, ("pull-up bar",), (Alternative("Inverted Row", ("pull-up bar",)),)),
    ExerciseTemplate("Push-ups", 4, 12, 90, 480, None, (), (Alternative("Incline Push-ups"), Alternative("Knee Push-ups"))),
    ExerciseTemplate("Dips", 3, 8, 90, 420, None, ("dip bars",), (Alternative("Bench Dips", ("bench",)),)),
    ExerciseTemplate("Pistol Squats", 3, 8, 90, 450, None, (), (Alternative("Assisted Pistol Squats"), Alternative("Split Squats"))),
    ExerciseTemplate("Plank to Push-up", 3, 10, 60, 360),
)

FOCUS_TEMPLATES: Dict[Focus, Tuple[ExerciseTemplate, ...]] = {
    Focus.UPPER: UPPER_TEMPLATES,
    Focus.LOWER: LOWER_TEMPLATES,
    Focus.FULL: FULL_BODY_TEMPLATES,
    Focus.CONDITIONING: CONDITIONING_TEMPLATES,
    Focus.MOBILITY: MOBILITY_TEMPLATES,
    Focus.YOGA: YOGA_TEMPLATES,
    Focus.PILATES: PILATES_TEMPLATES,
    Focus.CALISTHENICS: CALISTHENICS_TEMPLATES,
}

# Bodyweight-only sessions used when filtering leaves nothing
BODYWEIGHT_BASELINE: Dict[Focus, Tuple[ExerciseTemplate, ...]] = {
    Focus.UPPER: (
        ExerciseTemplate("Push-ups", 3, 12, 90, 360),
        ExerciseTemplate("Pike Push-ups", 3, 10, 90, 360),
        ExerciseTemplate("Plank - Hold for 45 seconds", 3, None, 60, 315),
    ),
    Focus.LOWER: (
        ExerciseTemplate("Bodyweight Squats", 3, 15, 90, 450),
        ExerciseTemplate("Lunges", 3, 12, 90, 420),
        ExerciseTemplate("Glute Bridges", 3, 15, 60, 360),
    ),
    Focus.FULL: (
        ExerciseTemplate("Bodyweight Squats", 3, 15, 90, 450),
        ExerciseTemplate("Push-ups", 3, 12, 90, 360),
        ExerciseTemplate("Glute Bridges", 3, 15, 60, 360),
    ),
    Focus.CONDITIONING: (
        ExerciseTemplate("Mountain Climbers", 4, 20, 60, 400),
        ExerciseTemplate("Jumping Jacks", 3, 30, 60, 360),
        ExerciseTemplate("High Knees - 30 seconds", 3, None, 60, 270),
    ),
    Focus.MOBILITY: (
        ExerciseTemplate("Cat-Cow Stretch - Flow for 45 seconds", 3, None, 30, 225),
        ExerciseTemplate("Hip Flexor Stretch - Hold 30 seconds per side", 2, None, 30, 150),
        ExerciseTemplate("Child's Pose - Hold for 90 seconds", 1, None, 0, 90),
    ),
    Focus.YOGA: (
        ExerciseTemplate("Sun Salutations - Flow for 60 seconds", 3, None, 60, 540),
        ExerciseTemplate("Warrior II - Hold 45 seconds per side", 2, None, 30, 210),
        ExerciseTemplate("Savasana - Relax for 5 minutes", 1, None, 0, 300),
    ),
    Focus.PILATES: (
        ExerciseTemplate("Dead Bug - 30 seconds per side", 3, None, 45, 270),
        ExerciseTemplate("Glute Bridges", 3, 15, 60, 360),
        ExerciseTemplate("Side Plank - Hold 30 seconds per side", 2, None, 30, 180),
    ),
    Focus.CALISTHENICS: (
        ExerciseTemplate("Push-ups", 4, 12, 90, 480),
        ExerciseTemplate("Split Squats", 3, 10, 90, 420),
        ExerciseTemplate("Plank to Push-up", 3, 10, 60, 360),
    ),
}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_equipment(equipment: Optional[str]) -> Set[str]:
    """
    Parse free-text equipment into tokens.

    Bodyweight is always included. "full gym" (or just "gym") admits
    every token.
    """
    if not equipment:
        return {BODYWEIGHT}

    text = equipment.strip().lower()
    if "full gym" in text or text == "gym":
        return set(FULL_GYM_EQUIPMENT)

    tokens = {BODYWEIGHT}
    for keywords, token in EQUIPMENT_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            tokens.add(token)
    return tokens


def parse_dislikes(dislikes: Optional[str]) -> List[str]:
    """Split free-text dislikes on commas and "and"/"or" into lowercase phrases."""
    if not dislikes:
        return []
    phrases = (part.strip().lower() for part in _DISLIKE_SEPARATORS.split(dislikes))
    return [p for p in dict.fromkeys(phrases) if p not in _EMPTY_DISLIKES]


def is_disliked(name: str, dislikes: List[str]) -> bool:
    """Case-insensitive substring match of any dislike phrase against a name."""
    lowered = name.lower()
    return any(phrase in lowered for phrase in dislikes)


def has_required_equipment(
    template: Union[ExerciseTemplate, Alternative], available: Set[str]
) -> bool:
    """True iff every required token is available."""
    return all(token in available for token in template.equipment)


def is_admissible(
    template: Union[ExerciseTemplate, Alternative],
    available: Set[str],
    dislikes: List[str],
) -> bool:
    """Equipped for and not disliked."""
    return has_required_equipment(template, available) and not is_disliked(template.name, dislikes)


def resolve_focus(focus: Union[Focus, str, None]) -> Focus:
    """Coerce a focus value; anything unrecognized becomes UPPER."""
    if isinstance(focus, Focus):
        return focus
    try:
        return Focus((focus or "").strip().lower())
    except ValueError:
        logger.warning(f"Unknown focus '{focus}', using upper templates")
        return Focus.UPPER


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def _to_spec(template: ExerciseTemplate, order_index: int, name: Optional[str] = None) -> ExerciseSpec:
    substituted = name is not None
    return ExerciseSpec(
        name=name or template.name,
        sets=template.sets,
        reps=template.reps,
        rest_sec=template.rest_sec,
        rir=None,
        load_kg=None if substituted else template.load_kg,
        estimated_duration=template.estimated_duration,
        order_index=order_index,
    )


def _select(
    templates: Tuple[ExerciseTemplate, ...],
    available: Set[str],
    dislikes: List[str],
) -> List[Tuple[ExerciseTemplate, Optional[str]]]:
    """Pick admissible templates, substituting alternatives where needed."""
    selected: List[Tuple[ExerciseTemplate, Optional[str]]] = []
    seen: Set[str] = set()

    for template in templates:
        chosen: Optional[str] = None
        if is_admissible(template, available, dislikes):
            final_name = template.name
        else:
            alternative = next(
                (alt for alt in template.alternatives if is_admissible(alt, available, dislikes)),
                None,
            )
            if alternative is None:
                logger.debug(f"Dropped '{template.name}': no admissible alternative")
                continue
            chosen = final_name = alternative.name

        key = final_name.lower()
        if key in seen:
            continue
        seen.add(key)
        selected.append((template, chosen))

    return selected


def compile_template_exercises(
    focus: Union[Focus, str, None],
    profile: Optional[Profile] = None,
) -> List[ExerciseSpec]:
    """
    Compile a session from the template tables.

    Args:
        focus: Session focus; unrecognized values use the upper table
        profile: Supplies equipment and dislikes (both optional)

    Returns:
        Non-empty list of ExerciseSpec with rir left unset
    """
    profile = profile or Profile()
    resolved = resolve_focus(focus)
    available = parse_equipment(profile.equipment)
    dislikes = parse_dislikes(profile.dislikes)

    selected = _select(FOCUS_TEMPLATES[resolved], available, dislikes)
    if not selected:
        logger.info(f"No admissible {resolved.value} templates, using bodyweight baseline")
        baseline = BODYWEIGHT_BASELINE[resolved]
        selected = [(t, None) for t in baseline if not is_disliked(t.name, dislikes)]
        if not selected:
            logger.warning(f"Every {resolved.value} baseline exercise is disliked, keeping baseline")
            selected = [(t, None) for t in baseline]

    return [_to_spec(template, index, name) for index, (template, name) in enumerate(selected)]
