"""
Prompt templates for base sprites and animation frames.
"""

from spritechain.models import AnimationState, SpriteConfig

# Posture guidance per animation state
ACTION_GUIDANCE = {
    AnimationState.IDLE: "Relaxed idle stance with a subtle breathing motion. Weight evenly balanced.",
    AnimationState.WALK: "Create a walking frame. Legs apart, arms swinging. Maintain steady head height.",
    AnimationState.RUN: "Dynamic running pose. Body leaning forward, legs extended.",
    AnimationState.ATTACK: "Action pose swinging weapon or casting spell. Extended limbs.",
    AnimationState.JUMP: "Mid-air pose. Knees tucked or legs stretched down. dynamic cloth movement.",
    AnimationState.DEATH: "Collapsing or lying on the ground.",
    AnimationState.HIT: "Recoiling from damage. Flashing white or red tint optional but posture should show impact.",
}

BASE_TEMPLATE = """Generate a single {style} 2D game sprite of a {category}.
Description: {description}.
{weapon_text}
The character must be in an IDLE pose, facing slightly right (3/4 view).
The background MUST be a solid, pure white color.
Full body must be visible within the frame with some padding.
High contrast, clean outlines, suitable for game assets.
Do not include any text, grids, or interface elements. Just the character.
Ensure the character proportions are standard for a 2D platformer or RPG."""

# Used when the previous frame of the state is attached as a second image
CONTINUITY_TEMPLATE = """TASK: Generate Frame {index} of {total} for a {action} animation.

INPUTS:
1. First Image: CHARACTER DESIGN (Identity Source).
2. Second Image: PREVIOUS FRAME (Motion Source).

INSTRUCTIONS:
1. Maintain the identity from Image 1 (Colors, Equipment, Volume).
2. Continue the motion from Image 2. This is the NEXT frame in the sequence.
3. {guidance}
4. Ensure smooth transition from the previous frame.
5. Keep the same 3/4 side view.
6. Output on solid white background."""

# Used for the first frame of a state, with only the base design attached
IDENTITY_TEMPLATE = """TASK: Generate Frame {index} of {total} for a {action} animation.

STRICT CONSISTENCY RULES:
1. REFERENCE: Use the attached image as the source of truth for the character's design.
2. DO NOT CHANGE: Head size, limb thickness, clothing details, or colors. The character VOLUME must remain identical.
3. ACTION: {guidance}
4. VIEW ANGLE: Keep the same 3/4 side view.
5. OUTPUT: Single character on solid white background.
6. Ensure the silhouette is distinct and readable."""


def weapon_text(config: SpriteConfig) -> str:
    if config.is_armed:
        return f"The character is wielding a {config.weapon.value}."
    return "The character is unarmed."


def build_base_prompt(config: SpriteConfig) -> str:
    """Build the text-only prompt for the idle base sprite"""
    return BASE_TEMPLATE.format(
        style=config.style.value,
        category=config.category.value,
        description=config.description.strip().rstrip("."),
        weapon_text=weapon_text(config),
    )


def build_action_prompt(state: AnimationState, index: int, total: int,
                        has_previous: bool) -> str:
    """Build the prompt for one animation frame.

    `index`/`total` are advisory sequence hints for the model only.
    """
    template = CONTINUITY_TEMPLATE if has_previous else IDENTITY_TEMPLATE
    return template.format(
        index=index,
        total=total,
        action=state.value,
        guidance=ACTION_GUIDANCE[state],
    )
