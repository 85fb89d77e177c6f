"""Prompt builders for the generation tasks.

Only the structure is fixed here (what gets embedded where); callers may
pass fully custom prompts to every executor.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

_MANGA_STYLE = (
    "Use classic manga art style with expressive characters, dynamic action lines, "
    "and screentones for shading. The entire image must be a single, cohesive manga "
    "page layout."
)


class CommercialBrief(BaseModel):
    """Advertisement details collected by the commercial form."""

    product_name: str = Field(min_length=1)
    product_description: str = ""
    target_audience: str = ""
    style: str = "Photorealistic"


def build_script_prompt(theme: str, pages: int) -> str:
    """Planning prompt asking for exactly ``pages`` page descriptions."""
    return (
        f'You are a creative manga storyboard writer. Based on the theme "{theme}", '
        f"write a cohesive story script broken down into exactly {pages} parts. "
        "Each part should be a detailed description for a single manga page, outlining "
        "the panels, scenes, character actions, and key moments. The story must flow "
        "logically from one part to the next. Respond with JSON of the form "
        f'{{"pages": [...]}} containing exactly {pages} strings.'
    )


def build_manga_page_prompt(page_description: str) -> str:
    """Rendering prompt embedding one planned page description."""
    return (
        "Create a full, dynamic, black and white manga page with multiple panels that "
        f"tells a story based on the following scene description: '{page_description}'. "
        f"The panels must have a clear narrative flow. {_MANGA_STYLE}"
    )


def build_manga_theme_prompt(theme: str) -> str:
    """Single-page manga prompt used when no script is planned."""
    return (
        "Create a full, dynamic, black and white manga page with multiple panels that "
        f"tells a story based on the following theme: '{theme}'. The panels should show "
        f"different moments or perspectives of the story. {_MANGA_STYLE}"
    )


def build_styled_dream_prompt(description: str, style: str) -> str:
    """Text-to-image prompt for a dream rendered in a named style."""
    return f"A {style.lower()} depiction of the following dream: {description}"


def build_commercial_prompt(
    brief: CommercialBrief,
    *,
    has_product_image: bool,
    has_model_image: bool,
) -> str:
    """Compose the advertisement prompt.

    Extra instructions are appended for each provided reference image: the
    model image turns the ad into an endorsement, the product image makes
    the product the hero of the shot.
    """
    instructions = [
        "Generate a compelling, visually stunning image suitable for a print ad or "
        "digital marketing campaign.",
        "The composition should be dynamic and make the product desirable to the "
        "target audience.",
        "The overall mood, lighting, and environment must align with the requested "
        "visual style.",
        "This is a final advertisement, NOT a storyboard scene. The output should be a "
        "single, polished image.",
    ]

    if has_model_image:
        instructions.extend(
            [
                "A celebrity/model image has been provided. Render this specific person "
                "with a high degree of likeness.",
                "Depict this person as the endorser of the product, interacting with it "
                "in a way that fits the campaign's tone.",
            ]
        )
    if has_product_image:
        instructions.append(
            "A product image has been provided. Make the product the hero of the shot, "
            "matching the provided image accurately."
        )

    bullet_list = "\n".join(f"- {line}" for line in instructions)
    return (
        "Create a high-quality, professional commercial advertisement image.\n"
        f'Product: "{brief.product_name}" - {brief.product_description}\n'
        f"Target Audience: {brief.target_audience}\n"
        f"Visual Style: {brief.style}\n\n"
        f"Instructions:\n{bullet_list}"
    )


def build_dream_photo_prompt(description: str, style: str) -> str:
    """Edit prompt redrawing an uploaded photo around a dream."""
    if style.lower() == "manga":
        return (
            "Redraw the uploaded image as a single, dynamic manga panel that captures the "
            f"essence of this story: '{description}'. Use a classic black and white manga "
            "art style with expressive characters, dynamic action lines, and screentones "
            "for shading. The entire image must be a complete transformation."
        )
    return (
        f'Transform the provided image based on this story: "{description}", '
        f"in the style of {style}."
    )


def build_art_style_prompt(style: str) -> str:
    """Edit prompt converting a whole photo into a named art style."""
    return (
        "Make the entire uploaded image, including the person and the background, look "
        f"like it was created in the following art style: {style}. The person's features, "
        "clothing, and the environment should all be completely redrawn to match this "
        "aesthetic, not just filtered."
    )


def build_identity_prompt(persona: str, setting: str = "") -> str:
    """Edit prompt re-imagining the person in a photo as a persona."""
    prompt = f"Transform the person in the image into a {persona}."
    if setting.strip():
        prompt += f" The setting is {setting.strip()}."
    return prompt + (
        " Maintain the original person's key facial features but adapt their clothing, "
        "hair, and the background to fit the new identity. The final image should be "
        "photorealistic and high-quality."
    )


def build_icon_prompt(icon: str, action: str = "") -> str:
    """Edit prompt placing the person in a photo alongside a named icon."""
    if action.strip():
        return (
            f"Create a new, realistic image of the person from the uploaded photo and {icon}. "
            f"In the image, they should be {action.strip()}. The scene should be dynamic and "
            "reflect this action, with a background appropriate for the activity. Keep the "
            "lighting, shadows and interaction between the two people consistent."
        )
    return (
        f"Create a new, realistic image featuring the person from the uploaded photo alongside "
        f"{icon}. They should appear to be interacting naturally, like in a posed meeting or a "
        "candid scene, with a background appropriate for both. Keep the lighting and shadows "
        "consistent."
    )
