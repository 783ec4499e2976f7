"""
Prompt templates for banner background generation.

Banners place copy on the left, so every background keeps its subject in
the right third of the frame.
"""

BANNER_BACKGROUND_TEMPLATE = """\
Hyper-realistic, high-fidelity professional photography of a man wearing a \
high-performance waterproof outdoor jacket walking on a scenic mountain trek trail.
CRITICAL COMPOSITION: The man MUST be positioned on the extreme RIGHT third of the frame.
The left two-thirds of the image MUST remain clear of any major subjects to allow for text placement.
Theme: {theme}.
Atmosphere: Bright natural daylight, cinematic lighting, sharp crisp details, vibrant colors.
Style: High-end retail brand photography for an outdoor gear company.
No text, no watermarks, no logos in the image. Masterpiece quality."""

PROMPT_DRAFTING_TEMPLATE = """\
You are an expert AI image prompt engineer. Generate a highly detailed, hyper-realistic \
image generation prompt for an outdoor clothing brand banner.
The theme is: {theme}.
CRITICAL REQUIREMENT: The prompt MUST specify that the main subject (a person wearing \
outdoor gear) is positioned on the extreme RIGHT third of the frame, leaving the left \
two-thirds completely empty/clear for text placement.
The prompt should describe the lighting, atmosphere, and camera style (high-end retail photography).
Do not include any conversational text, just the prompt itself."""


def compose_background_prompt(theme: str) -> str:
    """Build the image prompt for a theme."""
    return BANNER_BACKGROUND_TEMPLATE.format(theme=theme.strip())


def compose_prompt_instruction(theme: str) -> str:
    """Build the instruction asking the text model to draft an image prompt."""
    return PROMPT_DRAFTING_TEMPLATE.format(theme=theme.strip())
