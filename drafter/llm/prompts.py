"""Prompt text for the property description analyzer."""

PROPERTY_DESCRIPTION_PROMPT = (
    "Analyze these property images and create a detailed, engaging property "
    "description for a real estate portal. Include key features, room "
    "descriptions, and selling points that would attract potential buyers."
)

# Returned when the model answers with no content at all.
EMPTY_DESCRIPTION_TEXT = "Unable to generate description"
