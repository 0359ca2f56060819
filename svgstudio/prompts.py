"""System and user prompt templates for the two graphic kinds."""

WORKFLOW = "workflow"
VIDEO_ELEMENT = "videoElement"
GRAPHIC_KINDS = (WORKFLOW, VIDEO_ELEMENT)

SVG_MAX_TOKENS = 4000

SYSTEM_PROMPT = (
    "You are an expert SVG designer which replaces animation work for video editors "
    "and provide alternative via svg code.\n\n"
    "Create valid SVG code following these requirements:\n\n"
    "SVG STRUCTURE:\n"
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 400 400" width="400" height="400">\n'
    "  <defs>\n"
    "    <!-- Define gradients, filters here -->\n"
    "  </defs>\n"
    '  <g class="container">\n'
    "    <!-- Components with proper classes -->\n"
    "  </g>\n"
    "</svg>\n\n"
    "REQUIREMENTS:\n"
    '1. Use xmlns="http://www.w3.org/2000/svg" attribute\n'
    '2. Set viewBox="0 0 400 400" and dimensions\n'
    "3. Include at least 1 gradient and 1 filter\n"
    "4. Use classes that match animation targets\n"
    "5. Output ONLY valid SVG code\n"
    "6. All opening tags must have closing tags\n\n"
    "DESIGN PRINCIPLES:\n"
    "- Create clean, modern designs\n"
    "- Add appropriate shadows\n"
    "- Use readable fonts\n"
    "- Ensure all elements are complete and well-formed"
)

WORKFLOW_PROMPT = (
    "Design a professional, animated workflow diagram with these specifications:\n\n"
    "CONTENT:\n"
    "- Create a workflow diagram showing: {prompt}\n"
    "- Follow a logical flow direction\n"
    "- Use your own imagination to create a professional workflow diagram\n"
    "- Follow left to right direction\n\n"
    "STYLING:\n"
    "- Use a clean design with rounded corners\n"
    "- Keep it professional with appropriate details\n"
    "- Background should be white\n"
    "- All the elements should be visible and in contrast to the background\n"
    "- Don't overlay text on top of other text\n"
    "- Don't overlap elements\n"
    "- Use a harmonious color palette\n"
    "- Keep some space between the elements\n"
    "- Prefer using line instead of arrow, but if required use arrow\n"
    "- Don't overlay element over text\n"
    "- If using text over element, use text-anchor to align text properly and inside the element\n"
    "- Arrows should have proper direction and with tail only on one side\n"
    "- For bidirectional communication use two arrows\n"
    "- Use proper arrow head, tail and body\n"
    "- If using arrow, show some animation on it\n"
    "- If using line, use dotted line and show animation on it\n\n"
    "TECHNICAL:\n"
    '- Add class names: "highlight", "rotate", "scale", "flow-arrow", "pulse-node"\n'
    "- Group related elements with <g> tags\n"
    "- Make text readable and properly positioned\n"
    "- IMPORTANT: Keep SVG code well-structured and complete"
)

VIDEO_ELEMENT_PROMPT = (
    "Design a professional video element with these specifications:\n\n"
    "CONTENT:\n"
    "- Create a {prompt} suitable for video overlays\n"
    "- Design for smooth animation\n\n"
    "STYLING:\n"
    "- Use gradients and subtle shadows\n"
    "- Create clean vector shapes\n"
    "- Use a harmonious color palette\n\n"
    "TECHNICAL:\n"
    '- Add class names: "rotate", "scale", "morph"\n'
    "- Group elements with <g> tags\n"
    "- IMPORTANT: Keep SVG code well-structured and complete"
)

USER_PROMPTS: dict[str, str] = {
    WORKFLOW: WORKFLOW_PROMPT,
    VIDEO_ELEMENT: VIDEO_ELEMENT_PROMPT,
}


def build_user_prompt(prompt: str, kind: str) -> str:
    """Embed the user's description into the template for ``kind``."""
    try:
        template = USER_PROMPTS[kind]
    except KeyError:
        raise ValueError(f"Unsupported graphic kind: {kind}") from None
    return template.format(prompt=prompt.strip())
