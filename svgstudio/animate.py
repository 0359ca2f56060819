"""Splices declarative SMIL animation fragments into generated SVG markup.

Each target is animated at most once: the first opening tag that matches
an element name (and, where given, a class substring) receives the
fragment, later elements of the same kind are left untouched.
"""

import re

from svgstudio.prompts import VIDEO_ELEMENT, WORKFLOW
from svgstudio.svg import SVG_OPEN_TAG

ANIMATION_PRESETS: dict[str, dict[str, str]] = {
    "workflow": {
        "highlight": (
            '<animate attributeName="stroke-width" values="2;4;2" dur="1s" repeatCount="indefinite"/>'
            '<animate attributeName="stroke-opacity" values="0.6;1;0.6" dur="1s" repeatCount="indefinite"/>'
        ),
        "flow": '<animate attributeName="stroke-dashoffset" from="0" to="20" dur="1s" repeatCount="indefinite"/>',
        "pulse": (
            '<animate attributeName="r" values="10;12;10" dur="1s" repeatCount="indefinite"/>'
            '<animate attributeName="opacity" values="0.6;1;0.6" dur="1s" repeatCount="indefinite"/>'
        ),
        "fadeIn": '<animate attributeName="opacity" from="0" to="1" dur="0.5s" fill="freeze"/>',
    },
    "videoElements": {
        "glow": '<animate attributeName="filter" values="blur(0px);blur(2px);blur(0px)" dur="2s" repeatCount="indefinite"/>',
        "rotate": (
            '<animateTransform attributeName="transform" type="rotate" '
            'from="0 200 200" to="360 200 200" dur="3s" repeatCount="indefinite"/>'
        ),
        "morph": '<animate attributeName="d" dur="2s" repeatCount="indefinite"/>',
        "scale": (
            '<animateTransform attributeName="transform" type="scale" '
            'values="1;1.2;1" dur="1s" repeatCount="indefinite"/>'
        ),
    },
}

WORKFLOW_SHADOW = "filter: drop-shadow(0 0 3px rgba(0,0,0,0.2))"
VIDEO_GLOW = "filter: drop-shadow(0 0 5px rgba(255,255,255,0.5))"

# (element, class substring or None, preset) in injection order
WORKFLOW_TARGETS: list[tuple[str, str | None, str]] = [
    ("path", None, "flow"),
    ("circle", None, "pulse"),
    ("g", "highlight", "highlight"),
    ("text", None, "fadeIn"),
]
VIDEO_ELEMENT_TARGETS: list[tuple[str, str | None, str]] = [
    ("g", "rotate", "rotate"),
    ("g", "scale", "scale"),
    ("path", "morph", "morph"),
]

_CLASS_ATTR_RE = re.compile(r"""\bclass\s*=\s*(["'])(.*?)\1""", re.DOTALL)
_ROOT_TAG_RE = re.compile(r"<svg\b[^>]*>")
_STYLE_ATTR_RE = re.compile(r"""\bstyle\s*=\s*(["'])(.*?)\1""", re.DOTALL)


def _class_contains(opening_tag: str, needle: str) -> bool:
    match = _CLASS_ATTR_RE.search(opening_tag)
    return bool(match and needle in match.group(2))


def add_animation(svg: str, fragment: str, element: str, class_contains: str | None = None) -> str:
    """Insert ``fragment`` as the first child of the first matching ``element``.

    A self-closing tag is expanded into an open/close pair.
    """
    for match in re.finditer(rf"<{element}\b[^>]*>", svg):
        opening = match.group(0)
        if class_contains and not _class_contains(opening, class_contains):
            continue
        if opening.endswith("/>"):
            replacement = f"{opening[:-2].rstrip()}>{fragment}</{element}>"
        else:
            replacement = opening + fragment
        return svg[:match.start()] + replacement + svg[match.end():]
    return svg


def add_root_style(svg: str, style: str) -> str:
    """Prepend ``style`` to the root element's style attribute (creating it if absent)."""
    root = _ROOT_TAG_RE.search(svg)
    if not root:
        return svg.replace(SVG_OPEN_TAG, f'{SVG_OPEN_TAG} style="{style}"', 1)

    opening = root.group(0)
    existing = _STYLE_ATTR_RE.search(opening)
    if existing:
        quote, value = existing.group(1), existing.group(2)
        merged = f"{style}; {value}" if value.strip() else style
        opening = opening[:existing.start()] + f"style={quote}{merged}{quote}" + opening[existing.end():]
    else:
        opening = opening.replace(SVG_OPEN_TAG, f'{SVG_OPEN_TAG} style="{style}"', 1)
    return svg[:root.start()] + opening + svg[root.end():]


def inject_animations(svg: str, kind: str) -> list[str]:
    """Return the animated variant(s) of ``svg`` for a graphic ``kind``.

    Currently a single enhanced variant is produced.
    """
    if kind == WORKFLOW:
        presets = ANIMATION_PRESETS["workflow"]
        enhanced = add_root_style(svg, WORKFLOW_SHADOW)
        targets = WORKFLOW_TARGETS
    elif kind == VIDEO_ELEMENT:
        presets = ANIMATION_PRESETS["videoElements"]
        enhanced = add_root_style(svg, VIDEO_GLOW)
        targets = VIDEO_ELEMENT_TARGETS
    else:
        raise ValueError(f"Unsupported graphic kind: {kind}")

    for element, class_contains, preset in targets:
        enhanced = add_animation(enhanced, presets[preset], element, class_contains)

    return [enhanced]
