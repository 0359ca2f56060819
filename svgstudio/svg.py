"""Textual clean-up, validation and sanitizing of model-generated SVG markup.

Everything here works on strings with regular expressions and substring
checks. It is a best-effort pass, not an XML parser: attribute values that
contain ``<svg`` or ``>`` can confuse it.
"""

import logging
import re
from dataclasses import dataclass

from svgstudio.errors import ValidationError

logger = logging.getLogger("svgstudio.svg")

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
SVG_NAMESPACE_ATTR = f'xmlns="{SVG_NAMESPACE}"'
SVG_OPEN_TAG = "<svg"
SVG_CLOSE_TAG = "</svg>"
DEFAULT_SIZE = 400
DEFAULT_VIEWBOX = f"0 0 {DEFAULT_SIZE} {DEFAULT_SIZE}"
DEFAULT_SVG_WRAPPER = (
    f'<svg {SVG_NAMESPACE_ATTR} viewBox="{DEFAULT_VIEWBOX}" '
    f'width="{DEFAULT_SIZE}" height="{DEFAULT_SIZE}">{{content}}</svg>'
)

# Closing tags that mark the end of a complete child element.
COMPLETE_CHILD_TAGS = ("</g>", "</path>", "</rect>", "</circle>", "</text>")

_FENCE_RE = re.compile(r"```(?:svg|xml)?", re.IGNORECASE)
_LEADING_PROSE_RE = re.compile(r"^[\s\S]*?(<svg)", re.IGNORECASE)
_TRAILING_PROSE_RE = re.compile(r"</svg>[\s\S]*$", re.IGNORECASE)
_BARE_ATTR_RE = re.compile(r"(\w+)=(\w+)")
_STRUCTURE_RE = re.compile(r"<svg[^>]*>.*</svg>", re.DOTALL)
_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)

EMPTY = "empty"
MISSING_OPEN_TAG = "missing-open-tag"
MISSING_CLOSE_TAG = "missing-close-tag"
MALFORMED_STRUCTURE = "malformed-structure"
MISSING_NAMESPACE = "missing-namespace"

FAILURE_MESSAGES: dict[str, str] = {
    EMPTY: "SVG content is empty",
    MISSING_OPEN_TAG: "Missing <svg> tag",
    MISSING_CLOSE_TAG: "Missing closing </svg> tag",
    MALFORMED_STRUCTURE: "Invalid SVG structure",
    MISSING_NAMESPACE: "Missing xmlns attribute",
}


@dataclass(frozen=True)
class ValidationVerdict:
    is_valid: bool
    reason: str | None = None

    @property
    def message(self) -> str | None:
        return FAILURE_MESSAGES.get(self.reason) if self.reason else None


VALID = ValidationVerdict(is_valid=True)


def normalize(raw: str) -> str:
    """Turn raw model output into something that starts with ``<svg`` and ends with ``</svg>``.

    Never raises. Steps, in order: strip, drop markdown fences, drop prose
    around the first ``<svg`` … ``</svg>`` span, close an unclosed root,
    quote bare ``key=value`` attributes, and finally wrap anything that
    still does not start with ``<svg`` in a default 400x400 root.
    """
    fixed = (raw or "").strip()
    fixed = _FENCE_RE.sub("", fixed).strip()

    fixed = _LEADING_PROSE_RE.sub(r"\1", fixed, count=1)
    fixed = _TRAILING_PROSE_RE.sub(SVG_CLOSE_TAG, fixed, count=1)

    if SVG_OPEN_TAG in fixed and SVG_CLOSE_TAG not in fixed:
        fixed += SVG_CLOSE_TAG

    fixed = _BARE_ATTR_RE.sub(r'\1="\2"', fixed)

    if not fixed.startswith(SVG_OPEN_TAG):
        fixed = DEFAULT_SVG_WRAPPER.format(content=fixed)

    return fixed


def repair_truncated(raw: str) -> str:
    """Close markup that was cut off mid-stream (e.g. by the token limit).

    The text is cut right after the last complete child element and
    ``</g></svg>`` is appended. When no complete child exists, a trailing
    half-written tag is dropped before the closing tags are appended.
    """
    if raw.strip().endswith(SVG_CLOSE_TAG):
        return raw

    logger.warning("Detected truncated SVG (%d chars), attempting to fix", len(raw))
    fixed = raw.rstrip()

    cut = max(
        (fixed.rfind(tag) + len(tag) for tag in COMPLETE_CHILD_TAGS if tag in fixed),
        default=-1,
    )
    if cut > 0:
        fixed = fixed[:cut]
    else:
        last_open = fixed.rfind("<")
        if last_open > fixed.rfind(">"):
            fixed = fixed[:last_open]

    return fixed + "</g>" + SVG_CLOSE_TAG


def validate(svg: str) -> ValidationVerdict:
    """Report the first failing structure check, or a valid verdict."""
    if not svg or not svg.strip():
        return ValidationVerdict(False, EMPTY)
    if SVG_OPEN_TAG not in svg:
        return ValidationVerdict(False, MISSING_OPEN_TAG)
    if SVG_CLOSE_TAG not in svg:
        return ValidationVerdict(False, MISSING_CLOSE_TAG)
    if not _STRUCTURE_RE.search(svg):
        return ValidationVerdict(False, MALFORMED_STRUCTURE)
    if SVG_NAMESPACE_ATTR not in svg:
        return ValidationVerdict(False, MISSING_NAMESPACE)
    return VALID


def sanitize(svg: str) -> str:
    """Add missing namespace/viewBox/size attributes to the root and strip scripts."""
    sanitized = svg.strip()

    if SVG_NAMESPACE_ATTR not in sanitized:
        sanitized = sanitized.replace(SVG_OPEN_TAG, f"{SVG_OPEN_TAG} {SVG_NAMESPACE_ATTR}", 1)

    if "viewBox" not in sanitized:
        sanitized = sanitized.replace(SVG_OPEN_TAG, f'{SVG_OPEN_TAG} viewBox="{DEFAULT_VIEWBOX}"', 1)

    if "width=" not in sanitized and "height=" not in sanitized:
        sanitized = sanitized.replace(
            SVG_OPEN_TAG, f'{SVG_OPEN_TAG} width="{DEFAULT_SIZE}" height="{DEFAULT_SIZE}"', 1
        )

    return _SCRIPT_RE.sub("", sanitized)


def ensure_valid_svg(raw: str) -> str:
    """Normalize and validate model output; sanitize once on failure.

    Output that opens a root but never closes it goes through
    ``repair_truncated`` first.

    Raises ``ValidationError`` when the sanitized markup is still invalid.
    """
    if SVG_OPEN_TAG in raw and SVG_CLOSE_TAG not in raw:
        raw = repair_truncated(raw)
    svg = normalize(raw)
    verdict = validate(svg)
    if verdict.is_valid:
        return svg

    logger.warning("SVG validation failed: %s", verdict.message)
    svg = sanitize(svg)
    verdict = validate(svg)
    if not verdict.is_valid:
        raise ValidationError(f"Invalid SVG generated: {verdict.message}")
    return svg
