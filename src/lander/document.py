# lander: Fixed-shape single-file document codec. Sections are located by pattern, not parsed; every document
# this package handles is produced by render(), so only the first <style>, <body>…<script and <script> spans matter.

import re
from typing import List, NamedTuple, Optional

from .errors import NoMatchingSection

CSS_PLACEHOLDER = "/* Styles */"
JS_PLACEHOLDER = "// JavaScript"

# Framing render() puts around each section; parse() strips exactly this.
_OPEN = "\n"
_CLOSE = "\n  "

_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Landing Page</title>
  <style>{open}{css}{close}</style>
</head>
<body>{open}{html}{close}<script>{open}{js}{close}</script>
</body>
</html>
"""

_FLAGS = re.IGNORECASE | re.DOTALL
HTML_PATTERN = re.compile(r"(<body[^>]*>)(.*?)(<script)", _FLAGS)
CSS_PATTERN = re.compile(r"(<style[^>]*>)(.*?)(</style>)", _FLAGS)
JS_PATTERN = re.compile(r"(<script[^>]*>)(.*?)(</script>)", _FLAGS)

SECTION_PATTERNS = {
    "html": HTML_PATTERN,
    "css": CSS_PATTERN,
    "js": JS_PATTERN,
}


class Sections(NamedTuple):
    html: str
    css: str
    js: str


class PatchResult(NamedTuple):
    document: str
    changed: List[str]


def _frame(content: str) -> str:
    return f"{_OPEN}{content}{_CLOSE}"


def _unframe(inner: str) -> str:
    if inner.startswith(_OPEN):
        inner = inner[len(_OPEN):]
    if inner.endswith(_CLOSE):
        inner = inner[: -len(_CLOSE)]
    return inner


def render(html: str, css: Optional[str] = None, js: Optional[str] = None) -> str:
    """
    Render the three sections into one complete HTML document.

    None for css/js renders a comment placeholder; an empty string renders an
    empty section.
    """
    return _TEMPLATE.format(
        open=_OPEN,
        close=_CLOSE,
        html=html,
        css=CSS_PLACEHOLDER if css is None else css,
        js=JS_PLACEHOLDER if js is None else js,
    )


def _extract(pattern: "re.Pattern[str]", document: str) -> str:
    match = pattern.search(document)
    return _unframe(match.group(2)) if match else ""


def parse(document: str) -> Sections:
    """Extract (html, css, js) from a document; a missing section yields ""."""
    return Sections(
        html=_extract(HTML_PATTERN, document),
        css=_extract(CSS_PATTERN, document),
        js=_extract(JS_PATTERN, document),
    )


def patch(
    document: str,
    html: Optional[str] = None,
    css: Optional[str] = None,
    js: Optional[str] = None,
) -> PatchResult:
    """
    Replace only the supplied sections (first occurrence each), keeping the
    matched opening tag and every byte outside the replaced spans.

    Raises NoMatchingSection when nothing supplied had a matching span.
    """
    supplied = {"html": html, "css": css, "js": js}
    changed: List[str] = []
    updated = document
    for name, content in supplied.items():
        if content is None:
            continue
        pattern = SECTION_PATTERNS[name]
        if not pattern.search(updated):
            continue
        # lander: Callable replacement so backslashes in user content are inserted literally.
        updated = pattern.sub(
            lambda m, c=content: f"{m.group(1)}{_frame(c)}{m.group(3)}",
            updated,
            count=1,
        )
        changed.append(name)
    if not changed:
        raise NoMatchingSection()
    return PatchResult(document=updated, changed=changed)
