"""
Span locator for brief-to-asset highlighting.

AI brief analysis records, for each suggested asset, the excerpt of the brief
it was derived from (``source_text``). The brief is usually edited afterwards:
quotes get curled or straightened, bullets and markdown are stripped, lines
are re-wrapped. This module re-anchors those excerpts in the current text.

Normalization is a pipeline of named stages. Every stage maps a
``NormalizedText`` to a new ``NormalizedText`` and carries a per-character
offset table back into the original string, so a match found in any
normalized form converts directly to an original-text span.

Matching passes, first success wins, each tried against the whole text:

    1. exact          - plain substring
    2. quotes         - curly/straight quote unification (apostrophes kept)
    3. case           - case-insensitive
    4. normalized     - quotes, dashes, bullets, markdown, trailing
                        punctuation, whitespace and case all normalized

A normalized match starts at the excerpt's first word in the original text:
the offset table skips the bullets and markers that normalization removed.
Text that matches under no pass is left unhighlighted, even when some of
the excerpt's words occur in it.

No match is not an error: ``locate_span`` returns None and the renderer
emits the text unhighlighted.

Usage:
    from prodbay.core.briefs.span_locator import build_highlight_segments, locate_span

    match = locate_span(brief, "“Gold” banners")
    if match:
        brief[match.start:match.end]

    segments = build_highlight_segments(brief, [HighlightSource(asset_id, "Printing", excerpt)])
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union


# ============================================================================
# NORMALIZED TEXT
# ============================================================================

@dataclass(frozen=True)
class NormalizedText:
    """
    A transformed string plus the original index of each of its characters.

    ``offsets[i]`` is the position in the original text that produced
    ``text[i]``. Characters inserted by a replacement inherit the offset of
    the first character they replaced.
    """

    text: str
    offsets: Tuple[int, ...]

    @classmethod
    def from_text(cls, text: str) -> "NormalizedText":
        return cls(text, tuple(range(len(text))))

    def to_original(self, start: int, end: int) -> Tuple[int, int]:
        """Translate a non-empty [start, end) range to an original-text range."""
        if not 0 <= start < end <= len(self.text):
            raise ValueError(f"Range [{start}, {end}) outside normalized text of length {len(self.text)}")
        return self.offsets[start], self.offsets[end - 1] + 1


Stage = Callable[[NormalizedText], NormalizedText]


def _map_chars(source: NormalizedText, fn: Callable[[str, int], str]) -> NormalizedText:
    """Apply ``fn(text, index)`` per character; the result may be empty or several chars."""
    chars: List[str] = []
    offsets: List[int] = []
    for index, offset in enumerate(source.offsets):
        replacement = fn(source.text, index)
        chars.append(replacement)
        offsets.extend([offset] * len(replacement))
    return NormalizedText("".join(chars), tuple(offsets))


def _substitute(
    source: NormalizedText,
    pattern: "re.Pattern",
    repl: Union[str, Callable[["re.Match"], str]],
) -> NormalizedText:
    """Regex substitution that keeps the offset table aligned."""
    chars: List[str] = []
    offsets: List[int] = []
    position = 0
    for match in pattern.finditer(source.text):
        if match.start() == match.end():
            continue
        chars.append(source.text[position:match.start()])
        offsets.extend(source.offsets[position:match.start()])
        replacement = repl(match) if callable(repl) else repl
        chars.append(replacement)
        offsets.extend([source.offsets[match.start()]] * len(replacement))
        position = match.end()
    chars.append(source.text[position:])
    offsets.extend(source.offsets[position:])
    return NormalizedText("".join(chars), tuple(offsets))


# ============================================================================
# STAGES
# ============================================================================

_CURLY_QUOTES = {
    "\u2018": "'", "\u2019": "'", "\u201a": "'", "\u201b": "'",
    "\u201c": '"', "\u201d": '"', "\u201e": '"', "\u201f": '"',
}
_WORD_CHAR = re.compile(r"[A-Za-z0-9]")


def straighten_quotes(source: NormalizedText) -> NormalizedText:
    """Curly single/double quotes to their straight forms."""
    return _map_chars(source, lambda text, i: _CURLY_QUOTES.get(text[i], text[i]))


def unify_quotes(source: NormalizedText) -> NormalizedText:
    """
    Straighten quotes, then turn every single quote that is not an
    apostrophe (between two word characters) into a double quote.
    """
    straight = straighten_quotes(source)

    def convert(text: str, i: int) -> str:
        if text[i] != "'":
            return text[i]
        before = text[i - 1] if i > 0 else ""
        after = text[i + 1] if i + 1 < len(text) else ""
        if _WORD_CHAR.match(before) and _WORD_CHAR.match(after):
            return "'"
        return '"'

    return _map_chars(straight, convert)


def fold_single_quotes(source: NormalizedText) -> NormalizedText:
    """Every quote, apostrophes included, becomes a double quote."""
    straight = straighten_quotes(source)
    return _map_chars(straight, lambda text, i: '"' if text[i] == "'" else text[i])


_DASHES = re.compile("[\u2014\u2013]")


def unify_dashes(source: NormalizedText) -> NormalizedText:
    """Em and en dashes to hyphens; hyphens inside words are untouched."""
    return _substitute(source, _DASHES, "-")


_BULLET_GLYPHS = re.compile("[\u2022\u00b7\u25aa\u25ab\u2023\u2043]\\s*")
_LEADING_MARKER = re.compile(r"^[\u2022*-]\s+", re.MULTILINE)
_INLINE_STAR = re.compile("\\s*[\u2022*]\\s*")


def strip_bullets(source: NormalizedText) -> NormalizedText:
    """Remove bullet glyphs and leading list markers."""
    result = _substitute(source, _BULLET_GLYPHS, "")
    result = _substitute(result, _LEADING_MARKER, "")
    return _substitute(result, _INLINE_STAR, " ")


_STARS = re.compile(r"\*+")
_HEADING = re.compile(r"^#+\s+", re.MULTILINE)
_BRACKETS = re.compile(r"[()\[\]]")


def strip_markdown(source: NormalizedText) -> NormalizedText:
    """Remove emphasis markers, heading hashes, parentheses and square brackets."""
    result = _substitute(source, _STARS, "")
    result = _substitute(result, _HEADING, "")
    return _substitute(result, _BRACKETS, "")


_TRAILING_PUNCTUATION = re.compile(r"[.,;:!?]+\Z")


def strip_trailing_punctuation(source: NormalizedText) -> NormalizedText:
    return _substitute(source, _TRAILING_PUNCTUATION, "")


_WHITESPACE = re.compile(r"[ \t\r\n]+")


def collapse_whitespace(source: NormalizedText) -> NormalizedText:
    """Runs of spaces, tabs and line breaks become one space."""
    return _substitute(source, _WHITESPACE, " ")


def casefold(source: NormalizedText) -> NormalizedText:
    return _map_chars(source, lambda text, i: text[i].lower())


_EDGE_WHITESPACE = re.compile(r"\A\s+|\s+\Z")


def trim(source: NormalizedText) -> NormalizedText:
    return _substitute(source, _EDGE_WHITESPACE, "")


# ============================================================================
# PIPELINES
# ============================================================================

@dataclass(frozen=True)
class NormalizationPipeline:
    """An ordered, named sequence of stages."""

    name: str
    stages: Tuple[Stage, ...]

    def apply(self, text: str) -> NormalizedText:
        result = NormalizedText.from_text(text)
        for stage in self.stages:
            result = stage(result)
        return result


EXACT = NormalizationPipeline("exact", ())
QUOTES = NormalizationPipeline("quotes", (unify_quotes,))
CASE_INSENSITIVE = NormalizationPipeline("case", (casefold,))
FULL = NormalizationPipeline(
    "normalized",
    (
        fold_single_quotes,
        unify_dashes,
        strip_bullets,
        strip_markdown,
        strip_trailing_punctuation,
        collapse_whitespace,
        casefold,
        trim,
    ),
)

# Tried in order, first success wins
LOCATOR_PASSES: Tuple[NormalizationPipeline, ...] = (EXACT, QUOTES, CASE_INSENSITIVE, FULL)


def normalize_quotes(text: str) -> str:
    return QUOTES.apply(text).text


def normalize_text(text: str) -> str:
    """Fully normalized form used by the last matching pass."""
    return FULL.apply(text).text


# ============================================================================
# LOCATING SPANS
# ============================================================================

@dataclass(frozen=True)
class SpanMatch:
    start: int
    end: int
    strategy: str


class SpanLocator:
    """
    Locates excerpts in one text.

    Normalized forms of the text are computed once per pass and reused
    across every excerpt looked up through the same locator.
    """

    def __init__(self, text: str, passes: Sequence[NormalizationPipeline] = LOCATOR_PASSES):
        self.text = text or ""
        self.passes = tuple(passes)
        self._normalized: Dict[str, NormalizedText] = {}

    def _normalized_text(self, pipeline: NormalizationPipeline) -> NormalizedText:
        if pipeline.name not in self._normalized:
            self._normalized[pipeline.name] = pipeline.apply(self.text)
        return self._normalized[pipeline.name]

    def locate(self, source_text: Optional[str]) -> Optional[SpanMatch]:
        """Return the original-text span for ``source_text``, or None."""
        if not source_text or not source_text.strip() or not self.text:
            return None

        for pipeline in self.passes:
            needle = pipeline.apply(source_text).text
            if not needle:
                continue
            haystack = self._normalized_text(pipeline)
            index = haystack.text.find(needle)
            if index == -1:
                continue
            start, end = haystack.to_original(index, index + len(needle))
            return SpanMatch(start=start, end=end, strategy=pipeline.name)

        return None


def locate_span(text: str, source_text: Optional[str]) -> Optional[SpanMatch]:
    return SpanLocator(text).locate(source_text)


# ============================================================================
# HIGHLIGHT SEGMENTS
# ============================================================================

@dataclass(frozen=True)
class HighlightSource:
    """An excerpt to highlight and the asset it belongs to."""

    asset_id: str
    asset_name: str
    source_text: Optional[str]


@dataclass(frozen=True)
class HighlightSegment:
    text: str
    asset_id: Optional[str] = None
    asset_name: Optional[str] = None
    strategy: Optional[str] = None

    @property
    def highlighted(self) -> bool:
        return self.asset_id is not None


def build_highlight_segments(text: str, sources: Sequence[HighlightSource]) -> List[HighlightSegment]:
    """
    Split ``text`` into alternating plain and highlighted segments.

    Matches are ordered by start offset; a match overlapping an earlier one
    is dropped. Joining the segment texts always reproduces ``text``.
    """
    text = text or ""
    locator = SpanLocator(text)

    matches: List[Tuple[SpanMatch, HighlightSource]] = []
    for source in sources:
        match = locator.locate(source.source_text)
        if match:
            matches.append((match, source))

    if not matches:
        return [HighlightSegment(text=text)]

    matches.sort(key=lambda item: (item[0].start, -item[0].end))

    segments: List[HighlightSegment] = []
    cursor = 0
    for match, source in matches:
        if match.start < cursor:
            continue
        if match.start > cursor:
            segments.append(HighlightSegment(text=text[cursor:match.start]))
        segments.append(
            HighlightSegment(
                text=text[match.start:match.end],
                asset_id=source.asset_id,
                asset_name=source.asset_name,
                strategy=match.strategy,
            )
        )
        cursor = match.end

    if cursor < len(text):
        segments.append(HighlightSegment(text=text[cursor:]))

    return segments
