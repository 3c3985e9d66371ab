"""Page rendering into styled text segments.

The renderer never emits escape codes. It produces an ordered list of
``Segment`` values; ``writer`` turns them into terminal output.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .config import Config, OptionStyle
from .models import LineKind, ParsedLine, ParsedPage, Segment
from .styles import ElementKind, StyleDescriptor, resolve_styles
from .text_width import display_width, terminal_width

_URL_RE = re.compile(
    r"<(?P<bracketed>https?://[^\s<>]+)>"
    r"|(?P<bare>https?://[^\s<>]*[^\s<>.,;:!?)\]'\"])"
)
_ESCAPED_OPEN = "\\{\\{"
_ESCAPED_CLOSE = "\\}\\}"


@dataclass
class _Word:
    pieces: list[Segment] = field(default_factory=list)
    separator_style: StyleDescriptor | None = None

    @property
    def width(self) -> int:
        return sum(display_width(piece.text) for piece in self.pieces)


@dataclass(frozen=True)
class _OutputLine:
    segments: tuple[Segment, ...]
    indent: int = 0
    separator: bool = False


class Renderer:
    """Turns parsed pages into segments according to one immutable config."""

    def __init__(self, config: Config, *, width: int | None = None) -> None:
        self.config = config
        self.output = config.output
        self.indent = config.indent
        self.styles = resolve_styles(config.style)
        if width is not None:
            self.width = width
        elif self.output.line_length:
            self.width = self.output.line_length
        else:
            self.width = terminal_width()

    def render(self, page: ParsedPage) -> list[Segment]:
        lines: list[_OutputLine] = []
        for parsed_line in page.lines:
            lines.extend(self._render_line(parsed_line, page.platform))
        lines.append(_OutputLine(segments=(), separator=True))
        return self._flatten(lines)

    def render_raw(self, text: str) -> list[Segment]:
        """Emit the page source as is."""
        return [Segment(text)] if text else []

    def _render_line(self, line: ParsedLine, platform: str | None) -> list[_OutputLine]:
        match line.kind:
            case LineKind.TITLE:
                return self._render_title(line.text, platform)
            case LineKind.DESCRIPTION:
                spans = self._inline_spans(line.text, ElementKind.DESCRIPTION)
                return self._wrap(spans, self.indent.description, self.indent.description)
            case LineKind.BULLET:
                return self._render_bullet(line.text)
            case LineKind.EXAMPLE:
                spans = self.example_spans(line.text)
                return self._wrap(spans, self.indent.example, self.indent.example)
            case LineKind.BLANK:
                return [_OutputLine(segments=(), separator=True)]
        raise ValueError(f"unknown line kind: {line.kind}")

    def _render_title(self, text: str, platform: str | None) -> list[_OutputLine]:
        if not self.output.show_title:
            return []
        if self.output.platform_title and platform:
            text = f"{platform}/{text}"
        title = _OutputLine(
            segments=(Segment(text, self.styles[ElementKind.TITLE]),),
            indent=self.indent.title,
        )
        return [_OutputLine(segments=(), separator=True), title]

    def _render_bullet(self, text: str) -> list[_OutputLine]:
        spans = self._inline_spans(text, ElementKind.BULLET)
        hanging = self.indent.bullet
        if self.output.show_hyphens and self.output.example_prefix:
            prefix = self.output.example_prefix
            spans = [Segment(prefix, self.styles[ElementKind.BULLET]), *spans]
            hanging += display_width(prefix)
        return self._wrap(spans, self.indent.bullet, hanging)

    def _inline_spans(self, text: str, base_kind: ElementKind) -> list[Segment]:
        """Split text into inline-code, URL and plain runs."""
        base = self.styles[base_kind]
        code = self.styles[ElementKind.INLINE_CODE]
        parts = text.split("`")
        if len(parts) % 2 == 0:
            # Unbalanced backtick: keep the last one literally.
            parts = [*parts[:-2], f"{parts[-2]}`{parts[-1]}"]

        spans: list[Segment] = []
        for index, part in enumerate(parts):
            if not part:
                continue
            if index % 2 == 1:
                spans.append(Segment(part, code))
            else:
                spans.extend(self._url_spans(part, base))
        return spans

    def _url_spans(self, text: str, base: StyleDescriptor) -> list[Segment]:
        url_style = self.styles[ElementKind.URL]
        spans: list[Segment] = []
        position = 0
        for match in _URL_RE.finditer(text):
            if match.start() > position:
                spans.append(Segment(text[position : match.start()], base))
            spans.append(Segment(match.group("bracketed") or match.group("bare"), url_style))
            position = match.end()
        if position < len(text):
            spans.append(Segment(text[position:], base))
        return spans

    def example_spans(self, text: str) -> list[Segment]:
        """Split an example command into literal text and placeholders.

        ``{{[-s|--long]}}`` alternations show the short form, the long form or
        the bracketed text verbatim, depending on ``option_style``.
        """
        example = self.styles[ElementKind.EXAMPLE]
        placeholder = self.styles[ElementKind.PLACEHOLDER]
        spans: list[Segment] = []
        literal: list[str] = []

        def flush_literal() -> None:
            if literal:
                spans.append(Segment("".join(literal), example))
                literal.clear()

        position = 0
        while position < len(text):
            if text.startswith(_ESCAPED_OPEN, position):
                literal.append("{{")
                position += len(_ESCAPED_OPEN)
                continue
            if text.startswith(_ESCAPED_CLOSE, position):
                literal.append("}}")
                position += len(_ESCAPED_CLOSE)
                continue
            if text.startswith("{{", position):
                close = text.find("}}", position + 2)
                if close == -1:
                    literal.append(text[position:])
                    break
                # "{{a}}}" closes at the last pair of the brace run.
                while text.startswith("}", close + 2):
                    close += 1
                inside = text[position + 2 : close]
                flush_literal()
                spans.append(self._placeholder_span(inside, example, placeholder))
                position = close + 2
                continue
            literal.append(text[position])
            position += 1

        flush_literal()
        return spans

    def _placeholder_span(
        self,
        inside: str,
        example: StyleDescriptor,
        placeholder: StyleDescriptor,
    ) -> Segment:
        option_style = self.output.option_style
        is_alternation = inside.startswith("[") and inside.endswith("]") and "|" in inside
        if is_alternation and option_style is not OptionStyle.BOTH:
            short, long = inside[1:-1].split("|", 1)
            chosen = short if option_style is OptionStyle.SHORT else long
            return Segment(chosen, example)
        return Segment(inside, placeholder)

    def _wrap(
        self,
        spans: Sequence[Segment],
        indent: int,
        hanging_indent: int,
    ) -> list[_OutputLine]:
        """Word-wrap spans so no line is wider than ``self.width`` columns.

        A single word wider than the available room is kept whole on its own
        line. Continuation lines start at ``hanging_indent``.
        """
        total_width = sum(display_width(span.text) for span in spans)
        if indent + total_width <= self.width:
            return [_OutputLine(segments=tuple(_merge(spans)), indent=indent)]

        words = _split_words(spans)
        lines: list[_OutputLine] = []
        current: list[Segment] = []
        current_indent = indent
        current_width = indent
        line_has_words = False

        for word in words:
            word_width = word.width
            if line_has_words and current_width + 1 + word_width > self.width:
                lines.append(_OutputLine(segments=tuple(_merge(current)), indent=current_indent))
                current = []
                current_indent = hanging_indent
                current_width = hanging_indent
                line_has_words = False

            if line_has_words:
                current.append(Segment(" ", word.separator_style))
                current_width += 1
            current.extend(word.pieces)
            current_width += word_width
            line_has_words = True

        if current or not lines:
            lines.append(_OutputLine(segments=tuple(_merge(current)), indent=current_indent))
        return lines

    def _flatten(self, lines: Iterable[_OutputLine]) -> list[Segment]:
        segments: list[Segment] = []
        for line in lines:
            if line.separator:
                if not self.output.compact:
                    segments.append(Segment("\n"))
                continue
            if line.indent:
                segments.append(Segment(" " * line.indent))
            segments.extend(line.segments)
            segments.append(Segment("\n"))
        return segments


def _split_words(spans: Sequence[Segment]) -> list[_Word]:
    """Split on single spaces; a run of spaces leaves empty words so it survives joining."""
    words: list[_Word] = [_Word()]
    for span in spans:
        parts = span.text.split(" ")
        for index, part in enumerate(parts):
            if index > 0:
                words.append(_Word(separator_style=span.style))
            if part:
                words[-1].pieces.append(Segment(part, span.style))
    return words


def _merge(segments: Iterable[Segment]) -> list[Segment]:
    """Join adjacent segments that share a style."""
    merged: list[Segment] = []
    for segment in segments:
        if not segment.text:
            continue
        if merged and merged[-1].style == segment.style:
            merged[-1] = Segment(merged[-1].text + segment.text, segment.style)
        else:
            merged.append(segment)
    return merged


def segments_to_text(segments: Iterable[Segment]) -> str:
    return "".join(segment.text for segment in segments)
