"""
Default Minifier collaborator.

Removes comments and whitespace on the token stream and, when asked, writes a
version 3 source map that points every kept token back to the line and column
of the module file it came from.

Identifiers are not renamed. Line breaks are only dropped where the next
token cannot start a new statement, so automatic semicolon insertion keeps
meaning the same thing.
"""

import bisect
import os

from bundler.errors import OutputWriteError, SourceScanError
from bundler.models import MinifyResult, SourceMapOptions
from bundler.scanner import JsScanner

BASE64_DIGITS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"

# A line break right before one of these can always go
CONTINUATION_TOKENS = (";", ",", ")", "]", "}", ".", ":", "?")


def vlq_encode(value):
    """Base64 VLQ encoding of one signed integer, as used in source maps."""
    vlq = ((-value) << 1) + 1 if value < 0 else value << 1
    encoded = ""
    while True:
        digit = vlq & 31
        vlq >>= 5
        if vlq:
            digit |= 32
        encoded += BASE64_DIGITS[digit]
        if not vlq:
            return encoded


def _is_word_char(ch):
    return ch.isalnum() or ch in "_$\\" or ord(ch) > 127


def needs_space(prev, tok):
    """True when ``prev`` and ``tok`` would merge into different tokens if glued."""
    a, b = str(prev)[-1], str(tok)[0]
    if _is_word_char(a) and _is_word_char(b):
        return True
    if a in "+-" and b == a:
        return True
    if a == "/" and b in "/*":
        return True
    return prev.type == "NUMBER" and b == "."


def keeps_line_break(prev, tok):
    """True when the line break between ``prev`` and ``tok`` may end a statement."""
    if str(tok) in CONTINUATION_TOKENS and tok.type in ("PUNCT", "RPAR", "RSQB"):
        return False
    if prev.type == "DIV":
        return False
    return not (prev.type in ("PUNCT", "LPAR") and prev != "}")


class _SourceMapBuilder:
    def __init__(self, options: SourceMapOptions):
        self.options = options
        self.spans = sorted(options.spans, key=lambda s: s.start_line)
        self._starts = [s.start_line for s in self.spans]
        self.sources = []
        self._source_index = {}
        self.lines = [[]]
        self._last = [0, 0, 0]  # source index, original line, original column

    def _span_for(self, line):
        i = bisect.bisect_right(self._starts, line) - 1
        if i < 0:
            return None
        span = self.spans[i]
        if line < span.start_line + span.line_count:
            return span
        return None

    def _source_for(self, path):
        if path not in self._source_index:
            self._source_index[path] = len(self.sources)
            self.sources.append(path)
        return self._source_index[path]

    def new_line(self):
        self.lines.append([])

    def add(self, generated_column, tok):
        span = self._span_for(tok.line)
        if span is None:
            return
        fields = [
            self._source_for(span.path),
            tok.line - span.start_line,
            tok.column - 1,
        ]
        segment = [generated_column] + [value - last for value, last in zip(fields, self._last)]
        self._last = fields
        self.lines[-1].append(segment)

    def mappings(self):
        encoded_lines = []
        for segments in self.lines:
            previous_column = 0
            encoded = []
            for segment in segments:
                column = segment[0]
                encoded.append("".join(vlq_encode(v) for v in [column - previous_column] + segment[1:]))
                previous_column = column
            encoded_lines.append(",".join(encoded))
        return ";".join(encoded_lines)

    def to_dict(self):
        root = self.options.source_root
        source_map = {
            "version": 3,
            "file": self.options.file,
            "sources": [os.path.relpath(p, root) if root else p for p in self.sources],
            "names": [],
            "mappings": self.mappings(),
        }
        if self.options.sources_content:
            source_map["sourcesContent"] = [self.options.sources_content.get(p) for p in self.sources]
        return source_map


class Minifier:
    def __init__(self, scanner=None):
        self.scanner = scanner or JsScanner()

    def minify(self, text, source_map_options=None) -> MinifyResult:
        """
        Minify ``text``; with ``source_map_options`` also build the map.

        Raises:
            OutputWriteError: If the text cannot be tokenized
        """
        try:
            tokens = self.scanner.tokenize(text)
        except SourceScanError as e:
            raise OutputWriteError(
                f"Minification failed: {e.message} (line {e.line_number}, column {e.column})",
                suggestion="Build without --minify to inspect the generated bundle",
            )

        builder = _SourceMapBuilder(source_map_options) if source_map_options else None
        out = []
        column = 0
        prev = None
        for tok in tokens:
            if prev is not None:
                if tok.line > prev.end_line and keeps_line_break(prev, tok):
                    out.append("\n")
                    column = 0
                    if builder:
                        builder.new_line()
                elif needs_space(prev, tok):
                    out.append(" ")
                    column += 1
            if builder:
                builder.add(column, tok)
            value = str(tok)
            out.append(value)
            newlines = value.count("\n")
            if newlines:
                # Multi-line template literal
                column = len(value) - value.rfind("\n") - 1
                if builder:
                    for _ in range(newlines):
                        builder.new_line()
            else:
                column += len(value)
            prev = tok

        code = "".join(out) + "\n" if out else ""
        return MinifyResult(code=code, map=builder.to_dict() if builder else None)
