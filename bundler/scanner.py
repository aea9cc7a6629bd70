"""
Dependency scanner for JavaScript sources.

Finds import specifiers on the token stream produced by the grammar in
``bundler.grammar``, so quoting style, formatting, comments and unrelated
string literals never affect the result.
"""

from typing import List, NamedTuple, Optional, Tuple

from lark import Lark, Token
from lark.exceptions import UnexpectedInput

from bundler.errors import SourceScanError
from bundler.grammar import js_token_grammar


class RequireCall(NamedTuple):
    """
    A ``require("x")`` call site; ``token`` is the specifier literal.

    Calls found inside a template substitution carry a token whose positions
    are those of the enclosing source, so they can be rewritten in place.
    """
    specifier: str
    token: Token


class ImportStatement(NamedTuple):
    """
    An ES-module statement that names another module.

    ``start`` and ``end`` are token indices (``end`` exclusive, trailing
    semicolon included when present). ``kind`` is one of ``import``,
    ``dynamic-import``, ``export-from``, ``export-star``.
    """
    kind: str
    start: int
    end: int
    source: Token
    default: Optional[str] = None
    namespace: Optional[str] = None
    names: Tuple[Tuple[str, str], ...] = ()


def string_value(token):
    """The text of a string or template literal token, without its quotes."""
    return str(token)[1:-1]


def is_member_access(tokens, index):
    """True when tokens[index] follows a '.', as in ``obj.require``."""
    return index > 0 and tokens[index - 1] == "." and tokens[index - 1].type == "PUNCT"


def _is_string(tokens, index):
    return index < len(tokens) and tokens[index].type == "STRING"


def _is_literal(tokens, index):
    """A string, or a template literal with no substitutions."""
    if index >= len(tokens):
        return False
    tok = tokens[index]
    return tok.type == "STRING" or (tok.type == "TEMPLATE" and "${" not in tok)


def value_at(tokens, index):
    return str(tokens[index]) if index < len(tokens) else None


def type_at(tokens, index):
    return tokens[index].type if index < len(tokens) else None


def skip_semicolon(tokens, index):
    return index + 1 if value_at(tokens, index) == ";" else index


def template_substitutions(token):
    """
    The ``${...}`` expressions of a template literal token.

    Returns ``(offset, text)`` pairs, where ``offset`` is the position of the
    expression text inside the token.
    """
    text = str(token)
    found = []
    i = 1
    while i < len(text) - 1:
        if text[i] == "\\":
            i += 2
        elif text.startswith("${", i):
            start = i + 2
            end = _substitution_end(text, start)
            found.append((start, text[start:end]))
            i = end + 1
        else:
            i += 1
    return found


def _substitution_end(text, index):
    """Index of the '}' that closes the substitution starting at ``index``."""
    depth = 0
    quote = None
    i = index
    while i < len(text) - 1:
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            if depth == 0:
                return i
            depth -= 1
        i += 1
    return len(text) - 1


class JsScanner:
    """
    Tokenizes JavaScript and extracts module references.

    One instance can be shared between threads; every call builds its own
    interactive parser state.
    """

    def __init__(self):
        self._parser = Lark(js_token_grammar, parser="lalr", lexer="contextual")

    def tokenize(self, source, module_path=None) -> List[Token]:
        """
        Return the significant tokens of ``source``.

        Raises:
            SourceScanError: If the text cannot be tokenized as JavaScript
        """
        interactive = self._parser.parse_interactive(source)
        try:
            return interactive.exhaust_lexer()
        except UnexpectedInput as e:
            line = getattr(e, "line", None)
            column = getattr(e, "column", None)
            raise SourceScanError(
                "Unexpected input while scanning module",
                module_path=module_path,
                line_number=line if isinstance(line, int) and line > 0 else None,
                column=column if isinstance(column, int) and column > 0 else None,
                suggestion="Check for an unterminated string, template or regular expression",
            )

    def scan(self, source, module_path=None) -> List[str]:
        """Distinct specifiers in ``source``, in order of first occurrence."""
        tokens = self.tokenize(source, module_path)
        found = [(call.token.start_pos, call.specifier) for call in self.require_calls(tokens, module_path)]
        found.extend(
            (stmt.source.start_pos, string_value(stmt.source))
            for stmt in self.import_statements(tokens)
        )
        specifiers = []
        for _, specifier in sorted(found):
            if specifier not in specifiers:
                specifiers.append(specifier)
        return specifiers

    def require_calls(self, tokens, module_path=None) -> List[RequireCall]:
        calls = []
        for i, tok in enumerate(tokens):
            if tok.type == "TEMPLATE" and "${" in tok:
                for substitution in self.substitution_tokens(tok, module_path):
                    calls.extend(self.require_calls(substitution, module_path))
                continue
            if tok.type != "NAME" or tok != "require" or is_member_access(tokens, i):
                continue
            if (value_at(tokens, i + 1) == "(" and _is_literal(tokens, i + 2)
                    and value_at(tokens, i + 3) == ")"):
                calls.append(RequireCall(string_value(tokens[i + 2]), tokens[i + 2]))
        return calls

    def substitution_tokens(self, token, module_path=None) -> List[List[Token]]:
        """
        Tokenize each ``${...}`` of a template literal token.

        The returned tokens are positioned in the source the template came
        from, not in the substitution text.
        """
        text = str(token)
        groups = []
        for offset, expression in template_substitutions(token):
            prefix = text[:offset]
            line = token.line + prefix.count("\n")
            if "\n" in prefix:
                column = len(prefix) - prefix.rfind("\n")
            else:
                column = token.column + offset
            base = token.start_pos + offset
            groups.append([
                Token(
                    sub.type, str(sub),
                    base + sub.start_pos,
                    line + sub.line - 1,
                    column + sub.column - 1 if sub.line == 1 else sub.column,
                    line + sub.end_line - 1,
                    column + sub.end_column - 1 if sub.end_line == 1 else sub.end_column,
                    base + sub.end_pos,
                )
                for sub in self.tokenize(expression, module_path)
            ])
        return groups

    def import_statements(self, tokens) -> List[ImportStatement]:
        statements = []
        for i, tok in enumerate(tokens):
            if tok.type != "NAME" or is_member_access(tokens, i):
                continue
            if tok == "import":
                stmt = self._parse_import(tokens, i)
            elif tok == "export":
                stmt = self._parse_export_from(tokens, i)
            else:
                continue
            if stmt is not None:
                statements.append(stmt)
        return statements

    # --- statement shapes ---

    def _parse_import(self, tokens, i):
        j = i + 1
        if _is_string(tokens, j):
            return ImportStatement("import", i, skip_semicolon(tokens, j + 1), tokens[j])
        if value_at(tokens, j) == "(":
            if _is_literal(tokens, j + 1) and value_at(tokens, j + 2) == ")":
                return ImportStatement("dynamic-import", i, j + 3, tokens[j + 1])
            return None

        default = namespace = None
        names = ()
        if type_at(tokens, j) == "NAME" and not (value_at(tokens, j) == "from" and _is_string(tokens, j + 1)):
            default = value_at(tokens, j)
            j += 1
            if value_at(tokens, j) == ",":
                j += 1
                if value_at(tokens, j) not in ("*", "{"):
                    return None

        if value_at(tokens, j) == "*":
            if value_at(tokens, j + 1) != "as" or type_at(tokens, j + 2) != "NAME":
                return None
            namespace = value_at(tokens, j + 2)
            j += 3
        elif value_at(tokens, j) == "{":
            parsed = parse_binding_list(tokens, j)
            if parsed is None:
                return None
            names, j = parsed
        elif default is None:
            return None

        if value_at(tokens, j) != "from" or not _is_string(tokens, j + 1):
            return None
        return ImportStatement(
            "import", i, skip_semicolon(tokens, j + 2), tokens[j + 1],
            default=default, namespace=namespace, names=names,
        )

    def _parse_export_from(self, tokens, i):
        j = i + 1
        if value_at(tokens, j) == "*":
            namespace = None
            j += 1
            if value_at(tokens, j) == "as":
                if type_at(tokens, j + 1) not in ("NAME", "KEYWORD", "STRING"):
                    return None
                target = tokens[j + 1]
                namespace = string_value(target) if target.type == "STRING" else str(target)
                j += 2
            if value_at(tokens, j) != "from" or not _is_string(tokens, j + 1):
                return None
            return ImportStatement(
                "export-star", i, skip_semicolon(tokens, j + 2), tokens[j + 1], namespace=namespace,
            )
        if value_at(tokens, j) == "{":
            parsed = parse_binding_list(tokens, j)
            if parsed is None:
                return None
            names, j = parsed
            if value_at(tokens, j) == "from" and _is_string(tokens, j + 1):
                return ImportStatement(
                    "export-from", i, skip_semicolon(tokens, j + 2), tokens[j + 1], names=names,
                )
        return None


def parse_binding_list(tokens, index):
    """
    Parse ``{ a, b as c, "d" as e }`` starting at the '{' token.

    Returns ``(((name, alias), ...), index_after_closing_brace)`` or None when
    the braces do not hold a binding list.
    """
    names = []
    j = index + 1
    while value_at(tokens, j) != "}":
        if j >= len(tokens) or tokens[j].type not in ("NAME", "KEYWORD", "STRING"):
            return None
        name = string_value(tokens[j]) if tokens[j].type == "STRING" else str(tokens[j])
        alias = name
        j += 1
        if value_at(tokens, j) == "as":
            if j + 1 >= len(tokens) or tokens[j + 1].type not in ("NAME", "KEYWORD", "STRING"):
                return None
            target = tokens[j + 1]
            alias = string_value(target) if target.type == "STRING" else str(target)
            j += 2
        names.append((name, alias))
        if value_at(tokens, j) == ",":
            j += 1
        elif value_at(tokens, j) != "}":
            return None
    return tuple(names), j + 1
