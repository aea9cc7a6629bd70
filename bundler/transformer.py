"""
Default source transformer: ES module syntax to CommonJS.

The rewrite works on the token stream, replacing only the spans of module
syntax and leaving every other character of the source as it was. Each
replacement is padded with the newlines of the text it replaces, so a line in
the output is the same line in the input.

Supported forms:
    import "x";                      -> require("x");
    import d from "x";               -> const d = _interopRequireDefault(require("x")).default;
    import * as ns from "x";         -> const ns = require("x");
    import { a, b as c } from "x";   -> const { a, b: c } = require("x");
    export * from "x";               -> _exportStar(require("x"), exports);
    export { a } from "x";           -> getters on exports
    export default <expr>            -> exports.default = <expr>
    export function / class / const -> declaration kept, exports.<name> assigned
    import("x")                      -> Promise.resolve().then(function () { return require("x"); })

Exports are assigned once, so bindings are not live: reassigning an exported
``let`` after the module ran is not seen by importers.
"""

import json
import re

from bundler.errors import SourceScanError
from bundler.models import TransformResult
from bundler.scanner import (
    JsScanner,
    is_member_access,
    parse_binding_list,
    skip_semicolon,
    type_at,
    value_at,
)

ES_MODULE_PROLOGUE = '"use strict";Object.defineProperty(exports, "__esModule", { value: true });'

INTEROP_DEFAULT_HELPER = (
    "function _interopRequireDefault(obj) { return obj && obj.__esModule ? obj : { default: obj }; }"
)
EXPORT_STAR_HELPER = (
    "function _exportStar(source, target) { Object.keys(source).forEach(function (key) { "
    'if (key === "default" || key === "__esModule" || Object.prototype.hasOwnProperty.call(target, key)) return; '
    "Object.defineProperty(target, key, { enumerable: true, get: function () { return source[key]; } }); }); }"
)

DECLARATION_KEYWORDS = ("const", "let", "var")
EXPORT_STARTS = ("default", "{", "function", "async", "class", "*") + DECLARATION_KEYWORDS

OPENERS = ("(", "[", "{")
CLOSERS = (")", "]", "}")
BRACKET_TYPES = ("PUNCT", "LPAR", "RPAR", "RSQB")
# Token types that can end an expression
EXPRESSION_END_TYPES = ("NAME", "NUMBER", "STRING", "TEMPLATE", "REGEX", "RPAR", "RSQB", "INCDEC")
# Keywords that continue an expression on the next line
INFIX_KEYWORDS = ("in", "instanceof")

_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")


def member(obj, name):
    """``obj.name``, or ``obj["name"]`` when name is not an identifier."""
    if _IDENTIFIER.match(name):
        return f"{obj}.{name}"
    return f"{obj}[{json.dumps(name)}]"


def object_key(name):
    return name if _IDENTIFIER.match(name) else json.dumps(name)


def blank_hashbang(source):
    """Drop a leading ``#!`` line but keep its newline."""
    if not source.startswith("#!"):
        return source
    newline = source.find("\n")
    return "" if newline == -1 else source[newline:]


class _ModuleRewrite:
    """Collects character-level edits for one module and applies them."""

    def __init__(self, source, tokens):
        self.source = source
        self.tokens = tokens
        self.edits = []
        self.hoisted = []
        self.helpers = []
        self.is_esm = False
        self._counter = 0

    def _pad(self, start, end, text):
        missing = self.source.count("\n", start, end) - text.count("\n")
        return text + "\n" * max(0, missing)

    def replace(self, start_index, end_index, text):
        """Replace tokens[start_index:end_index] with ``text``."""
        start = self.tokens[start_index].start_pos
        end = self.tokens[end_index - 1].end_pos
        self.edits.append((start, end, self._pad(start, end, text)))

    def remove(self, start_index, end_index):
        """Remove tokens[start_index:end_index] and the whitespace after them."""
        start = self.tokens[start_index].start_pos
        end = self.tokens[end_index].start_pos
        self.edits.append((start, end, self._pad(start, end, "")))

    def insert_after(self, index, text):
        pos = self.tokens[index].end_pos
        self.edits.append((pos, pos, text))

    def hoist(self, text):
        self.hoisted.append(text)

    def use_helper(self, helper):
        if helper not in self.helpers:
            self.helpers.append(helper)

    def temp(self, prefix):
        name = f"__{prefix}{self._counter}"
        self._counter += 1
        return name

    def apply(self):
        code = self.source
        # Back to front so earlier offsets stay valid; for equal starts the
        # wider edit goes first so an insertion lands in front of it.
        for start, end, text in sorted(self.edits, key=lambda e: (e[0], e[1]), reverse=True):
            code = code[:start] + text + code[end:]
        if not self.is_esm:
            return code
        code = ES_MODULE_PROLOGUE + "".join(self.hoisted) + code
        if self.helpers:
            code += "\n" + "\n".join(self.helpers) + "\n"
        return code


class EsmTransformer:
    """
    Transformer collaborator for the Module Transform Stage.

    ``transform`` never raises for bad input; it reports the problem in
    ``TransformResult.error_message`` and the stage turns that into a
    TransformError for the module.
    """

    def __init__(self, scanner=None):
        self.scanner = scanner or JsScanner()

    def transform(self, source) -> TransformResult:
        try:
            return TransformResult(code=self.transform_source(source))
        except SourceScanError as e:
            where = f" (line {e.line_number}, column {e.column})" if e.line_number else ""
            return TransformResult(code=source, error_message=f"{e.message}{where}")
        except ValueError as e:
            return TransformResult(code=source, error_message=str(e))

    def transform_source(self, source):
        """Rewrite ``source``; raises ValueError on unsupported module syntax."""
        source = blank_hashbang(source)
        tokens = self.scanner.tokenize(source)
        rewrite = _ModuleRewrite(source, tokens)
        statements = {stmt.start: stmt for stmt in self.scanner.import_statements(tokens)}

        i = 0
        while i < len(tokens):
            tok = tokens[i]
            if tok.type == "TEMPLATE" and "${" in tok:
                self._check_substitutions(tok)
            if tok.type != "NAME" or is_member_access(tokens, i):
                i += 1
                continue
            if i in statements:
                i = self._module_reference(rewrite, statements[i])
            elif tok == "import" and value_at(tokens, i + 1) == ".":
                raise ValueError("import.meta is not supported")
            elif tok == "import" and value_at(tokens, i + 1) == "(":
                raise ValueError("import() needs a string literal specifier")
            elif tok == "export" and value_at(tokens, i + 1) in EXPORT_STARTS:
                i = self._local_export(rewrite, i)
            else:
                i += 1
        return rewrite.apply()

    def _check_substitutions(self, template):
        for group in self.scanner.substitution_tokens(template):
            for k, tok in enumerate(group):
                if tok.type == "NAME" and tok == "import" and not is_member_access(group, k):
                    raise ValueError("import inside a template literal substitution is not supported")

    # --- statements naming another module ---

    def _module_reference(self, rewrite, stmt):
        call = f"require({stmt.source})"
        if stmt.kind == "dynamic-import":
            rewrite.replace(stmt.start, stmt.end,
                            f"Promise.resolve().then(function () {{ return {call}; }})")
            return stmt.end

        rewrite.is_esm = True
        if stmt.kind == "import":
            text = self._import(rewrite, stmt, call)
        elif stmt.kind == "export-star":
            if stmt.namespace:
                text = f"{member('exports', stmt.namespace)} = {call};"
            else:
                rewrite.use_helper(EXPORT_STAR_HELPER)
                text = f"_exportStar({call}, exports);"
        else:
            tmp = rewrite.temp("reexport")
            parts = [f"const {tmp} = {call};"]
            for name, alias in stmt.names:
                parts.append(
                    f"Object.defineProperty(exports, {json.dumps(alias)}, "
                    f"{{ enumerable: true, get: function () {{ return {member(tmp, name)}; }} }});"
                )
            text = " ".join(parts)
        rewrite.replace(stmt.start, stmt.end, text)
        return stmt.end

    def _import(self, rewrite, stmt, call):
        source = call
        bindings = []
        if stmt.default and (stmt.namespace or stmt.names):
            # One require() shared by both bindings
            source = rewrite.temp("import")
            bindings.append(f"{source} = {call}")
        if stmt.default:
            rewrite.use_helper(INTEROP_DEFAULT_HELPER)
            bindings.append(f"{stmt.default} = _interopRequireDefault({source}).default")
        if stmt.namespace:
            bindings.append(f"{stmt.namespace} = {source}")
        if stmt.names:
            pattern = ", ".join(
                alias if name == alias else f"{object_key(name)}: {alias}"
                for name, alias in stmt.names
            )
            bindings.append(f"{{ {pattern} }} = {source}")
        if not bindings:
            return f"{call};"
        return "const " + ", ".join(bindings) + ";"

    # --- local exports ---

    def _local_export(self, rewrite, i):
        tokens = rewrite.tokens
        rewrite.is_esm = True
        keyword = value_at(tokens, i + 1)
        if keyword == "default":
            return self._export_default(rewrite, i)
        if keyword == "{":
            return self._export_list(rewrite, i)
        if keyword in ("function", "async"):
            return self._export_function(rewrite, i)
        if keyword == "class":
            name_index = i + 2
            if type_at(tokens, name_index) != "NAME":
                raise ValueError("Exported class declarations need a name")
            name = value_at(tokens, name_index)
            rewrite.remove(i, i + 1)
            rewrite.insert_after(_class_body_end(tokens, name_index + 1),
                                 f" {member('exports', name)} = {name};")
            return i + 1
        if keyword in DECLARATION_KEYWORDS:
            return self._export_variables(rewrite, i)
        raise ValueError(f"Unsupported export syntax: export {keyword}")

    def _export_default(self, rewrite, i):
        tokens = rewrite.tokens
        j = i + 2
        k = j + 1 if value_at(tokens, j) == "async" else j
        if value_at(tokens, k) == "function":
            name_index = k + 2 if value_at(tokens, k + 1) == "*" else k + 1
            if type_at(tokens, name_index) == "NAME":
                rewrite.remove(i, j)
                rewrite.hoist(f"exports.default = {value_at(tokens, name_index)};")
                return j
        if value_at(tokens, j) == "class" and type_at(tokens, j + 1) == "NAME":
            name = value_at(tokens, j + 1)
            rewrite.remove(i, j)
            rewrite.insert_after(_class_body_end(tokens, j + 2), f" exports.default = {name};")
            return j
        rewrite.replace(i, j, "exports.default =")
        return j

    def _export_list(self, rewrite, i):
        tokens = rewrite.tokens
        parsed = parse_binding_list(tokens, i + 1)
        if parsed is None:
            raise ValueError("Malformed export list")
        names, j = parsed
        end = skip_semicolon(tokens, j)
        rewrite.replace(i, end, " ".join(f"{member('exports', alias)} = {name};" for name, alias in names))
        return end

    def _export_function(self, rewrite, i):
        tokens = rewrite.tokens
        j = i + 2 if value_at(tokens, i + 1) == "async" else i + 1
        if value_at(tokens, j) != "function":
            raise ValueError("Unsupported export syntax: export async")
        name_index = j + 2 if value_at(tokens, j + 1) == "*" else j + 1
        if type_at(tokens, name_index) != "NAME":
            raise ValueError("Exported function declarations need a name")
        name = value_at(tokens, name_index)
        rewrite.remove(i, i + 1)
        # Function declarations are hoisted, so the export can be too
        rewrite.hoist(f"{member('exports', name)} = {name};")
        return i + 1

    def _export_variables(self, rewrite, i):
        tokens = rewrite.tokens
        names = []
        expect_name = True
        depth = 0
        end = len(tokens) - 1
        k = i + 2
        while k < len(tokens):
            tok = tokens[k]
            if depth == 0:
                if expect_name:
                    if tok in ("{", "[") and tok.type == "PUNCT":
                        raise ValueError("Destructuring export declarations are not supported")
                    if tok.type != "NAME":
                        raise ValueError("Unsupported export declaration")
                    names.append(str(tok))
                    expect_name = False
                elif tok == "," and tok.type == "PUNCT":
                    expect_name = True
                elif tok == ";" and tok.type == "PUNCT":
                    end = k
                    break
                elif _starts_new_statement(tokens, k):
                    end = k - 1
                    break
            if tok in OPENERS and tok.type in BRACKET_TYPES:
                depth += 1
            elif tok in CLOSERS and tok.type in BRACKET_TYPES:
                depth -= 1
            k += 1

        assignments = " ".join(f"{member('exports', name)} = {name};" for name in names)
        separator = " " if value_at(tokens, end) == ";" else "; "
        rewrite.remove(i, i + 1)
        rewrite.insert_after(end, separator + assignments)
        return i + 1


def _matching_close(tokens, index):
    depth = 0
    for k in range(index, len(tokens)):
        tok = tokens[k]
        if tok in OPENERS and tok.type in BRACKET_TYPES:
            depth += 1
        elif tok in CLOSERS and tok.type in BRACKET_TYPES:
            depth -= 1
            if depth == 0:
                return k
    raise ValueError("Unbalanced brackets")


def _class_body_end(tokens, index):
    """Index of the '}' closing the class body that starts at or after ``index``."""
    k = index
    while k < len(tokens):
        tok = tokens[k]
        if tok == "{" and tok.type == "PUNCT":
            return _matching_close(tokens, k)
        if tok in OPENERS and tok.type in BRACKET_TYPES:
            # parenthesized heritage expression, e.g. extends mixin(Base)
            k = _matching_close(tokens, k)
        k += 1
    raise ValueError("Class body not found")


def _starts_new_statement(tokens, k):
    """Automatic semicolon insertion between tokens[k - 1] and tokens[k]."""
    prev, tok = tokens[k - 1], tokens[k]
    if tok.line <= prev.end_line:
        return False
    prev_ends = prev.type in EXPRESSION_END_TYPES or (prev == "}" and prev.type == "PUNCT")
    if not prev_ends:
        return False
    if tok.type == "KEYWORD":
        return str(tok) not in INFIX_KEYWORDS
    return tok.type in ("NAME", "CONTROL", "NUMBER", "STRING", "INCDEC")
