"""
Bundle Serializer.

Turns a transformed module table into one script:

    <runtime>
    register(<id>, function (module, exports, require) {
    <module body with require("./x") rewritten to require(<id>)>
    });
    ...
    require(0);

Modules are emitted in reverse id order, so leaves come first and the entry
module is registered last. Module bodies are copied line for line, which is
what lets the minifier map bundle lines back to source files.
"""

from bundler.errors import SerializationError
from bundler.models import Bundle, ModuleSpan, ModuleTable
from bundler.runtime import get_runtime
from bundler.scanner import JsScanner

ISOLATE_HEADER = "(function () {\n"
ISOLATE_FOOTER = "})();\n"


class BundleSerializer:
    def __init__(self, scanner=None, isolate=True, runtime=None):
        self.scanner = scanner or JsScanner()
        self.isolate = isolate
        self.runtime = runtime if runtime is not None else get_runtime()

    def rewrite(self, module, ids):
        """
        Replace the specifier argument of every ``require("<specifier>")``
        call for each dependency with the dependency's id.

        Only literal tokens that are the sole argument of a ``require`` call
        are touched; identical text anywhere else is left alone.

        Raises:
            SerializationError: If a dependency has no call site left, or a
                call names a specifier that is not a known dependency
        """
        source = module.transformed_source
        if source is None:
            raise SerializationError(module.path, None, "Module was never transformed")

        tokens = self.scanner.tokenize(source, module.path)
        calls = self.scanner.require_calls(tokens, module.path)
        for call in calls:
            if call.specifier not in module.dependencies:
                raise SerializationError(
                    module.path, call.specifier,
                    f"require() at line {call.token.line} names a module that was never discovered",
                )
        edits = []
        for specifier, dependency_path in module.dependencies.items():
            sites = [call.token for call in calls if call.specifier == specifier]
            if not sites:
                raise SerializationError(module.path, specifier)
            edits.extend((tok.start_pos, tok.end_pos, str(ids[dependency_path])) for tok in sites)

        for start, end, text in sorted(edits, reverse=True):
            source = source[:start] + text + source[end:]
        return source

    def wrap(self, module_id, body):
        return f"register({module_id}, function (module, exports, require) {{\n{body}\n}});\n"

    def serialize(self, table: ModuleTable) -> Bundle:
        """Build the bundle text plus the line span of every module body."""
        ids = {module.path: module.id for module in table.modules.values()}
        parts = []
        spans = []
        line = 1

        def emit(text):
            nonlocal line
            parts.append(text)
            line += text.count("\n")

        if self.isolate:
            emit(ISOLATE_HEADER)
        emit(self.runtime)
        for module in reversed(table.ordered()):
            body = self.rewrite(module, ids)
            # Body starts on the line after "register(..., function (...) {"
            spans.append(ModuleSpan(
                id=module.id, path=module.path,
                start_line=line + 1, line_count=body.count("\n") + 1,
            ))
            emit(self.wrap(module.id, body))
        emit(f"require({table.entry.id});\n")
        if self.isolate:
            emit(ISOLATE_FOOTER)

        return Bundle(code="".join(parts), spans=spans)


def serialize(table, isolate=True):
    """Shortcut returning only the bundle text."""
    return BundleSerializer(isolate=isolate).serialize(table).code
