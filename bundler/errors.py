"""
Error handling for the minipack bundler.

Every failure aborts the whole build; the errors carry the offending module
path and specifier so the message points at the exact import that broke.
"""


class BundleError(Exception):
    """Base class for bundling errors with module context and hints."""

    header = "Bundle Error"
    location_label = "module"

    def __init__(self, message, module_path=None, specifier=None,
                 line_number=None, column=None, suggestion=None):
        self.message = message
        self.module_path = module_path
        self.specifier = specifier
        self.line_number = line_number
        self.column = column
        self.suggestion = suggestion  # How to fix it
        super().__init__(self._format_error())

    def _format_error(self):
        """Format the error message with module context and suggestion."""
        lines = [f"\n❌ {self.header}"]
        if self.line_number:
            lines.append(f" at line {self.line_number}")
            if self.column:
                lines.append(f", column {self.column}")
        lines.append(":\n")

        lines.append(f"   {self.message}\n")

        if self.module_path:
            lines.append(f"   > {self.location_label}: {self.module_path}\n")
        if self.specifier is not None:
            lines.append(f"   > specifier: {self.specifier!r}\n")

        if self.suggestion:
            lines.append(f"   💡 {self.suggestion}\n")

        return "".join(lines)


class ConfigError(BundleError):
    header = "Configuration Error"


class EntryNotFoundError(BundleError):
    header = "Entry Point Not Found"

    def __init__(self, entry_path, suggestion=None):
        super().__init__(
            "`--entry-point` does not exist. Please provide a path to a valid file.",
            module_path=entry_path,
            suggestion=suggestion or "Check the path and that it lives under one of the configured roots",
        )


class UnresolvedSpecifierError(BundleError):
    header = "Unresolved Import"

    def __init__(self, module_path, specifier, candidates=None):
        tried = ""
        if candidates:
            tried = " (tried: " + ", ".join(candidates) + ")"
        super().__init__(
            f"Cannot resolve {specifier!r}{tried}",
            module_path=module_path,
            specifier=specifier,
            suggestion="Check the file name and the configured extensions",
        )


class UnsupportedSpecifierError(BundleError):
    header = "Unsupported Import"

    def __init__(self, module_path, specifier):
        super().__init__(
            "Only relative file specifiers ('./' or '../') can be bundled",
            module_path=module_path,
            specifier=specifier,
            suggestion="Package and core module imports are not supported",
        )


class ModuleReadError(BundleError):
    header = "Read Error"

    def __init__(self, module_path, message):
        super().__init__(
            message,
            module_path=module_path,
            suggestion="Modules must be readable UTF-8 text files",
        )


class SourceScanError(BundleError):
    header = "Syntax Error"


class TransformError(BundleError):
    header = "Transform Error"

    def __init__(self, module_path, message):
        super().__init__(message, module_path=module_path)


class SerializationError(BundleError):
    header = "Serialization Error"

    def __init__(self, module_path, specifier, message=None):
        super().__init__(
            message or "No require() call site left for this dependency after transformation",
            module_path=module_path,
            specifier=specifier,
            suggestion="The transformer must keep every import specifier as a require() argument",
        )


class OutputWriteError(BundleError):
    header = "Output Error"
    location_label = "path"

    def __init__(self, message, path=None, suggestion=None):
        super().__init__(message, module_path=path, suggestion=suggestion)
        self.path = path
