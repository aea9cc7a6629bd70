"""
Specifier resolution: maps an import specifier to the file it names.
"""

import os

from bundler.errors import UnresolvedSpecifierError, UnsupportedSpecifierError

RELATIVE_PREFIXES = ("./", "../")


class Resolver:
    """
    Resolves project-relative specifiers against the file index.

    Resolution is memoized per (directory, specifier), so a pair always maps
    to the same path within one run.
    """

    def __init__(self, file_index, extensions=(".js",)):
        self.file_index = file_index
        self.extensions = tuple(extensions)
        self._cache = {}

    def candidates(self, from_module_path, specifier):
        """Paths to probe for ``specifier``, in priority order."""
        base = os.path.normpath(os.path.join(os.path.dirname(from_module_path), specifier))
        return [base] + [base + ext for ext in self.extensions]

    def resolve(self, from_module_path, specifier):
        """
        Resolve ``specifier`` as used inside ``from_module_path``.

        The specifier is tried as written, then with each configured
        extension appended; the first file present in the index wins.

        Returns:
            The canonical absolute path of the dependency

        Raises:
            UnsupportedSpecifierError: For bare package and core module names
            UnresolvedSpecifierError: If no candidate file exists
        """
        if not specifier.startswith(RELATIVE_PREFIXES):
            raise UnsupportedSpecifierError(from_module_path, specifier)

        key = (os.path.dirname(from_module_path), specifier)
        if key in self._cache:
            return self._cache[key]

        candidates = self.candidates(from_module_path, specifier)
        for candidate in candidates:
            if self.file_index.exists(candidate):
                resolved = os.path.realpath(candidate)
                self._cache[key] = resolved
                return resolved

        raise UnresolvedSpecifierError(from_module_path, specifier, candidates)
