"""
Dependency graph builder.

Breadth-first discovery from the entry file. Module ids are handed out in the
order modules are first dequeued, so the entry is always 0 and the numbering
is part of the output contract (ids are embedded in the bundle).
"""

import os
from collections import deque

from bundler.errors import EntryNotFoundError, ModuleReadError
from bundler.models import Module, ModuleTable


class _Traversal:
    """Queue, visited set and id counter for a single build() call."""

    def __init__(self, entry_path):
        self.queue = deque([entry_path])
        self.visited = set()
        self.next_id = 0
        self.modules = {}

    def take_id(self):
        module_id = self.next_id
        self.next_id += 1
        return module_id


class GraphBuilder:

    def __init__(self, file_index, resolver, scanner):
        self.file_index = file_index
        self.resolver = resolver
        self.scanner = scanner

    def build(self, entry_path) -> ModuleTable:
        """
        Discover every module reachable from ``entry_path``.

        Raises:
            EntryNotFoundError: If the entry is not in the file index
            UnresolvedSpecifierError, UnsupportedSpecifierError: On the first
                specifier that cannot be resolved; nothing partial is returned
            ModuleReadError: If a module cannot be read or is not UTF-8
            SourceScanError: If a module cannot be tokenized
        """
        if not self.file_index.exists(entry_path):
            raise EntryNotFoundError(entry_path)
        entry_path = os.path.realpath(entry_path)

        state = _Traversal(entry_path)
        while state.queue:
            path = state.queue.popleft()
            # Process each module only once
            if path in state.visited:
                continue
            state.visited.add(path)
            module_id = state.take_id()

            try:
                raw_source = self.file_index.read_file(path)
            except UnicodeDecodeError as e:
                raise ModuleReadError(path, f"Module is not valid UTF-8 text ({e.reason})")
            except OSError as e:
                raise ModuleReadError(path, f"Cannot read module: {e.strerror or e}")
            dependencies = {}
            for specifier in self.scanner.scan(raw_source, module_path=path):
                dependencies[specifier] = self.resolver.resolve(path, specifier)

            state.modules[path] = Module(
                id=module_id,
                path=path,
                raw_source=raw_source,
                dependencies=dependencies,
            )
            state.queue.extend(dependencies.values())

        return ModuleTable(entry_path=entry_path, modules=state.modules)
