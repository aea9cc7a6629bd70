"""
File index: the set of candidate source files under the project roots.
"""

import os


class FileIndex:
    """
    Crawls the root directories once and answers existence queries from memory.

    Paths are stored canonicalized (``os.path.realpath``) so that a file reached
    through different relative segments or symlinked directories is one entry.
    """

    def __init__(self, roots, extensions=(".js",), ignore_dirs=("node_modules", ".git")):
        self.roots = [os.path.realpath(root) for root in roots]
        self.extensions = tuple(extensions)
        self.ignore_dirs = set(ignore_dirs)
        self._files = None

    def _crawl(self):
        files = set()
        for root in self.roots:
            for dirpath, dirnames, filenames in os.walk(root):
                # Pruned in place so os.walk skips them
                dirnames[:] = sorted(d for d in dirnames if d not in self.ignore_dirs)
                for name in filenames:
                    if name.endswith(self.extensions):
                        files.add(os.path.realpath(os.path.join(dirpath, name)))
        return files

    def build(self):
        """Crawl now (otherwise the first query does). Returns self."""
        if self._files is None:
            self._files = self._crawl()
        return self

    def all_files(self):
        return set(self.build()._files)

    def exists(self, path):
        return os.path.realpath(path) in self.build()._files

    def read_file(self, path):
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def __len__(self):
        return len(self.build()._files)
