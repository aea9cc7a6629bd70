"""
Shared fixtures: temporary JavaScript projects and a node runner.
"""
import os
import shutil
import subprocess
import sys
import tempfile

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from bundler.file_index import FileIndex

NODE = shutil.which("node")


class Project:
    """A throwaway project tree rooted in a temporary directory."""

    def __init__(self, root):
        self.root = os.path.realpath(root)

    def path(self, rel):
        return os.path.join(self.root, rel)

    def write(self, rel, content):
        path = self.path(rel)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path

    def write_all(self, files):
        for rel, content in files.items():
            self.write(rel, content)
        return self

    def index(self, extensions=('.js',)):
        return FileIndex([self.root], extensions)


@pytest.fixture
def project():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Project(tmpdir)


@pytest.fixture
def run_node(project):
    """Run a script with node and return the completed process."""
    if NODE is None:
        pytest.skip("node is not installed")

    def _run(code, name='__bundle__.js'):
        path = project.write(name, code)
        return subprocess.run([NODE, path], capture_output=True, text=True, timeout=60)

    return _run
