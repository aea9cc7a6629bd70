"""
Unit tests for the dependency graph builder.
"""
import os

import pytest

from bundler.errors import EntryNotFoundError, ModuleReadError, UnresolvedSpecifierError
from bundler.graph import GraphBuilder
from bundler.resolver import Resolver
from bundler.scanner import JsScanner


def build(project, entry='a.js'):
    index = project.index()
    builder = GraphBuilder(index, Resolver(index), JsScanner())
    return builder.build(project.path(entry))


class TestGraphBuilder:
    """Tests for GraphBuilder.build()."""

    def test_two_modules(self, project):
        project.write_all({
            'a.js': 'console.log(require("./b"));',
            'b.js': 'module.exports = "ok";',
        })
        table = build(project)
        assert len(table) == 2
        a = table.get(project.path('a.js'))
        b = table.get(project.path('b.js'))
        assert (a.id, b.id) == (0, 1)
        assert a.dependencies == {'./b': project.path('b.js')}
        assert b.dependencies == {}
        assert a.raw_source == 'console.log(require("./b"));'
        assert a.transformed_source is None

    def test_breadth_first_ids(self, project):
        project.write_all({
            'a.js': 'require("./b"); require("./c");',
            'b.js': 'require("./d");',
            'c.js': '',
            'd.js': '',
        })
        table = build(project)
        ids = {m.path: m.id for m in table.modules.values()}
        assert ids == {
            project.path('a.js'): 0,
            project.path('b.js'): 1,
            project.path('c.js'): 2,
            project.path('d.js'): 3,
        }
        assert [m.id for m in table.ordered()] == [0, 1, 2, 3]

    def test_cycle_terminates(self, project):
        project.write_all({
            'a.js': 'require("./b");',
            'b.js': 'require("./a");',
        })
        table = build(project)
        assert len(table) == 2
        assert table.get(project.path('b.js')).dependencies == {'./a': project.path('a.js')}

    def test_self_import(self, project):
        project.write('a.js', 'require("./a");')
        table = build(project)
        assert len(table) == 1
        assert table.entry.dependencies == {'./a': project.path('a.js')}

    def test_one_record_per_file(self, project):
        project.write_all({
            'a.js': 'require("./b"); require("./b.js"); require("./lib/../b");',
            'b.js': '',
        })
        table = build(project)
        assert len(table) == 2
        assert set(table.entry.dependencies.values()) == {project.path('b.js')}
        assert list(table.entry.dependencies) == ['./b', './b.js', './lib/../b']

    def test_es_module_imports(self, project):
        project.write_all({
            'a.js': 'import b from "./b";\nexport * from "./c";',
            'b.js': '',
            'c.js': '',
        })
        table = build(project)
        assert list(table.entry.dependencies) == ['./b', './c']

    def test_entry_is_zero_with_relative_path(self, project, monkeypatch):
        project.write('src/main.js', '')
        monkeypatch.chdir(project.root)
        index = project.index()
        table = GraphBuilder(index, Resolver(index), JsScanner()).build('src/main.js')
        assert table.entry_path == project.path('src/main.js')
        assert table.entry.id == 0


class TestFailures:

    def test_missing_entry(self, project):
        with pytest.raises(EntryNotFoundError) as exc:
            build(project, 'nope.js')
        assert '--entry-point' in str(exc.value)

    def test_unresolved_dependency_names_the_importer(self, project):
        project.write_all({
            'a.js': 'require("./b");',
            'b.js': 'require("./gone");',
        })
        with pytest.raises(UnresolvedSpecifierError) as exc:
            build(project)
        assert exc.value.module_path == project.path('b.js')
        assert exc.value.specifier == './gone'

    def test_invalid_utf8_names_the_module(self, project):
        project.write('a.js', 'require("./b");')
        with open(project.path('b.js'), 'wb') as f:
            f.write(b'module.exports = "\xff\xfe";')
        with pytest.raises(ModuleReadError) as exc:
            build(project)
        assert exc.value.module_path == project.path('b.js')
        assert 'UTF-8' in exc.value.message

    def test_file_removed_after_crawl(self, project):
        project.write_all({'a.js': 'require("./b");', 'b.js': ''})
        index = project.index().build()
        os.remove(project.path('b.js'))
        with pytest.raises(ModuleReadError) as exc:
            GraphBuilder(index, Resolver(index), JsScanner()).build(project.path('a.js'))
        assert exc.value.module_path == project.path('b.js')
