"""
Unit tests for specifier resolution.
"""
import os

import pytest

from bundler.errors import UnresolvedSpecifierError, UnsupportedSpecifierError
from bundler.resolver import Resolver


class TestResolve:
    """Tests for Resolver.resolve()."""

    def test_extension_probing(self, project):
        a = project.write('a.js', '')
        b = project.write('b.js', '')
        resolver = Resolver(project.index())
        assert resolver.resolve(a, './b') == b

    def test_specifier_with_extension(self, project):
        a = project.write('a.js', '')
        b = project.write('b.js', '')
        assert Resolver(project.index()).resolve(a, './b.js') == b

    def test_parent_directory(self, project):
        a = project.write('src/app/a.js', '')
        util = project.write('src/lib/util.js', '')
        assert Resolver(project.index()).resolve(a, '../lib/util') == util

    def test_extension_order_wins(self, project):
        a = project.write('a.js', '')
        mjs = project.write('b.mjs', '')
        project.write('b.js', '')
        resolver = Resolver(project.index(('.mjs', '.js')), extensions=('.mjs', '.js'))
        assert resolver.resolve(a, './b') == mjs

    def test_same_pair_same_answer(self, project):
        a = project.write('a.js', '')
        project.write('b.js', '')
        resolver = Resolver(project.index())
        assert resolver.resolve(a, './b') == resolver.resolve(a, './b')

    def test_result_is_canonical(self, project):
        a = project.write('src/a.js', '')
        b = project.write('src/b.js', '')
        resolved = Resolver(project.index()).resolve(a, './../src/./b')
        assert resolved == b
        assert os.path.isabs(resolved)


class TestFailures:

    def test_missing_file(self, project):
        a = project.write('a.js', '')
        with pytest.raises(UnresolvedSpecifierError) as exc:
            Resolver(project.index()).resolve(a, './missing')
        assert exc.value.module_path == a
        assert exc.value.specifier == './missing'
        assert 'missing.js' in exc.value.message

    def test_directory_index_is_not_resolved(self, project):
        a = project.write('a.js', '')
        project.write('lib/index.js', '')
        with pytest.raises(UnresolvedSpecifierError):
            Resolver(project.index()).resolve(a, './lib')

    def test_file_outside_the_index(self, project):
        a = project.write('a.js', '')
        project.write('notes.txt', '')
        with pytest.raises(UnresolvedSpecifierError):
            Resolver(project.index()).resolve(a, './notes.txt')

    @pytest.mark.parametrize('specifier', ['lodash', 'fs', '/abs/path.js', '@scope/pkg'])
    def test_bare_and_absolute_specifiers(self, project, specifier):
        a = project.write('a.js', '')
        with pytest.raises(UnsupportedSpecifierError) as exc:
            Resolver(project.index()).resolve(a, specifier)
        assert exc.value.specifier == specifier


class TestFileIndex:
    """Tests for the file index the resolver probes."""

    def test_extension_filter_and_ignored_dirs(self, project):
        project.write_all({
            'a.js': '',
            'lib/b.js': '',
            'readme.md': '',
            'node_modules/pkg/index.js': '',
        })
        index = project.index()
        assert index.all_files() == {project.path('a.js'), project.path('lib/b.js')}
        assert len(index) == 2

    def test_exists_canonicalizes(self, project):
        project.write('lib/b.js', '')
        index = project.index()
        assert index.exists(os.path.join(project.root, 'lib', '..', 'lib', 'b.js'))
        assert not index.exists(project.path('lib'))

    def test_files_added_after_crawl_are_not_seen(self, project):
        project.write('a.js', '')
        index = project.index().build()
        project.write('late.js', '')
        assert not index.exists(project.path('late.js'))
