"""
Unit tests for writing and serving bundles.
"""
import json
import os

import pytest

from bundler.errors import OutputWriteError
from bundler.output import DevServer, write_bundle


class TestWriteBundle:
    """Tests for write_bundle()."""

    def test_creates_parent_directories(self, project):
        path = project.path('dist/js/bundle.js')
        assert write_bundle(path, 'require(0);\n') == [path]
        with open(path) as f:
            assert f.read() == 'require(0);\n'

    def test_no_temporary_files_left(self, project):
        path = project.path('out/bundle.js')
        write_bundle(path, 'a')
        write_bundle(path, 'b')
        assert os.listdir(project.path('out')) == ['bundle.js']
        with open(path) as f:
            assert f.read() == 'b'

    def test_source_map_written_next_to_bundle(self, project):
        path = project.path('dist/bundle.js')
        source_map = {"version": 3, "sources": ["../a.js"], "names": [], "mappings": "AAAA"}
        written = write_bundle(path, 'x;\n', source_map)
        assert written == [path, path + '.map']
        with open(path) as f:
            assert f.read() == 'x;\n//# sourceMappingURL=bundle.js.map\n'
        with open(path + '.map') as f:
            assert json.load(f) == source_map

    def test_unwritable_location(self, project):
        blocker = project.write('blocker', '')
        with pytest.raises(OutputWriteError) as exc:
            write_bundle(os.path.join(blocker, 'bundle.js'), 'x')
        assert exc.value.path == os.path.join(blocker, 'bundle.js')

    def test_failed_bundle_write_leaves_no_map(self, project):
        path = project.path('dist/bundle.js')
        os.makedirs(path)
        with pytest.raises(OutputWriteError):
            write_bundle(path, 'x;\n', {"version": 3, "sources": [], "names": [], "mappings": ""})
        assert not os.path.exists(path + '.map')
        assert os.listdir(project.path('dist')) == ['bundle.js']

    def test_failed_rewrite_keeps_previous_files(self, project, monkeypatch):
        path = project.path('dist/bundle.js')
        write_bundle(path, 'old;\n', {"version": 3, "sources": ["old.js"], "names": [], "mappings": ""})
        real_replace = os.replace

        def failing_replace(src, dst):
            if dst == path:
                raise PermissionError(13, 'Permission denied')
            real_replace(src, dst)

        monkeypatch.setattr(os, 'replace', failing_replace)
        with pytest.raises(OutputWriteError):
            write_bundle(path, 'new;\n', {"version": 3, "sources": ["new.js"], "names": [], "mappings": ""})
        with open(path) as f:
            assert f.read() == 'old;\n//# sourceMappingURL=bundle.js.map\n'
        with open(path + '.map') as f:
            assert json.load(f)['sources'] == ['old.js']
        assert sorted(os.listdir(project.path('dist'))) == ['bundle.js', 'bundle.js.map']


class TestDevServer:
    """Tests for the development server."""

    @pytest.fixture
    def server(self):
        server = DevServer('console.log("hi");\n', port=0).start()
        yield server
        server.stop()

    def test_index_page_loads_bundle(self, server):
        requests = pytest.importorskip('requests')
        response = requests.get(server.url, timeout=5)
        assert response.status_code == 200
        assert '<script src="/bundle.js"></script>' in response.text

    def test_bundle_served_without_caching(self, server):
        requests = pytest.importorskip('requests')
        response = requests.get(server.url + 'bundle.js', timeout=5)
        assert response.status_code == 200
        assert response.text == 'console.log("hi");\n'
        assert response.headers['Content-Type'].startswith('application/javascript')
        assert response.headers['Cache-Control'] == 'no-store'

    def test_unknown_path(self, server):
        requests = pytest.importorskip('requests')
        assert requests.get(server.url + 'missing.js', timeout=5).status_code == 404

    def test_source_map_route(self):
        requests = pytest.importorskip('requests')
        server = DevServer('x;\n', port=0, source_map={"version": 3}).start()
        try:
            assert requests.get(server.url + 'bundle.js.map', timeout=5).json() == {"version": 3}
            assert requests.get(server.url + 'bundle.js', timeout=5).text.endswith(
                '//# sourceMappingURL=bundle.js.map\n')
        finally:
            server.stop()

