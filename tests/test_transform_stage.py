"""
Unit tests for the parallel Module Transform Stage.
"""
import time

import pytest

from bundler.errors import TransformError
from bundler.models import Module, ModuleTable, TransformResult
from bundler.transform_stage import TransformStage


def make_table(sources):
    modules = {}
    for i, (path, source) in enumerate(sources.items()):
        modules[path] = Module(id=i, path=path, raw_source=source)
    return ModuleTable(entry_path=next(iter(sources)), modules=modules)


class UpperTransformer:
    """Uppercases the source; sleeps longer for earlier modules."""

    def transform(self, source):
        time.sleep(0.05 if source.startswith("slow") else 0)
        return TransformResult(code=source.upper())


class FailingTransformer:
    def __init__(self, bad_source, crash=False):
        self.bad_source = bad_source
        self.crash = crash

    def transform(self, source):
        if source == self.bad_source:
            if self.crash:
                raise RuntimeError("boom")
            return TransformResult(error_message="Unexpected token")
        return TransformResult(code=source)


class TestTransformStage:
    """Tests for TransformStage.run()."""

    def test_every_module_transformed(self):
        table = make_table({"/p/a.js": "slow a", "/p/b.js": "b", "/p/c.js": "c"})
        result = TransformStage(UpperTransformer(), max_workers=3).run(table)
        assert {m.path: m.transformed_source for m in result.modules.values()} == {
            "/p/a.js": "SLOW A",
            "/p/b.js": "B",
            "/p/c.js": "C",
        }

    def test_ids_and_dependencies_survive(self):
        table = make_table({"/p/a.js": "slow", "/p/b.js": "b"})
        table = table.replace([
            table.get("/p/a.js").model_copy(update={"dependencies": {"./b": "/p/b.js"}}),
            table.get("/p/b.js"),
        ])
        result = TransformStage(UpperTransformer(), max_workers=2).run(table)
        assert [m.id for m in result.ordered()] == [0, 1]
        assert result.entry.dependencies == {"./b": "/p/b.js"}

    def test_input_table_untouched(self):
        table = make_table({"/p/a.js": "a"})
        TransformStage(UpperTransformer(), max_workers=1).run(table)
        assert table.entry.transformed_source is None

    def test_default_worker_count(self):
        assert TransformStage(UpperTransformer()).max_workers >= 1

    def test_progress_callback(self):
        seen = []
        table = make_table({"/p/a.js": "a", "/p/b.js": "b"})
        stage = TransformStage(UpperTransformer(), on_module=lambda m, r: seen.append((m.path, r.code)))
        stage.run(table)
        assert sorted(seen) == [("/p/a.js", "A"), ("/p/b.js", "B")]


class TestFailures:

    def test_error_names_the_module(self):
        table = make_table({"/p/a.js": "a", "/p/b.js": "bad"})
        with pytest.raises(TransformError) as exc:
            TransformStage(FailingTransformer("bad"), max_workers=2).run(table)
        assert exc.value.module_path == "/p/b.js"
        assert exc.value.message == "Unexpected token"

    def test_crash_becomes_transform_error(self):
        table = make_table({"/p/a.js": "bad"})
        with pytest.raises(TransformError) as exc:
            TransformStage(FailingTransformer("bad", crash=True), max_workers=1).run(table)
        assert "boom" in exc.value.message
        assert isinstance(exc.value.__cause__, RuntimeError)
