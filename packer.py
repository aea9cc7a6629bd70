import os
import sys

from bundler.config import BundleConfig
from bundler.file_index import FileIndex
from bundler.graph import GraphBuilder
from bundler.minifier import Minifier
from bundler.models import BuildResult, SourceMapOptions
from bundler.resolver import Resolver
from bundler.scanner import JsScanner
from bundler.serializer import BundleSerializer
from bundler.transform_stage import TransformStage
from bundler.transformer import EsmTransformer

# Global verbose flag
_VERBOSE = False

def set_verbose(value):
    """Set the global verbose flag."""
    global _VERBOSE
    _VERBOSE = value

def debug_log(message):
    """Log a debug message to stderr if verbose mode is enabled."""
    if _VERBOSE:
        print(f"\033[94mDEBUG:\033[0m {message}", file=sys.stderr)


def _no_progress(message):
    pass


def make_file_index(config):
    return FileIndex(config.resolved_roots(), config.extensions, config.ignore_dirs)


def build_graph(entry_path, config=None, file_index=None, scanner=None):
    """Discover the module table for ``entry_path`` without transforming it."""
    config = config or BundleConfig()
    file_index = file_index or make_file_index(config)
    scanner = scanner or JsScanner()
    resolver = Resolver(file_index, config.extensions)

    table = GraphBuilder(file_index, resolver, scanner).build(entry_path)
    for module in table.ordered():
        debug_log(f"Module {module.id}: {module.path}")
        for specifier, path in module.dependencies.items():
            debug_log(f"  {specifier} -> {path}")
    return table


def compile_bundle(entry_path, config=None, transformer=None, file_index=None, progress=None) -> BuildResult:
    """
    Run the whole pipeline: graph -> transform -> serialize -> (minify).

    Nothing is written; the caller decides where the artifact goes. Any
    failure raises a BundleError subclass and no partial result is returned.

    Args:
        entry_path: Path of the entry module
        config: BundleConfig (defaults apply when omitted)
        transformer: Object with ``transform(source) -> TransformResult``
        file_index: Pre-built FileIndex, mainly for tests
        progress: Callable receiving the user-facing progress lines
    """
    config = config or BundleConfig()
    progress = progress or _no_progress
    scanner = JsScanner()

    # STEP 1: DISCOVER MODULES
    progress(f"❯ Building {entry_path}")
    table = build_graph(entry_path, config, file_index=file_index, scanner=scanner)
    progress(f"❯ Found {len(table)} files")

    # STEP 2: TRANSFORM (parallel, full barrier before serializing)
    stage = TransformStage(
        transformer or EsmTransformer(scanner),
        max_workers=config.max_workers,
        on_module=lambda module, result: debug_log(f"Transformed {module.path}"),
    )
    table = stage.run(table)

    # STEP 3: SERIALIZE
    progress("❯ Serializing bundle")
    bundle = BundleSerializer(scanner, isolate=config.isolate).serialize(table)
    code, source_map = bundle.code, None

    # STEP 4: MINIFY
    if config.minify:
        progress("❯ Minifying bundle")
        options = None
        if config.source_map:
            output = os.path.abspath(config.output) if config.output else None
            options = SourceMapOptions(
                file=os.path.basename(output) if output else "bundle.js",
                spans=bundle.spans,
                sources_content={m.path: m.raw_source for m in table.modules.values()},
                source_root=os.path.dirname(output) if output else os.getcwd(),
            )
        result = Minifier(scanner).minify(code, options)
        code, source_map = result.code, result.map

    debug_log(f"Bundle size: {len(code)} characters")
    return BuildResult(code=code, source_map=source_map, table=table)
