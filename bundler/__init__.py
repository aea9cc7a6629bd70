# minipack - Core Bundler Components
"""
Core modules for the minipack bundler:
- errors: Error taxonomy with module/specifier context
- models: Module table and artifact data model
- config: Configuration file and defaults
- file_index: Candidate source files under the project roots
- grammar: Lark grammar for the JavaScript token stream
- scanner: Finds require() calls and import/export statements
- resolver: Specifier -> file resolution
- graph: Breadth-first dependency graph builder
- transformer: ES module -> CommonJS source transformer
- transform_stage: Parallel per-module transform
- serializer: Rewrites requires to ids and assembles the bundle
- runtime: The loader embedded in every bundle
- minifier: Whitespace/comment minifier with source maps
- output: Writing and serving the bundle
"""

from .errors import (
    BundleError,
    ConfigError,
    EntryNotFoundError,
    ModuleReadError,
    OutputWriteError,
    SerializationError,
    SourceScanError,
    TransformError,
    UnresolvedSpecifierError,
    UnsupportedSpecifierError,
)
from .config import BundleConfig, load_config
from .file_index import FileIndex
from .graph import GraphBuilder
from .minifier import Minifier
from .models import Module, ModuleTable, TransformResult
from .resolver import Resolver
from .scanner import JsScanner
from .serializer import BundleSerializer, serialize
from .transform_stage import TransformStage
from .transformer import EsmTransformer

__all__ = [
    'BundleError',
    'ConfigError',
    'EntryNotFoundError',
    'ModuleReadError',
    'OutputWriteError',
    'SerializationError',
    'SourceScanError',
    'TransformError',
    'UnresolvedSpecifierError',
    'UnsupportedSpecifierError',
    'BundleConfig',
    'load_config',
    'FileIndex',
    'GraphBuilder',
    'Minifier',
    'Module',
    'ModuleTable',
    'TransformResult',
    'Resolver',
    'JsScanner',
    'BundleSerializer',
    'serialize',
    'TransformStage',
    'EsmTransformer',
]
