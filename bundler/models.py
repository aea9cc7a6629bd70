"""
Data model shared by the bundling stages.

Module records are frozen: each stage returns new records instead of mutating
the ones it was given, so a field moves from absent to present exactly once.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Module(BaseModel):
    """One unique resolved source file."""
    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0)
    path: str
    raw_source: str
    transformed_source: Optional[str] = None
    # specifier as written -> resolved absolute path, in first-occurrence order
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ModuleTable(BaseModel):
    """All modules of one bundling run, keyed by canonical path."""

    entry_path: str
    modules: Dict[str, Module] = Field(default_factory=dict)

    def __len__(self):
        return len(self.modules)

    def __contains__(self, path):
        return path in self.modules

    def get(self, path) -> Module:
        return self.modules[path]

    @property
    def entry(self) -> Module:
        return self.modules[self.entry_path]

    def ordered(self) -> List[Module]:
        """Modules in id-assignment order."""
        return sorted(self.modules.values(), key=lambda m: m.id)

    def replace(self, modules) -> "ModuleTable":
        """Return a new table holding ``modules`` (same paths, new records)."""
        return ModuleTable(
            entry_path=self.entry_path,
            modules={m.path: m for m in sorted(modules, key=lambda m: m.id)},
        )


class TransformResult(BaseModel):
    """What a Transformer hands back for one source text."""

    code: str = ""
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_message is None


class ModuleSpan(BaseModel):
    """Where a module body sits inside the serialized bundle (1-based lines)."""

    id: int
    path: str
    start_line: int
    line_count: int


class Bundle(BaseModel):
    code: str
    spans: List[ModuleSpan] = Field(default_factory=list)


class SourceMapOptions(BaseModel):
    file: str = "bundle.js"
    spans: List[ModuleSpan] = Field(default_factory=list)
    # path -> original text, embedded as sourcesContent when present
    sources_content: Dict[str, str] = Field(default_factory=dict)
    source_root: Optional[str] = None


class MinifyResult(BaseModel):
    code: str
    map: Optional[Dict[str, Any]] = None


class BuildResult(BaseModel):
    """Outcome of a successful build, before anything is written."""

    code: str
    source_map: Optional[Dict[str, Any]] = None
    table: ModuleTable
