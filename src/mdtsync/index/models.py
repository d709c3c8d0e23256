"""Typed models for project scan state."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from mdtsync.diagnostics import ProjectDiagnostic
from mdtsync.parsing.models import Block, Span, Transformer


@dataclass(slots=True, frozen=True)
class FileFingerprint:
    """Cheap change detector for one file; ``content_hash`` only when verifying."""

    size: int
    mtime_ns: int
    content_hash: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {"size": self.size, "mtime_ns": self.mtime_ns, "content_hash": self.content_hash}

    @classmethod
    def from_dict(cls, payload: object) -> FileFingerprint | None:
        if not isinstance(payload, dict):
            return None
        size = payload.get("size")
        mtime_ns = payload.get("mtime_ns")
        content_hash = payload.get("content_hash")
        if not isinstance(size, int) or not isinstance(mtime_ns, int):
            return None
        if content_hash is not None and not isinstance(content_hash, str):
            return None
        return cls(size=size, mtime_ns=mtime_ns, content_hash=content_hash)


@dataclass(slots=True, frozen=True)
class DiscoveredFile:
    """A file selected for scanning."""

    relative_path: str
    full_path: Path
    fingerprint: FileFingerprint
    is_template: bool


@dataclass(slots=True, frozen=True)
class ProviderEntry:
    """A provider block with its source text."""

    name: str
    file: str
    content: str
    block: Block

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "file": self.file,
            "content": self.content,
            "block": self.block.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: object) -> ProviderEntry | None:
        if not isinstance(payload, dict):
            return None
        name = payload.get("name")
        file = payload.get("file")
        content = payload.get("content")
        block = Block.from_dict(payload.get("block"))
        if not isinstance(name, str) or not isinstance(file, str):
            return None
        if not isinstance(content, str) or block is None:
            return None
        return cls(name=name, file=file, content=content, block=block)


@dataclass(slots=True, frozen=True)
class ConsumerEntry:
    """One site that needs synchronization with a provider."""

    name: str
    file: str
    transformers: tuple[Transformer, ...]
    content_span: Span
    current_content: str
    block: Block

    @property
    def line(self) -> int:
        return self.block.line

    @property
    def column(self) -> int:
        return self.block.column

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "file": self.file,
            "current_content": self.current_content,
            "block": self.block.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: object) -> ConsumerEntry | None:
        if not isinstance(payload, dict):
            return None
        name = payload.get("name")
        file = payload.get("file")
        current_content = payload.get("current_content")
        block = Block.from_dict(payload.get("block"))
        if not isinstance(name, str) or not isinstance(file, str):
            return None
        if not isinstance(current_content, str) or block is None:
            return None
        return cls(
            name=name,
            file=file,
            transformers=block.transformers,
            content_span=block.content_span,
            current_content=current_content,
            block=block,
        )


@dataclass(slots=True, frozen=True)
class FileScanResult:
    """Everything one file contributes to a project."""

    path: str
    providers: tuple[ProviderEntry, ...] = ()
    consumers: tuple[ConsumerEntry, ...] = ()
    diagnostics: tuple[ProjectDiagnostic, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "providers": [entry.to_dict() for entry in self.providers],
            "consumers": [entry.to_dict() for entry in self.consumers],
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
        }

    @classmethod
    def from_dict(cls, payload: object) -> FileScanResult | None:
        """Rebuild a cached result; any malformed entry invalidates the whole file."""
        if not isinstance(payload, dict):
            return None
        path = payload.get("path")
        raw_providers = payload.get("providers")
        raw_consumers = payload.get("consumers")
        raw_diagnostics = payload.get("diagnostics")
        if not isinstance(path, str):
            return None
        if not isinstance(raw_providers, list) or not isinstance(raw_consumers, list):
            return None
        if not isinstance(raw_diagnostics, list):
            return None
        providers = [ProviderEntry.from_dict(item) for item in raw_providers]
        consumers = [ConsumerEntry.from_dict(item) for item in raw_consumers]
        diagnostics = [
            ProjectDiagnostic.from_dict(item) if isinstance(item, dict) else None
            for item in raw_diagnostics
        ]
        if any(item is None for item in [*providers, *consumers, *diagnostics]):
            return None
        return cls(
            path=path,
            providers=tuple(item for item in providers if item is not None),
            consumers=tuple(item for item in consumers if item is not None),
            diagnostics=tuple(item for item in diagnostics if item is not None),
        )


@dataclass(slots=True)
class Project:
    """All providers, consumers, and diagnostics found in one scan."""

    root: Path
    providers: dict[str, ProviderEntry] = field(default_factory=dict)
    consumers: list[ConsumerEntry] = field(default_factory=list)
    diagnostics: list[ProjectDiagnostic] = field(default_factory=list)
    files: tuple[str, ...] = ()

    def to_public_dict(self) -> dict[str, object]:
        """Return a JSON-ready listing of blocks without their contents."""
        consumer_counts: dict[str, int] = {}
        for consumer in self.consumers:
            consumer_counts[consumer.name] = consumer_counts.get(consumer.name, 0) + 1
        return {
            "root": str(self.root),
            "file_count": len(self.files),
            "providers": [
                {
                    "name": name,
                    "file": self.providers[name].file,
                    "line": self.providers[name].block.line,
                    "column": self.providers[name].block.column,
                    "consumer_count": consumer_counts.get(name, 0),
                }
                for name in sorted(self.providers)
            ],
            "consumers": [
                {
                    "name": consumer.name,
                    "file": consumer.file,
                    "line": consumer.line,
                    "column": consumer.column,
                    "transformers": [transformer.name for transformer in consumer.transformers],
                    "linked": consumer.name in self.providers,
                }
                for consumer in self.consumers
            ],
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
        }
