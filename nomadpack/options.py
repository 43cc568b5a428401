"""Option objects describing cache operations, plus pack path helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

NOMAD_CACHE = os.path.join(".nomad", "packs")
DEFAULT_REGISTRY_NAME = "default"
DEFAULT_REGISTRY_SOURCE = "github.com/hashicorp/nomad-pack-community-registry"
DEFAULT_REF = "latest"
DEV_REGISTRY_NAME = "dev"
DEV_REF = "dev"
TMP_DIR = "nomad-pack-tmp"


def _join(*parts: str) -> str:
    """Join non-empty path parts and clean the result; empty if all are empty."""
    kept = [os.fspath(part) for part in parts if part]
    if not kept:
        return ""
    return os.path.normpath(os.path.join(*kept))


def append_ref(name: str, ref: str) -> str:
    """Format a pack name at a specific ref."""
    if ref in ("", DEV_REF):
        return name
    return f"{name}@{ref}"


def default_cache_path() -> str:
    """Return the default location of the pack cache."""
    try:
        home = str(Path.home())
    except RuntimeError:
        home = "~"
    return os.path.join(home, NOMAD_CACHE)


def ref_from_pack_entry(name: str) -> str:
    """Return the ref encoded in a cached pack directory name, or ``unknown``."""
    segments = name.split("@")
    if len(segments) == 2:
        return segments[1]
    return "unknown"


def _is_latest(ref: str) -> bool:
    return ref in ("", "latest")


def _pack_dir(pack_name: str, ref: str) -> str:
    if ref:
        return append_ref(pack_name, ref)
    return pack_name


@dataclass
class AddOpts:
    """Arguments for adding a registry or pack to the cache."""

    registry_name: str = ""
    source: str = ""
    pack_name: str = ""
    ref: str = ""
    username: str = ""
    password: str = ""
    cache_path: str = ""

    def registry_path(self) -> str:
        return _join(self.cache_path, self.registry_name)

    def pack_path(self) -> str:
        return _join(self.cache_path, self.registry_name, self.pack_dir())

    def pack_dir(self) -> str:
        return _pack_dir(self.pack_name, self.ref)

    def is_latest(self) -> bool:
        return _is_latest(self.ref)

    def is_target(self, entry: os.DirEntry) -> bool:
        """Directories other than ``.git`` matching the pack name, if one is set."""
        if not entry.is_dir(follow_symlinks=False) or entry.name == ".git":
            return False
        if not self.pack_name:
            return True
        return entry.name == self.pack_name

    def cloned_pack_path(self, cloned_packs_path: str) -> str:
        """Location of this pack within a freshly cloned registry."""
        return _join(cloned_packs_path, self.pack_name)


@dataclass
class GetOpts:
    """Arguments for getting a registry or pack from the cache."""

    registry_name: str = ""
    pack_name: str = ""
    ref: str = ""
    cache_path: str = ""

    def registry_path(self) -> str:
        return _join(self.cache_path, self.registry_name)

    def pack_path(self) -> str:
        return _join(self.cache_path, self.registry_name, self.pack_dir())

    def pack_dir(self) -> str:
        return _pack_dir(self.pack_name, self.ref)

    def is_latest(self) -> bool:
        return _is_latest(self.ref)

    def is_target(self, entry: os.DirEntry) -> bool:
        """Everything at the ref when no pack is named, else the exact pack dir."""
        if not self.pack_name and self.ref in entry.name:
            return True
        return entry.name == self.pack_dir()

    def to_pack_dir(self, entry: os.DirEntry) -> str:
        """Full path of a targeted entry within the registry."""
        return _join(self.registry_path(), entry.name)


@dataclass
class DeleteOpts:
    """Arguments for deleting a registry or pack from the cache."""

    registry_name: str = ""
    pack_name: str = ""
    ref: str = ""
    cache_path: str = ""

    def registry_path(self) -> str:
        return _join(self.cache_path, self.registry_name)

    def pack_path(self) -> str:
        pack_path = _join(self.cache_path, self.registry_name)
        if self.ref:
            pack_path = _join(pack_path, self.pack_dir())
        return pack_path

    def pack_dir(self) -> str:
        return _pack_dir(self.pack_name, self.ref)

    def is_latest(self) -> bool:
        return _is_latest(self.ref)

    def is_target(self, entry: os.DirEntry) -> bool:
        """Entries carrying the ref when no pack is named, else the exact pack dir."""
        if not self.pack_name:
            return append_ref("", self.ref) in entry.name
        return entry.name == self.pack_dir()


@dataclass
class PackConfig:
    """Common configuration identifying a pack to work with."""

    registry: str = ""
    name: str = ""
    ref: str = ""
    path: str = ""
    source_path: str = ""

    def init(self) -> None:
        """Fill in defaults, resolving the pack from a directory if one exists."""
        if not self.registry:
            self.registry = DEFAULT_REGISTRY_NAME
        if not self.ref:
            self.ref = DEFAULT_REF

        pack_path = os.path.abspath(self.name)
        if os.path.exists(pack_path):
            self._init_from_directory(pack_path)
        else:
            self._init_from_args()

    def _init_from_directory(self, pack_path: str) -> None:
        self.source_path = self.name
        self.path = pack_path
        self.name = os.path.basename(pack_path)
        self.registry = DEV_REGISTRY_NAME
        self.ref = DEV_REF

    def _init_from_args(self) -> None:
        self.path = _join(default_cache_path(), self.registry, self.name)
        if self.ref:
            self.path = append_ref(self.path, self.ref)