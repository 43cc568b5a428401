"""Registries held in the cache and the packs loaded from them."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from nomadpack.errors import ErrorContext
from nomadpack.loader import LoadError, Metadata, MetadataApp, MetadataPack, Pack, load
from nomadpack.logger import Logger
from nomadpack.options import GetOpts, ref_from_pack_entry

_NO_VALID_PACKS = "not parsable - registry contains no valid packs"


@dataclass
class CachedPack:
    """A loaded pack together with the ref it was cached at."""

    ref: str
    pack: Pack

    @property
    def metadata(self) -> Metadata | None:
        return self.pack.metadata

    @property
    def name(self) -> str:
        return self.pack.name


def invalid_pack_definition(opts) -> CachedPack:
    """Build a placeholder entry for a pack that could not be loaded."""
    return CachedPack(
        ref=opts.ref,
        pack=Pack(
            metadata=Metadata(
                app=MetadataApp(url="", author=""),
                pack=MetadataPack(
                    name=opts.pack_name,
                    description="",
                    url="",
                    version="Invalid pack definition",
                ),
            )
        ),
    )


@dataclass
class Registry:
    """A registry in the cache and its packs."""

    name: str = ""
    source: str = ""
    ref: str = ""
    packs: list[CachedPack] = field(default_factory=list)

    def add(self, pack: CachedPack) -> None:
        """Append a pack to the registry."""
        self.packs.append(pack)

    def load_packs(
        self,
        opts: GetOpts,
        logger: Logger,
        error_context: ErrorContext | None = None,
    ) -> None:
        """Load every targeted pack of the registry directory into ``packs``.

        Packs without metadata or that fail to load are recorded as invalid
        definitions. Raises OSError if the registry directory cannot be read.
        """
        context = error_context.get_all() if error_context is not None else []
        registry_path = opts.registry_path()

        with os.scandir(registry_path) as scanner:
            entries = sorted(scanner, key=lambda entry: entry.name)

        for entry in entries:
            if not opts.is_target(entry):
                continue

            metadata_path = os.path.join(registry_path, entry.name, "metadata.hcl")
            try:
                os.stat(metadata_path)
            except FileNotFoundError:
                logger.error_with_context(
                    Exception("error loading pack"),
                    f"no metadata.hcl found in pack {entry.name}",
                    *context,
                )
                self.add(
                    invalid_pack_definition(
                        GetOpts(
                            cache_path=opts.cache_path,
                            registry_name=opts.registry_name,
                            pack_name=entry.name,
                            ref=opts.ref,
                        )
                    )
                )
                continue
            except OSError as exc:
                logger.error_with_context(
                    exc, f"error checking metadata.hcl for pack {entry.name}", *context
                )
                continue

            try:
                loaded = load(opts.to_pack_dir(entry))
            except (LoadError, OSError, ValueError):
                logger.debug(f"failed to load pack {entry.name}")
                cached = invalid_pack_definition(
                    GetOpts(
                        cache_path=opts.cache_path,
                        registry_name=opts.registry_name,
                        pack_name=entry.name,
                        ref=ref_from_pack_entry(entry.name),
                    )
                )
            else:
                cached = CachedPack(ref=ref_from_pack_entry(entry.name), pack=loaded)

            self.add(cached)

        self.set_url_from_packs()

    def set_url_from_packs(self) -> None:
        """Derive the registry source from the first pack that declares a URL."""
        for cached in self.packs:
            metadata = cached.metadata
            if metadata is None or not metadata.pack.url:
                continue

            url = metadata.pack.url
            start = url.find("github.com")
            if start >= 0:
                url = url[start:]
            self.source = "/".join(url.split("/")[:3])
            return

        self.source = _NO_VALID_PACKS