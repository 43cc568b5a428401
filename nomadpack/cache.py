"""The global cache of registries and the packs they hold."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone

from nomadpack.errors import (
    REGISTRY_CONTEXT_PREFIX_CACHE_PATH,
    REGISTRY_CONTEXT_PREFIX_PACK_NAME,
    REGISTRY_CONTEXT_PREFIX_REF,
    REGISTRY_CONTEXT_PREFIX_REGISTRY_NAME,
    REGISTRY_CONTEXT_PREFIX_REGISTRY_SOURCE,
    CacheError,
    CachePathRequiredError,
    ErrorContext,
    PackNotFoundError,
    RegistrySourceRequiredError,
    UIErrorContext,
)
from nomadpack.filesystem import copy_dir, copy_file
from nomadpack.logger import Logger, default
from nomadpack.options import (
    DEFAULT_REF,
    DEFAULT_REGISTRY_NAME,
    TMP_DIR,
    AddOpts,
    DeleteOpts,
    GetOpts,
    PackConfig,
    default_cache_path,
)
from nomadpack.registry import CachedPack, Registry
from nomadpack.version import git_sha


@dataclass
class CacheConfig:
    """Configuration of a cache instance."""

    path: str = field(default_factory=default_cache_path)
    eager: bool = False
    logger: Logger = field(default_factory=default)


def _resolve_git_source(source: str) -> str:
    """Turn a registry source into something git can clone."""
    if os.path.isdir(source):
        return os.path.abspath(source)
    if source.startswith("github.com/"):
        url = f"https://{source}"
        return url if url.endswith(".git") else f"{url}.git"
    return source


def _run_git(args: list[str], cwd: str | None = None) -> None:
    git = shutil.which("git")
    if git is None:
        raise FileNotFoundError("executable file not found in $PATH: git")
    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    try:
        subprocess.run(
            [git, *args], cwd=cwd, env=env, capture_output=True, text=True, check=True
        )
    except subprocess.CalledProcessError as exc:
        raise CacheError(f"git {args[0]} failed: {exc.stderr.strip()}") from exc


def _git_clone(repo: str, destination: str, ref: str | None) -> None:
    _run_git(["clone", "--quiet", "--", repo, destination])
    if ref:
        _run_git(["checkout", "--quiet", ref], cwd=destination)


def _remove_path(path: str) -> None:
    """Remove a file or directory tree; a missing path is not an error."""
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)


class Cache:
    """A cache of registries stored below a directory."""

    def __init__(self, cfg: CacheConfig | None = None) -> None:
        self.cfg = cfg if cfg is not None else CacheConfig()
        self.error_context = ErrorContext()
        self._registries: list[Registry] = []

        self.error_context.add(REGISTRY_CONTEXT_PREFIX_CACHE_PATH, self.cfg.path)

        if not self.cfg.path:
            raise CachePathRequiredError()
        os.makedirs(self.cfg.path, exist_ok=True)

        if self.cfg.eager:
            self.load()

    @property
    def _logger(self) -> Logger:
        return self.cfg.logger

    @property
    def _clone_path(self) -> str:
        return os.path.join(self.cfg.path, TMP_DIR)

    @property
    def _cloned_packs_path(self) -> str:
        return os.path.join(self.cfg.path, TMP_DIR, "packs")

    def _log_error(self, err: BaseException, message: str) -> None:
        self._logger.error_with_context(err, message, *self.error_context.get_all())

    def load(self) -> None:
        """Load every registry directory of the cache path."""
        self.error_context.add(REGISTRY_CONTEXT_PREFIX_CACHE_PATH, self.cfg.path)

        if not self.cfg.path:
            raise CachePathRequiredError()

        with os.scandir(self.cfg.path) as scanner:
            entries = sorted(scanner, key=lambda entry: entry.name)

        opts = GetOpts(cache_path=self.cfg.path)
        for entry in entries:
            if entry.name == ".git" or not entry.is_dir():
                continue
            opts.registry_name = entry.name
            self._registries.append(self.get(opts))

    def registries(self) -> list[Registry]:
        """Return the cached registries, loading them on first use."""
        if not self._registries:
            try:
                self.load()
            except (OSError, CacheError) as exc:
                self._log_error(exc, "error loading Registries")
        return self._registries

    def packs(self) -> list[CachedPack]:
        """Return the packs of every cached registry."""
        return [pack for registry in self.registries() for pack in registry.packs]

    def add(self, opts: AddOpts) -> Registry:
        """Add a registry, or one pack of it, to the cache and return it."""
        if not self.cfg.path:
            raise CachePathRequiredError()

        opts.cache_path = self.cfg.path
        if not opts.registry_name:
            opts.registry_name = DEFAULT_REGISTRY_NAME

        self.error_context.add(REGISTRY_CONTEXT_PREFIX_CACHE_PATH, self.cfg.path)
        self.error_context.add(REGISTRY_CONTEXT_PREFIX_REGISTRY_SOURCE, opts.source)
        self.error_context.add(REGISTRY_CONTEXT_PREFIX_REGISTRY_NAME, opts.registry_name)
        self.error_context.add(REGISTRY_CONTEXT_PREFIX_REF, opts.ref)
        self.error_context.add(REGISTRY_CONTEXT_PREFIX_PACK_NAME, opts.pack_name)

        if not opts.source:
            raise RegistrySourceRequiredError()

        return self._add_from_uri(opts)

    def _add_from_uri(self, opts: AddOpts) -> Registry:
        if not opts.ref:
            opts.ref = DEFAULT_REF

        self._clone_remote_git_registry(opts)

        try:
            self._logger.debug(f"Processing pack entries at {self._clone_path}")
            for entry in self._cloned_pack_entries():
                if not opts.is_target(entry):
                    continue
                self._logger.debug(f"found pack entry {entry.name}")

                pack_opts = AddOpts(
                    cache_path=opts.cache_path,
                    registry_name=opts.registry_name,
                    pack_name=entry.name,
                    ref=opts.ref,
                )
                try:
                    self._process_pack_entry(pack_opts, entry)
                except (OSError, CacheError) as exc:
                    self._log_error(exc, "error processing pack entry")
                    raise

            try:
                return self.get(
                    GetOpts(
                        registry_name=opts.registry_name,
                        pack_name=opts.pack_name,
                        ref=opts.ref,
                    )
                )
            except OSError as exc:
                self._log_error(exc, "error getting registry after add")
                raise
        finally:
            try:
                shutil.rmtree(self._clone_path)
            except OSError as exc:
                self._logger.debug(
                    f"add completed with errors - {self._clone_path} "
                    f"directory not deleted: {exc}"
                )
            self._logger.info("temp directory deleted")

    def _cloned_pack_entries(self) -> list[os.DirEntry]:
        try:
            with os.scandir(self._cloned_packs_path) as scanner:
                return sorted(scanner, key=lambda entry: entry.name)
        except OSError as exc:
            self._logger.debug(f"error reading cloned packs: {exc}")
            return []

    def _clone_remote_git_registry(self, opts: AddOpts) -> None:
        repo = _resolve_git_source(opts.source)
        ref = None if opts.is_latest() else opts.ref

        description = repo
        if opts.pack_name:
            description = f"{repo}//packs/{opts.pack_name}"
        if ref:
            description = f"{description}?ref={ref}"
        self._logger.debug(f"git URL is {description}")

        clone_path = self._clone_path
        try:
            if os.path.lexists(clone_path):
                _remove_path(clone_path)
            if opts.pack_name:
                with tempfile.TemporaryDirectory(ignore_cleanup_errors=True) as staging:
                    checkout = os.path.join(staging, "repo")
                    _git_clone(repo, checkout, ref)
                    subdir = os.path.join(checkout, "packs", opts.pack_name)
                    if not os.path.isdir(subdir):
                        raise PackNotFoundError(
                            f"pack not found: subdirectory packs/{opts.pack_name} "
                            "does not exist in registry"
                        )
                    shutil.copytree(
                        subdir,
                        os.path.join(clone_path, "packs", opts.pack_name),
                        symlinks=True,
                    )
            else:
                _git_clone(repo, clone_path, ref)
        except (OSError, CacheError) as exc:
            self._log_error(exc, "could not install registry")
            raise

        self._logger.debug(f"Registry successfully cloned at {clone_path}")

    def _process_pack_entry(self, opts: AddOpts, entry: os.DirEntry) -> None:
        self._logger.debug(f"Processing pack {entry.name}@{opts.ref}")
        pack_path = opts.pack_path()

        try:
            os.stat(pack_path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            self._log_error(exc, "error checking pack directory")
            raise
        else:
            if not opts.is_latest():
                self._logger.debug("Pack already exists at specified ref - skipping")
                return

        self._logger.debug("Updating pack")

        if opts.is_latest():
            self._remove_previous_latest(opts)

        self._logger.debug(f"Writing pack to {pack_path}")
        cloned = opts.cloned_pack_path(self._cloned_packs_path)
        try:
            copy_dir(cloned, pack_path, self._logger)
        except OSError as exc:
            self._logger.error_with_context(
                exc, f"error copying cloned pack {cloned} to {pack_path}"
            )
            raise

        self._log_latest(opts)

    def _remove_previous_latest(self, opts: AddOpts) -> None:
        self._logger.debug("Removing previous latest")
        self._backup_latest_log_file(opts)
        try:
            _remove_path(opts.pack_path())
        except OSError as exc:
            self._log_error(exc, "error removing previous latest directory")
            raise

    def _backup_latest_log_file(self, opts: AddOpts) -> None:
        log_path = os.path.join(opts.registry_path(), "latest.log")
        try:
            os.stat(log_path)
        except FileNotFoundError:
            return
        except OSError as exc:
            self._log_error(exc, "error checking latest log file")
            raise
        try:
            copy_file(
                log_path,
                os.path.join(self._clone_path, opts.pack_dir(), "latest.log"),
                self._logger,
            )
        except OSError as exc:
            self._log_error(exc, "error backing up latest log")
            raise

    def _log_latest(self, opts: AddOpts) -> None:
        """Append the downloaded SHA to the pack's latest.log."""
        if not opts.is_latest():
            return

        try:
            handle = open(os.path.join(opts.pack_path(), "latest.log"), "a")
        except OSError as exc:
            self._log_error(exc, "error open latest log file")
            raise

        with handle:
            self._logger.debug("Calculating SHA for latest")
            try:
                sha = git_sha(self._clone_path)
            except (OSError, subprocess.CalledProcessError):
                self._logger.debug("error calculating SHA")
                return
            now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f +0000 UTC")
            try:
                handle.write(f"SHA {sha} downloaded at UTC {now}\n")
            except OSError as exc:
                self._log_error(exc, "error appending to latest.log")
                raise

    def get(self, opts: GetOpts) -> Registry:
        """Load a registry and its targeted packs from the cache."""
        opts.cache_path = self.cfg.path

        self.error_context.add(REGISTRY_CONTEXT_PREFIX_REGISTRY_NAME, opts.registry_name)
        self.error_context.add(REGISTRY_CONTEXT_PREFIX_REF, opts.ref)
        if opts.pack_name:
            self.error_context.add(REGISTRY_CONTEXT_PREFIX_PACK_NAME, opts.pack_name)

        if not opts.registry_name:
            opts.registry_name = DEFAULT_REGISTRY_NAME

        registry = Registry(name=opts.registry_name)
        try:
            registry.load_packs(opts, self._logger, self.error_context)
        except OSError as exc:
            self._log_error(exc, "error getting registry packs")
            raise
        return registry

    def delete(self, opts: DeleteOpts) -> None:
        """Delete a registry, or the packs of it matching a name and/or ref.

        When no packs are left afterwards the registry directory is removed.
        """
        opts.cache_path = self.cfg.path
        if not opts.cache_path:
            raise CachePathRequiredError()

        if not opts.registry_name:
            opts.registry_name = DEFAULT_REGISTRY_NAME

        self.error_context.add(REGISTRY_CONTEXT_PREFIX_CACHE_PATH, opts.cache_path)
        self.error_context.add(REGISTRY_CONTEXT_PREFIX_REGISTRY_NAME, opts.registry_name)
        self.error_context.add(REGISTRY_CONTEXT_PREFIX_PACK_NAME, opts.pack_name)
        self.error_context.add(REGISTRY_CONTEXT_PREFIX_REF, opts.ref)

        registry_path = opts.registry_path()

        if not opts.pack_name and not opts.ref:
            try:
                _remove_path(registry_path)
            except OSError as exc:
                self._log_error(exc, "error deleting full registry")
                raise
            return

        try:
            with os.scandir(registry_path) as scanner:
                entries = sorted(scanner, key=lambda entry: entry.name)
        except OSError as exc:
            self._log_error(exc, "error deleting cached registry")
            raise

        deleted = 0
        for entry in entries:
            if not opts.is_target(entry):
                continue
            try:
                _remove_path(os.path.join(registry_path, entry.name))
            except OSError as exc:
                self._log_error(exc, "error deleting pack")
                raise
            self._logger.debug(f"deleted pack {entry.name}")
            deleted += 1

        if deleted == 0:
            error = CacheError("error deleting packs")
            self._log_error(error, "no packs found matching arguments")
            raise error

        try:
            remaining = os.listdir(registry_path)
        except OSError as exc:
            self._log_error(exc, "error reading cached registry")
            raise

        if not remaining:
            try:
                _remove_path(registry_path)
            except OSError as exc:
                self._log_error(exc, "error deleting empty registry")
                raise


def verify_pack_exists(
    cfg: PackConfig, err_ctx: UIErrorContext, logger: Logger
) -> None:
    """Raise FileNotFoundError if the pack path of ``cfg`` does not exist."""
    if not os.path.exists(cfg.path):
        error = FileNotFoundError(f"no such file or directory: {cfg.path}")
        logger.error_with_context(error, "failed to find pack", *err_ctx.get_all())
        raise error