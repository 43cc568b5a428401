import os

import pytest

from nomadpack.options import (
    DEFAULT_REF,
    DEFAULT_REGISTRY_NAME,
    DEV_REF,
    DEV_REGISTRY_NAME,
    AddOpts,
    DeleteOpts,
    GetOpts,
    PackConfig,
    append_ref,
    default_cache_path,
    ref_from_pack_entry,
)


def _entries(directory):
    with os.scandir(directory) as scanner:
        return {entry.name: entry for entry in scanner}


@pytest.fixture
def registry_dir(tmp_path):
    reg = tmp_path / "reg"
    reg.mkdir()
    for name in ("traefik@latest", "traefik@a74b4e1", "redis@latest", ".git"):
        (reg / name).mkdir()
    (reg / "README.md").write_text("readme")
    return reg


def test_append_ref_formats_name_and_ref():
    assert append_ref("traefik", "a74b4e1") == "traefik@a74b4e1"


@pytest.mark.parametrize("ref", ["", DEV_REF])
def test_append_ref_leaves_name_for_empty_or_dev(ref):
    assert append_ref("traefik", ref) == "traefik"


@pytest.mark.parametrize(
    "name, expected",
    [("traefik@latest", "latest"), ("traefik", "unknown"), ("a@b@c", "unknown")],
)
def test_ref_from_pack_entry(name, expected):
    assert ref_from_pack_entry(name) == expected


def test_ref_round_trip():
    assert ref_from_pack_entry(append_ref("traefik", "a74b4e1")) == "a74b4e1"


def test_default_cache_path_under_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    assert default_cache_path() == os.path.join(str(tmp_path), ".nomad", "packs")


@pytest.mark.parametrize("cls", [AddOpts, GetOpts, DeleteOpts])
@pytest.mark.parametrize("ref, latest", [("", True), ("latest", True), ("a74b4e1", False)])
def test_is_latest(cls, ref, latest):
    assert cls(ref=ref).is_latest() is latest


def test_add_opts_paths(tmp_path):
    opts = AddOpts(cache_path=str(tmp_path), registry_name="reg", pack_name="traefik", ref="a74b4e1")
    assert opts.registry_path() == os.path.join(str(tmp_path), "reg")
    assert opts.pack_dir() == append_ref("traefik", "a74b4e1")
    assert opts.pack_path() == os.path.join(str(tmp_path), "reg", opts.pack_dir())


def test_add_opts_pack_dir_without_ref():
    assert AddOpts(pack_name="traefik").pack_dir() == "traefik"


def test_add_opts_cloned_pack_path(tmp_path):
    opts = AddOpts(pack_name="traefik", ref="a74b4e1")
    assert opts.cloned_pack_path(str(tmp_path)) == os.path.join(str(tmp_path), "traefik")


def test_add_opts_is_target_all_directories(registry_dir):
    opts = AddOpts()
    targets = {name for name, entry in _entries(registry_dir).items() if opts.is_target(entry)}
    assert targets == {"traefik@latest", "traefik@a74b4e1", "redis@latest"}


def test_add_opts_is_target_by_pack_name(tmp_path):
    (tmp_path / "traefik").mkdir()
    (tmp_path / "redis").mkdir()
    opts = AddOpts(pack_name="traefik")
    targets = {name for name, entry in _entries(tmp_path).items() if opts.is_target(entry)}
    assert targets == {"traefik"}


def test_get_opts_is_target_by_ref(registry_dir):
    opts = GetOpts(ref="latest")
    targets = {name for name, entry in _entries(registry_dir).items() if opts.is_target(entry)}
    assert targets == {"traefik@latest", "redis@latest"}


def test_get_opts_is_target_by_pack_name(registry_dir):
    opts = GetOpts(pack_name="traefik", ref="a74b4e1")
    targets = {name for name, entry in _entries(registry_dir).items() if opts.is_target(entry)}
    assert targets == {"traefik@a74b4e1"}


def test_get_opts_to_pack_dir(registry_dir):
    opts = GetOpts(cache_path=str(registry_dir.parent), registry_name="reg")
    entry = _entries(registry_dir)["redis@latest"]
    assert opts.to_pack_dir(entry) == os.path.join(str(registry_dir), "redis@latest")


def test_delete_opts_pack_path(tmp_path):
    without_ref = DeleteOpts(cache_path=str(tmp_path), registry_name="reg", pack_name="traefik")
    assert without_ref.pack_path() == without_ref.registry_path()
    with_ref = DeleteOpts(cache_path=str(tmp_path), registry_name="reg", pack_name="traefik", ref="a74b4e1")
    assert with_ref.pack_path() == os.path.join(with_ref.registry_path(), "traefik@a74b4e1")


def test_delete_opts_is_target_by_ref(registry_dir):
    opts = DeleteOpts(ref="a74b4e1")
    targets = {name for name, entry in _entries(registry_dir).items() if opts.is_target(entry)}
    assert targets == {"traefik@a74b4e1"}


def test_delete_opts_is_target_by_pack_name(registry_dir):
    opts = DeleteOpts(pack_name="traefik", ref="latest")
    targets = {name for name, entry in _entries(registry_dir).items() if opts.is_target(entry)}
    assert targets == {"traefik@latest"}


def test_pack_config_from_directory(tmp_path, monkeypatch):
    (tmp_path / "mypack").mkdir()
    monkeypatch.chdir(tmp_path)
    cfg = PackConfig(name="mypack")
    cfg.init()
    assert cfg.source_path == "mypack"
    assert cfg.path == os.path.join(str(tmp_path.resolve()), "mypack") or cfg.path == os.path.abspath("mypack")
    assert cfg.name == "mypack"
    assert cfg.registry == DEV_REGISTRY_NAME
    assert cfg.ref == DEV_REF


def test_pack_config_from_args(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.chdir(tmp_path)
    cfg = PackConfig(name="traefik")
    cfg.init()
    assert cfg.registry == DEFAULT_REGISTRY_NAME
    assert cfg.ref == DEFAULT_REF
    expected = append_ref(os.path.join(default_cache_path(), DEFAULT_REGISTRY_NAME, "traefik"), DEFAULT_REF)
    assert cfg.path == expected
    assert cfg.source_path == ""