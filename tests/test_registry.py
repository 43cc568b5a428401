import pytest

from nomadpack.errors import REGISTRY_CONTEXT_PREFIX_CACHE_PATH, ErrorContext
from nomadpack.loader import Metadata, MetadataPack, Pack
from nomadpack.logger import CallbackLogger
from nomadpack.options import GetOpts
from nomadpack.registry import CachedPack, Registry, invalid_pack_definition

REGISTRY_SOURCE = "github.com/hashicorp/nomad-pack-community-registry"
INVALID = "Invalid pack definition"
NO_VALID = "not parsable - registry contains no valid packs"

VALID_METADATA = """
app {
  url    = "https://example.com/app"
  author = "someone"
}

pack {
  name        = "alpha"
  description = "an example pack"
  url         = "https://github.com/hashicorp/nomad-pack-community-registry/alpha"
  version     = "0.0.1"
}
"""


@pytest.fixture
def cache_dir(tmp_path):
    reg = tmp_path / "reg"
    reg.mkdir()
    alpha = reg / "alpha@latest"
    alpha.mkdir()
    (alpha / "metadata.hcl").write_text(VALID_METADATA)
    (reg / "beta@latest").mkdir()
    gamma = reg / "gamma@latest"
    gamma.mkdir()
    (gamma / "metadata.hcl").write_text("%%% not hcl %%%")
    (reg / "delta@a74b4e1").mkdir()
    return tmp_path


def _pack_with_url(url):
    return CachedPack(ref="latest", pack=Pack(metadata=Metadata(pack=MetadataPack(name="p", url=url))))


def test_invalid_pack_definition():
    cached = invalid_pack_definition(GetOpts(pack_name="traefik", ref="a74b4e1"))
    assert cached.ref == "a74b4e1"
    assert cached.name == "traefik"
    assert cached.metadata.pack.version == INVALID
    assert cached.metadata.pack.url == ""


def test_load_packs_collects_valid_and_invalid(cache_dir):
    lines = []
    registry = Registry(name="reg")
    opts = GetOpts(cache_path=str(cache_dir), registry_name="reg", ref="latest")
    registry.load_packs(opts, CallbackLogger(lines.append), ErrorContext())

    names = [cached.name for cached in registry.packs]
    assert names == ["alpha", "beta@latest", "gamma@latest"]

    alpha, beta, gamma = registry.packs
    assert alpha.ref == "latest"
    assert alpha.metadata.pack.version == "0.0.1"
    assert beta.metadata.pack.version == INVALID
    assert beta.ref == "latest"
    assert gamma.metadata.pack.version == INVALID
    assert gamma.ref == "latest"

    assert registry.source == REGISTRY_SOURCE
    assert "no metadata.hcl found in pack beta@latest" in lines
    assert "failed to load pack gamma@latest" in lines


def test_load_packs_logs_error_context(cache_dir):
    lines = []
    context = ErrorContext()
    context.add(REGISTRY_CONTEXT_PREFIX_CACHE_PATH, str(cache_dir))
    opts = GetOpts(cache_path=str(cache_dir), registry_name="reg", pack_name="beta", ref="latest")
    registry = Registry(name="reg")
    registry.load_packs(opts, CallbackLogger(lines.append), context)
    assert len(registry.packs) == 1
    assert REGISTRY_CONTEXT_PREFIX_CACHE_PATH + str(cache_dir) in lines
    assert registry.source == NO_VALID


def test_load_packs_single_target(cache_dir):
    opts = GetOpts(cache_path=str(cache_dir), registry_name="reg", pack_name="alpha", ref="latest")
    registry = Registry(name="reg")
    registry.load_packs(opts, CallbackLogger(lambda line: None))
    assert [cached.name for cached in registry.packs] == ["alpha"]


def test_load_packs_missing_registry(tmp_path):
    opts = GetOpts(cache_path=str(tmp_path), registry_name="absent")
    with pytest.raises(FileNotFoundError):
        Registry(name="absent").load_packs(opts, CallbackLogger(lambda line: None))


def test_set_url_without_packs():
    registry = Registry(name="reg")
    registry.set_url_from_packs()
    assert registry.source == NO_VALID


def test_set_url_skips_packs_without_url():
    registry = Registry(packs=[_pack_with_url(""), _pack_with_url("https://" + REGISTRY_SOURCE + "/traefik")])
    registry.set_url_from_packs()
    assert registry.source == REGISTRY_SOURCE


def test_set_url_short_url_kept():
    registry = Registry(packs=[_pack_with_url("https://github.com/hashicorp")])
    registry.set_url_from_packs()
    assert registry.source == "github.com/hashicorp"


def test_add_appends():
    registry = Registry()
    first = _pack_with_url("")
    second = invalid_pack_definition(GetOpts(pack_name="x"))
    registry.add(first)
    registry.add(second)
    assert registry.packs == [first, second]