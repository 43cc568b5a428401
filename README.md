# nomadpack

A library for working with Nomad job packs on the local machine:

- `nomadpack.cache`: a cache of pack registries, cloned with `git` and kept
  by default under `~/.nomad/packs`;
- `nomadpack.loader`: reads a pack directory (`metadata.hcl`,
  `variables.hcl`, `outputs.tpl`, `templates/`) into a `Pack`;
- `nomadpack.errors`: exception types and error contexts for readable
  failure reports;
- `nomadpack.spinner` and `nomadpack.charsets`: a small terminal spinner
  and its character sets;
- `nomadpack.filesystem`, `nomadpack.logger`, `nomadpack.options`,
  `nomadpack.registry` and `nomadpack.version`: supporting helpers.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Working with the cache

```python
from nomadpack.cache import Cache, CacheConfig
from nomadpack.logger import default
from nomadpack.options import AddOpts, DeleteOpts, GetOpts

cache = Cache(CacheConfig(path="/tmp/packs", logger=default()))

registry = cache.add(AddOpts(
    registry_name="community",
    source="github.com/hashicorp/nomad-pack-community-registry",
))
print(registry.source)
for pack in registry.packs:
    print(pack.name, pack.ref)

cache.get(GetOpts(registry_name="community", pack_name="traefik", ref="latest"))
cache.delete(DeleteOpts(registry_name="community", pack_name="traefik", ref="latest"))
```

How the cache behaves:

- `Cache(cfg)` creates the cache directory; an empty path raises
  `CachePathRequiredError`. With `CacheConfig(eager=True)` every registry is
  loaded straight away.
- `Cache.add` clones the source with the `git` command, so `git` must be on
  your `PATH`. A source may be a local directory, a `github.com/...` path
  (cloned over HTTPS) or any URL git accepts. The registry must keep its
  packs in a `packs/` directory. Set `pack_name` to add a single pack and
  `ref` to check out a particular revision. Each pack is stored as
  `<registry>/<pack>@<ref>`; with no ref the ref is `latest`, which is
  replaced on every add and records the downloaded commit in `latest.log`.
  A missing source raises `RegistrySourceRequiredError`.
- `Cache.get` loads a registry and its packs. A pack without a
  `metadata.hcl`, or one that fails to load, appears with the version
  `Invalid pack definition`. The registry's `source` is taken from the first
  pack whose metadata carries a URL.
- `Cache.delete` removes the whole registry when neither `pack_name` nor
  `ref` is given; otherwise it removes the matching packs, raises
  `CacheError` if nothing matched, and removes the registry directory once it
  is empty.
- `Cache.registries()` and `Cache.packs()` list what is in the cache.

`nomadpack.cache.verify_pack_exists` raises `FileNotFoundError` when the path
of a `PackConfig` does not exist. `PackConfig.init()` fills in the registry
and ref defaults, or, when `name` is an existing directory, treats it as a
local pack in the `dev` registry.

## Loading a pack

```python
from nomadpack.loader import load

pack = load("./my-pack")
print(pack.metadata.pack.name)
print([f.name for f in pack.template_files])
```

`metadata.hcl` may hold an `app` block (`url`, `author`), a `pack` block
(`name`, `description`, `url`, `version`) and `dependency "<name>"` blocks
(`name`, `source`, `enabled`). Files under `templates/` ending in
`.nomad.tpl`, and helper files whose path contains `templates/_`, become
template files. Problems raise `LoadError`.

## Errors

`nomadpack.errors` defines `CacheError` and its subclasses, error contexts
(`ErrorContext`, `UIErrorContext`) that collect `prefix + value` lines, and
`WrappedUIContext`, an exception holding an underlying error, a short subject
and a context. `hcl_diags_to_wrapped_ui_context` turns `Diagnostic` objects
into wrapped errors.

## Logging

The cache and copy helpers log through a `nomadpack.logger.Logger`.
`FmtLogger` (returned by `default()`) prints to standard output;
`CallbackLogger(log)` passes every line to a function you supply.

## Spinner

```python
import time
from nomadpack.charsets import char_set
from nomadpack.spinner import Spinner

with Spinner(char_set(14), 0.1, suffix=" working", color="cyan"):
    time.sleep(1)
```

`set_color` accepts the names of the standard colours and attributes
(`red`, `bold`, `fgHiBlue`, `bgGreen`, ...) and raises `InvalidColorError`
for anything else. `generate_number_sequence(n)` gives the frames
`"0"` to `str(n - 1)`.

## Version

`nomadpack.version.human_version()` formats the version for display
(`v0.0.1-alpha` by default) and `git_sha(path)` returns the short commit of a
git checkout.

## What this package does not do

There is no command-line program. The package does not parse pack
variables, render templates or submit jobs to a Nomad cluster; it stops at
caching registries and loading pack files.