"""Loading of pack directories into in-memory pack definitions."""

from __future__ import annotations

import json
import os
import re
import stat
from dataclasses import dataclass, field
from typing import Iterable, Iterator

_BOM = b"\xef\xbb\xbf"


class LoadError(Exception):
    """Raised when a pack cannot be loaded."""


@dataclass
class PackFile:
    """A single file belonging to a pack."""

    name: str
    path: str = ""
    content: bytes = b""


@dataclass
class MetadataApp:
    """The application block of a pack's metadata."""

    url: str = ""
    author: str = ""


@dataclass
class MetadataPack:
    """The pack block of a pack's metadata."""

    name: str = ""
    description: str = ""
    url: str = ""
    version: str = ""


@dataclass
class Metadata:
    """The decoded contents of a pack's metadata.hcl file."""

    app: MetadataApp = field(default_factory=MetadataApp)
    pack: MetadataPack = field(default_factory=MetadataPack)
    dependencies: list[dict] = field(default_factory=list)


@dataclass
class Pack:
    """A loaded pack and the files that make it up."""

    metadata: Metadata | None = None
    root_variable_file: PackFile | None = None
    output_template_file: PackFile | None = None
    template_files: list[PackFile] = field(default_factory=list)

    @property
    def name(self) -> str:
        """The pack name declared in its metadata."""
        return self.metadata.pack.name if self.metadata is not None else ""


def load(name: str | os.PathLike) -> Pack:
    """Load the pack stored in directory ``name``."""
    info = os.stat(name)
    if not stat.S_ISDIR(info.st_mode):
        raise LoadError("unable to load non-directory pack")
    return _load_dir(name)


def _load_dir(directory: str | os.PathLike) -> Pack:
    prefix = os.path.abspath(directory) + os.sep
    files = []

    for path, info in walk_files(prefix):
        name = path.removeprefix(prefix)
        if not name:
            continue
        # Normalise to forward slashes so names are platform independent.
        name = name.replace(os.sep, "/")

        if not stat.S_ISREG(info.st_mode):
            raise LoadError(f'cannot load irregular file "{path}"')

        try:
            with open(path, "rb") as handle:
                content = handle.read()
        except OSError as exc:
            raise LoadError(f"failed to read {name}: {exc}") from exc

        files.append(PackFile(name=name, path=path, content=content.removeprefix(_BOM)))

    return load_files(files)


def load_files(files: Iterable[PackFile]) -> Pack:
    """Build a pack from its files, sorting them by role."""
    pack = Pack()

    for pack_file in files:
        name = pack_file.name
        if name == "metadata.hcl":
            # Only one is expected per pack; if there are more, the last wins.
            try:
                pack.metadata = _decode_metadata(pack_file.content.decode("utf-8"))
            except ValueError as exc:
                raise LoadError(f"failed to decode {name}: {exc}") from exc
        elif name == "variables.hcl":
            pack.root_variable_file = pack_file
        elif name == "outputs.tpl":
            pack.output_template_file = pack_file
        elif (
            name.startswith("templates/") and name.endswith(".nomad.tpl")
        ) or "templates/_" in name:
            pack.template_files.append(pack_file)

    if pack.metadata is None:
        raise LoadError("metadata.hcl file not found")
    return pack


def walk_files(root: str | os.PathLike) -> Iterator[tuple[str, os.stat_result]]:
    """Yield ``(path, stat)`` for every non-directory below ``root``.

    Entries are visited in name order and symbolic links are followed, with
    paths reported under the link's own name.
    """
    root = os.fspath(root)
    yield from _symwalk(root, os.lstat(root))


def _symwalk(path: str, info: os.stat_result) -> Iterator[tuple[str, os.stat_result]]:
    if stat.S_ISLNK(info.st_mode):
        try:
            resolved = os.path.realpath(path, strict=True)
        except OSError as exc:
            raise LoadError(f"error evaluating symlink: {exc}") from exc
        yield from _symwalk(path, os.lstat(resolved))
        return

    if not stat.S_ISDIR(info.st_mode):
        yield path, info
        return

    for name in sorted(os.listdir(path)):
        child = os.path.join(path, name)
        yield from _symwalk(child, os.lstat(child))


_TOKEN_RE = re.compile(
    r"""
    (?P<skip>[ \t\r\n]+|\#[^\n]*|//[^\n]*|/\*.*?\*/)
    |(?P<string>"(?:[^"\\\n]|\\.)*")
    |(?P<number>-?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?)
    |(?P<ident>[A-Za-z_][A-Za-z0-9_-]*)
    |(?P<punct>[{}=\[\],])
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass
class _Block:
    type: str
    labels: list[str]
    attributes: dict[str, object]
    blocks: list[_Block]


def _tokenize(text: str) -> Iterator[tuple[str, str]]:
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            line = text.count("\n", 0, pos) + 1
            raise ValueError(f"line {line}: invalid character {text[pos]!r}")
        pos = match.end()
        if match.lastgroup != "skip":
            yield match.lastgroup, match.group()


class _HCLParser:
    """A parser for the attribute-and-block subset of HCL used by metadata."""

    def __init__(self, text: str) -> None:
        self._tokens = list(_tokenize(text))
        self._pos = 0

    def _peek(self) -> tuple[str, str]:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return "eof", ""

    def _next(self) -> tuple[str, str]:
        token = self._peek()
        self._pos += 1
        return token

    def _expect_punct(self, value: str) -> None:
        kind, text = self._next()
        if kind != "punct" or text != value:
            raise ValueError(f"expected {value!r}, found {text or 'end of file'!r}")

    def parse(self) -> tuple[dict[str, object], list[_Block]]:
        return self._body(nested=False)

    def _body(self, nested: bool) -> tuple[dict[str, object], list[_Block]]:
        attributes: dict[str, object] = {}
        blocks: list[_Block] = []
        while True:
            kind, text = self._peek()
            if kind == "eof":
                if nested:
                    raise ValueError("unclosed block")
                return attributes, blocks
            if nested and kind == "punct" and text == "}":
                self._next()
                return attributes, blocks
            if kind != "ident":
                raise ValueError(f"unexpected {text!r}")
            self._next()

            next_kind, next_text = self._peek()
            if next_kind == "punct" and next_text == "=":
                self._next()
                if text in attributes:
                    raise ValueError(f'duplicate argument "{text}"')
                attributes[text] = self._value()
                continue

            labels = []
            while self._peek()[0] in ("string", "ident"):
                label_kind, label_text = self._next()
                labels.append(
                    json.loads(label_text, strict=False)
                    if label_kind == "string"
                    else label_text
                )
            self._expect_punct("{")
            block_attributes, block_blocks = self._body(nested=True)
            blocks.append(_Block(text, labels, block_attributes, block_blocks))

    def _value(self) -> object:
        kind, text = self._next()
        if kind == "string":
            return json.loads(text, strict=False)
        if kind == "number":
            return float(text) if any(c in text for c in ".eE") else int(text)
        if kind == "ident":
            literals = {"true": True, "false": False, "null": None}
            if text in literals:
                return literals[text]
            raise ValueError(f"variables are not allowed here: {text!r}")
        if kind == "punct" and text == "[":
            items = []
            while True:
                if self._peek() == ("punct", "]"):
                    self._next()
                    return items
                items.append(self._value())
                if self._peek() == ("punct", ","):
                    self._next()
                elif self._peek() != ("punct", "]"):
                    raise ValueError("missing comma between list items")
        raise ValueError(f"expected a value, found {text or 'end of file'!r}")


def _as_string(name: str, value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f'inappropriate value for attribute "{name}": string required')


def _as_bool(name: str, value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value in ("true", "false"):
        return value == "true"
    raise ValueError(f'inappropriate value for attribute "{name}": bool required')


def _string_attributes(block: _Block, allowed: tuple[str, ...]) -> dict[str, str]:
    for name in block.attributes:
        if name not in allowed:
            raise ValueError(
                f'unsupported argument; an argument named "{name}" is not expected here'
            )
    if block.blocks:
        raise ValueError(
            f'unsupported block type; blocks of type "{block.blocks[0].type}" '
            "are not expected here"
        )
    return {name: _as_string(name, value) for name, value in block.attributes.items()}


def _check_labels(block: _Block, count: int) -> None:
    if len(block.labels) != count:
        raise ValueError(
            f'"{block.type}" block expects {count} label(s), got {len(block.labels)}'
        )


def _decode_metadata(text: str) -> Metadata:
    attributes, blocks = _HCLParser(text).parse()
    if attributes:
        name = next(iter(attributes))
        raise ValueError(
            f'unsupported argument; an argument named "{name}" is not expected here'
        )

    metadata = Metadata()
    seen: set[str] = set()
    for block in blocks:
        if block.type in ("app", "pack"):
            _check_labels(block, 0)
            if block.type in seen:
                raise ValueError(f'duplicate "{block.type}" block')
            seen.add(block.type)
            if block.type == "app":
                metadata.app = MetadataApp(**_string_attributes(block, ("url", "author")))
            else:
                metadata.pack = MetadataPack(
                    **_string_attributes(block, ("name", "description", "url", "version"))
                )
        elif block.type == "dependency":
            _check_labels(block, 1)
            values = dict(block.attributes)
            enabled = values.pop("enabled", True)
            dependency_block = _Block(block.type, block.labels, values, block.blocks)
            strings = _string_attributes(dependency_block, ("name", "source"))
            metadata.dependencies.append(
                {
                    "name": strings.get("name", block.labels[0]),
                    "source": strings.get("source", ""),
                    "enabled": _as_bool("enabled", enabled),
                }
            )
        else:
            raise ValueError(
                f'unsupported block type; blocks of type "{block.type}" '
                "are not expected here"
            )
    return metadata