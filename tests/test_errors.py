import pytest

from nomadpack.errors import (
    CacheError,
    CachePathRequiredError,
    Diagnostic,
    ErrorContext,
    NoTemplatesRenderedError,
    Pos,
    Range,
    RegistrySourceRequiredError,
    UIErrorContext,
    UI_CONTEXT_PREFIX_PACK_NAME,
    WrappedUIContext,
    hcl_diags_to_wrapped_ui_context,
)


@pytest.mark.parametrize(
    "initial, expected",
    [
        ([], ["Pack Name: foobar"]),
        (
            ["Pack Path: /go/src/github/why/"],
            ["Pack Path: /go/src/github/why/", "Pack Name: foobar"],
        ),
    ],
)
def test_ui_error_context_add(initial, expected):
    ctx = UIErrorContext(contexts=list(initial))
    ctx.add(UI_CONTEXT_PREFIX_PACK_NAME, "foobar")
    assert sorted(ctx.get_all()) == sorted(expected)


@pytest.mark.parametrize(
    "initial, appended, expected",
    [
        ([], ["Pack Path: /go/src/github/why/"], ["Pack Path: /go/src/github/why/"]),
        (
            ["Pack Name: what is going on"],
            ["Pack Path: /go/src/github/why/"],
            ["Pack Path: /go/src/github/why/", "Pack Name: what is going on"],
        ),
    ],
)
def test_ui_error_context_append(initial, appended, expected):
    ctx = UIErrorContext(contexts=list(initial))
    ctx.append(UIErrorContext(contexts=list(appended)))
    assert sorted(ctx.get_all()) == sorted(expected)


@pytest.mark.parametrize(
    "initial",
    [[], ["Pack Path: /go/src/github/why/"]],
)
def test_ui_error_context_copy(initial):
    ctx = UIErrorContext(contexts=list(initial))
    copied = ctx.copy()
    assert copied == UIErrorContext(contexts=list(initial))
    assert isinstance(copied, UIErrorContext)


def test_ui_error_context_copy_is_independent():
    ctx = UIErrorContext(contexts=["Pack Path: /go/src/github/why/"])
    copied = ctx.copy()
    copied.add(UI_CONTEXT_PREFIX_PACK_NAME, "foobar")
    assert ctx.get_all() == ["Pack Path: /go/src/github/why/"]


@pytest.mark.parametrize(
    "initial, expected",
    [
        ([], []),
        (["Pack Path: /go/src/github/why/"], ["Pack Path: /go/src/github/why/"]),
    ],
)
def test_ui_error_context_get_all(initial, expected):
    assert UIErrorContext(contexts=list(initial)).get_all() == expected


def test_ui_error_context_str_joins_lines():
    ctx = UIErrorContext()
    ctx.add("A: ", "1")
    ctx.add("B: ", "2")
    assert str(ctx) == "A: 1\nB: 2"


def test_error_context_add_and_str():
    ctx = ErrorContext()
    ctx.add("Cache Path: ", "/tmp/cache")
    ctx.add("Ref: ", "latest")
    assert ctx.get_all() == ["Cache Path: /tmp/cache", "Ref: latest"]
    assert str(ctx) == "Cache Path: /tmp/cache\nRef: latest"


def test_error_context_append_and_copy():
    first = ErrorContext(contexts=["Ref: latest"])
    second = ErrorContext(contexts=["Pack Name: traefik"])
    first.append(second)
    assert first.get_all() == ["Ref: latest", "Pack Name: traefik"]
    assert first.copy() == first
    assert first.copy() != UIErrorContext(contexts=first.get_all())


def test_wrapped_ui_context_str():
    wrapped = WrappedUIContext(
        err=Exception("tis but a scratch"),
        subject="the cause of camalot",
        context=UIErrorContext(contexts=["King: Arthur"]),
    )
    assert str(wrapped) == "the cause of camalot: tis but a scratch: \nKing: Arthur"


def test_wrapped_ui_context_defaults_to_empty_context():
    wrapped = WrappedUIContext(Exception("bad"), "subject")
    assert wrapped.subject == "subject"
    assert wrapped.context.get_all() == []
    assert str(wrapped) == "subject: bad: \n"
    with pytest.raises(WrappedUIContext, match="subject"):
        raise wrapped


def test_hcl_diags_to_wrapped_ui_context():
    diags = [
        Diagnostic(
            summary="some poor diag detail",
            detail="this is the longer detail and is the real error",
            subject=Range(filename="test.hcl"),
        )
    ]
    wrapped = hcl_diags_to_wrapped_ui_context(diags)
    assert len(wrapped) == 1
    assert str(wrapped[0].err) == "this is the longer detail and is the real error"
    assert wrapped[0].subject == "some poor diag detail"
    assert wrapped[0].context == UIErrorContext(
        contexts=["HCL Range: test.hcl:0,0-0"]
    )


def test_range_str_multiline():
    rng = Range(filename="a.hcl", start=Pos(line=1, column=2), end=Pos(line=3, column=4))
    assert str(rng) == "a.hcl:1,2-3,4"


def test_range_str_single_line():
    rng = Range(filename="a.hcl", start=Pos(line=2, column=1), end=Pos(line=2, column=9))
    assert str(rng) == "a.hcl:2,1-9"


def test_cache_errors_default_messages():
    assert str(CachePathRequiredError()) == "cache path is required"
    assert str(RegistrySourceRequiredError()) == "registry source is required"
    assert isinstance(CachePathRequiredError(), CacheError)


def test_cache_error_custom_message():
    err = CachePathRequiredError("custom")
    assert str(err) == "custom"
    assert isinstance(err, CacheError)


def test_no_templates_rendered_message():
    assert str(NoTemplatesRenderedError()) == (
        "no templates were rendered by the renderer process run"
    )