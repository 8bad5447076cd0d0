from __future__ import annotations

from gosigfind.declarations import PackageScope, ScopeObject, Signature, Var
from gosigfind.errors import ImportPathError, NoSourceFilesError, ParseError, TypeCheckError
from gosigfind.extract import declarations_from_scope, extract_declarations


def _scope() -> PackageScope:
    return PackageScope(
        path="example.com/p",
        objects=[
            ScopeObject(
                name="New",
                kind="func",
                pkg="example.com/p",
                signature=Signature(params=[Var("name", "string")], results=[Var("", "*example.com/p.T")]),
            ),
            ScopeObject(
                name="T",
                kind="type",
                pkg="example.com/p",
                methods=[
                    # Export data does not always attribute methods to a package.
                    ScopeObject(
                        name="Close",
                        kind="func",
                        pkg="",
                        signature=Signature(
                            params=[], results=[Var("", "error")], recv=Var("t", "*example.com/p.T")
                        ),
                    ),
                ],
            ),
            ScopeObject(name="Version", kind="const", pkg="example.com/p"),
            ScopeObject(name="Default", kind="var", pkg="example.com/p"),
        ],
    )


def test_declarations_from_scope_collects_funcs_and_methods():
    decls = declarations_from_scope(_scope())

    assert [d.name for d in decls] == ["New", "Close"]
    assert all(d.pkg == "example.com/p" for d in decls)
    assert decls[1].is_method
    assert not decls[0].is_method


def test_method_package_comes_from_the_receiver_type():
    scope = PackageScope(
        path="example.com/alias",
        objects=[
            ScopeObject(
                name="Buffer",
                kind="type",
                pkg="bytes",
                methods=[
                    ScopeObject(
                        name="Len",
                        kind="func",
                        pkg="",
                        signature=Signature(params=[], results=[Var("", "int")], recv=Var("b", "*bytes.Buffer")),
                    )
                ],
            )
        ],
    )
    (decl,) = declarations_from_scope(scope)
    assert decl.pkg == "bytes"


def test_builtins_are_kept_without_signature():
    scope = PackageScope(
        path="unsafe",
        objects=[ScopeObject(name="Sizeof", kind="builtin", pkg="unsafe")],
    )
    (decl,) = declarations_from_scope(scope)
    assert decl.signature is None


def test_extract_continues_past_failing_packages(fake_resolver):
    resolver = fake_resolver(
        {
            "example.com/bad": ImportPathError("example.com/bad", "cannot find package"),
            "example.com/p": _scope(),
            "example.com/empty": NoSourceFilesError("example.com/empty"),
            "example.com/broken": ParseError("example.com/broken", "could not parse: x.go:1:1: expected 'package'"),
            "example.com/untyped": TypeCheckError("example.com/untyped", "x.go:3:2: undefined: y"),
        }
    )
    paths = ["example.com/bad", "example.com/p", "example.com/empty", "example.com/broken", "example.com/untyped"]

    decls, errors = extract_declarations(paths, resolver)

    assert [d.name for d in decls] == ["New", "Close"]
    assert [e.path for e in errors] == [
        "example.com/bad",
        "example.com/empty",
        "example.com/broken",
        "example.com/untyped",
    ]
    assert resolver.resolved == paths
    assert resolver.prefetched == [paths]


def test_error_messages():
    assert str(ImportPathError("a/b", "boom")) == "Couldn't import a/b: boom"
    assert str(NoSourceFilesError("a/b")) == "Couldn't parse a/b: No (non cgo) Go files"
    assert str(ParseError("a/b", "could not parse: x")) == "Couldn't parse a/b: could not parse: x"
    assert str(TypeCheckError("a/b", "x.go:1:1: bad")) == "Couldn't parse a/b: x.go:1:1: bad"
