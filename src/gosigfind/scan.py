"""Type resolution through the Go toolchain.

Parsing, import resolution and type-checking are done by a small Go program
built from the standard library's go/build, go/parser, go/types and go/importer
packages. It is compiled once per (source, Go version) into the cache directory
and then run with the import paths to resolve; it prints one JSON document
describing each package's scope.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from . import toolchain
from .declarations import PackageScope, ScopeObject, Signature, Var
from .errors import (
    ImportPathError,
    NoSourceFilesError,
    PackageError,
    ParseError,
    ToolchainError,
    TypeCheckError,
)
from .paths import default_cache_root

logger = logging.getLogger(__name__)

_ERROR_KINDS: dict[str, type[PackageError]] = {
    "import": ImportPathError,
    "no_files": NoSourceFilesError,
    "parse": ParseError,
    "check": TypeCheckError,
}


class TypeResolver(ABC):
    """Turns import paths into package scopes.

    `resolve` returns the scope for one package or raises a PackageError.
    `fallbacks` lists the packages whose types had to be loaded from gc export
    data because importing them from source failed.
    """

    def __init__(self) -> None:
        self.fallbacks: list[str] = []

    def prefetch(self, paths: list[str]) -> None:
        """Hint that `paths` are about to be resolved."""

    @abstractmethod
    def resolve(self, path: str) -> PackageScope:
        raise NotImplementedError


class GoTypeResolver(TypeResolver):
    """TypeResolver backed by the Go helper program.

    Results, including failures, are cached per import path for the lifetime of
    the resolver and never invalidated.
    """

    def __init__(self, *, cwd: Path | None = None, env: dict[str, str] | None = None) -> None:
        super().__init__()
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.env = env
        self._cache: dict[str, PackageScope | PackageError] = {}
        self._binary: Path | None = None

    def prefetch(self, paths: list[str]) -> None:
        missing = [p for p in dict.fromkeys(paths) if p not in self._cache]
        if not missing:
            return
        results, fallbacks = self._run_helper(missing)
        for path in missing:
            found = results.get(path)
            if found is None:
                found = ImportPathError(path, "no result from type resolution")
            self._cache[path] = found
        for path in fallbacks:
            if path not in self.fallbacks:
                self.fallbacks.append(path)

    def resolve(self, path: str) -> PackageScope:
        if path not in self._cache:
            self.prefetch([path])
        found = self._cache[path]
        if isinstance(found, PackageError):
            raise found
        return found

    def _run_helper(self, paths: list[str]) -> tuple[dict[str, PackageScope | PackageError], list[str]]:
        if self._binary is None:
            self._binary = ensure_helper(env=self.env)
        logger.debug("resolving %d package(s) with %s", len(paths), self._binary)
        stdout, _ = toolchain.run(
            [str(self._binary), "--dir", str(self.cwd), *paths],
            cwd=self.cwd,
            env=self.env,
            # Helper output can mention proxy hosts; retrying does not help.
            retries=1,
        )
        return parse_helper_output(stdout)


def ensure_helper(*, cache_root: Path | None = None, env: dict[str, str] | None = None) -> Path:
    """Return the path of the compiled helper, building it if needed.

    The binary is keyed by the helper source and the Go version so an upgraded
    toolchain never runs a stale helper.
    """
    cache_root = Path(cache_root) if cache_root is not None else default_cache_root()
    source = _helper_go_source()

    with tempfile.TemporaryDirectory(prefix="gosigfind-helper-") as td:
        build_dir = Path(td)
        go_version = toolchain.go(["env", "GOVERSION"], cwd=build_dir, env=env).strip()

        h = hashlib.sha256()
        h.update(source.encode("utf-8"))
        h.update(b"\x00")
        h.update(go_version.encode("utf-8"))
        exe = "gosigfind-helper.exe" if os.name == "nt" else "gosigfind-helper"
        binary = cache_root / "helper" / h.hexdigest()[:16] / exe
        if binary.exists():
            logger.debug("using cached helper %s", binary)
            return binary

        logger.debug("building helper for %s into %s", go_version or "go", binary)
        (build_dir / "go.mod").write_text(
            "\n".join(
                [
                    "module gosigfind.helper",
                    "",
                    "go 1.21",
                    "",
                ]
            ),
            encoding="utf-8",
        )
        (build_dir / "main.go").write_text(source, encoding="utf-8")
        # Build next to the final location so the rename stays on one filesystem.
        binary.parent.mkdir(parents=True, exist_ok=True)
        tmp_binary = binary.parent / f"{exe}.{os.getpid()}.tmp"
        toolchain.go(["build", "-o", str(tmp_binary), "."], cwd=build_dir, env=env)
        os.replace(tmp_binary, binary)
    return binary


def _decode_json_object(out: str) -> Any:
    try:
        return json.loads(out)
    except ValueError:
        # Tolerate noise (e.g. toolchain switching messages) before the document.
        start = out.find("{")
        if start == -1:
            raise ToolchainError(f"failed to parse type resolution output\n{out}")
        try:
            obj, _ = json.JSONDecoder().raw_decode(out[start:])
            return obj
        except ValueError as e:
            raise ToolchainError(f"failed to parse type resolution output: {e}\n{out}") from e


def parse_helper_output(out: str) -> tuple[dict[str, PackageScope | PackageError], list[str]]:
    """Parse the helper's JSON document into scopes/errors keyed by import path."""
    obj = _decode_json_object(out)
    if not isinstance(obj, dict):
        raise ToolchainError("type resolution output is not a JSON object")

    results: dict[str, PackageScope | PackageError] = {}
    for item in obj.get("packages") or []:
        if not isinstance(item, dict):
            continue
        path = item.get("path")
        if not isinstance(path, str) or not path:
            continue
        err = item.get("error")
        if isinstance(err, dict):
            cls = _ERROR_KINDS.get(str(err.get("kind", "")), ImportPathError)
            results[path] = cls(path, str(err.get("message", "")).rstrip("\n"))
            continue
        objects = [o for o in (_parse_object(x) for x in item.get("objects") or []) if o is not None]
        results[path] = PackageScope(path=path, objects=objects)

    fallbacks = [p for p in obj.get("fallbacks") or [] if isinstance(p, str)]
    return results, fallbacks


def _parse_var(item: Any) -> Var | None:
    if not isinstance(item, dict):
        return None
    name = item.get("name")
    typ = item.get("type")
    if not isinstance(typ, str) or not typ:
        return None
    return Var(name=name if isinstance(name, str) else "", type=typ)


def _parse_vars(items: Any) -> list[Var] | None:
    if items is None:
        return []
    if not isinstance(items, list):
        return None
    out: list[Var] = []
    for item in items:
        v = _parse_var(item)
        if v is None:
            return None
        out.append(v)
    return out


def _parse_signature(item: Any) -> Signature | None:
    if not isinstance(item, dict):
        return None
    params = _parse_vars(item.get("params"))
    results = _parse_vars(item.get("results"))
    if params is None or results is None:
        return None
    return Signature(
        params=params,
        results=results,
        recv=_parse_var(item.get("recv")),
        variadic=bool(item.get("variadic", False)),
    )


def _parse_object(item: Any) -> ScopeObject | None:
    if not isinstance(item, dict):
        return None
    name = item.get("name")
    kind = item.get("kind")
    if not isinstance(name, str) or not isinstance(kind, str):
        return None
    pkg = item.get("pkg")
    methods = [m for m in (_parse_object(x) for x in item.get("methods") or []) if m is not None]
    return ScopeObject(
        name=name,
        kind=kind,
        pkg=pkg if isinstance(pkg, str) else "",
        signature=_parse_signature(item.get("signature")),
        methods=methods,
    )


def _helper_go_source() -> str:
    # Keep this file stdlib-only so building it never needs network access.
    return r'''
package main

import (
	"encoding/json"
	"errors"
	"flag"
	"fmt"
	"go/ast"
	"go/build"
	"go/importer"
	"go/parser"
	"go/token"
	"go/types"
	"os"
	"path/filepath"
)

type outVar struct {
	Name string `json:"name"`
	Type string `json:"type"`
}

type outSig struct {
	Params   []outVar `json:"params"`
	Results  []outVar `json:"results"`
	Recv     *outVar  `json:"recv"`
	Variadic bool     `json:"variadic"`
}

type outObj struct {
	Name      string   `json:"name"`
	Kind      string   `json:"kind"`
	Pkg       string   `json:"pkg"`
	Signature *outSig  `json:"signature"`
	Methods   []outObj `json:"methods"`
}

type outErr struct {
	Kind    string `json:"kind"`
	Message string `json:"message"`
}

type outPkg struct {
	Path    string   `json:"path"`
	Error   *outErr  `json:"error"`
	Objects []outObj `json:"objects"`
}

type outAll struct {
	Packages  []outPkg `json:"packages"`
	Fallbacks []string `json:"fallbacks"`
}

// fallbackImporter imports packages from source and falls back to gc export
// data when that fails. Every imported package is cached by path.
//
// Scopes of GOROOT packages requested directly are loaded from export data and
// kept in goroot, apart from imports: type-checking user code must only see the
// source importer's copies, or one stdlib type would exist twice.
type fallbackImporter struct {
	source    types.ImporterFrom
	gc        types.Importer
	imports   map[string]*types.Package
	goroot    map[string]*types.Package
	fallbacks []string
}

func newImporter(fset *token.FileSet) *fallbackImporter {
	return &fallbackImporter{
		source:  importer.ForCompiler(fset, "source", nil).(types.ImporterFrom),
		gc:      importer.Default(),
		imports: map[string]*types.Package{},
		goroot:  map[string]*types.Package{},
	}
}

func (imp *fallbackImporter) Import(path string) (*types.Package, error) {
	return imp.ImportFrom(path, ".", 0)
}

func (imp *fallbackImporter) ImportFrom(path, dir string, mode types.ImportMode) (*types.Package, error) {
	if pkg, ok := imp.imports[path]; ok {
		return pkg, nil
	}
	pkg, err := imp.source.ImportFrom(path, dir, mode)
	if err != nil {
		pkg, err = imp.gc.Import(path)
		if err != nil {
			return nil, err
		}
		imp.fallbacks = append(imp.fallbacks, path)
	}
	imp.imports[path] = pkg
	return pkg, nil
}

func (imp *fallbackImporter) exportData(path string) (*types.Package, error) {
	if pkg, ok := imp.goroot[path]; ok {
		return pkg, nil
	}
	pkg, err := imp.gc.Import(path)
	if err != nil {
		return nil, err
	}
	imp.goroot[path] = pkg
	return pkg, nil
}

func main() {
	var dir string
	flag.StringVar(&dir, "dir", "", "Directory import paths are resolved from")
	flag.Parse()

	if dir != "" {
		if err := os.Chdir(dir); err != nil {
			fmt.Fprintf(os.Stderr, "chdir: %v\n", err)
			os.Exit(2)
		}
	}
	cwd, err := os.Getwd()
	if err != nil {
		fmt.Fprintf(os.Stderr, "getwd: %v\n", err)
		os.Exit(2)
	}

	fset := token.NewFileSet()
	imp := newImporter(fset)
	out := outAll{
		Packages:  make([]outPkg, 0, flag.NArg()),
		Fallbacks: []string{},
	}
	for _, path := range flag.Args() {
		out.Packages = append(out.Packages, scanPackage(imp, fset, cwd, path))
	}
	out.Fallbacks = append(out.Fallbacks, imp.fallbacks...)

	enc := json.NewEncoder(os.Stdout)
	enc.SetEscapeHTML(false)
	_ = enc.Encode(out)
}

func scanPackage(imp *fallbackImporter, fset *token.FileSet, cwd, path string) outPkg {
	res := outPkg{Path: path, Objects: []outObj{}}
	fail := func(kind string, err error) outPkg {
		res.Error = &outErr{Kind: kind, Message: err.Error()}
		return res
	}

	bp, err := build.Import(path, cwd, 0)
	if err != nil {
		return fail("import", err)
	}

	var pkg *types.Package
	if bp.Goroot {
		pkg, err = imp.exportData(bp.ImportPath)
		if err != nil {
			return fail("import", err)
		}
	} else {
		if len(bp.GoFiles) == 0 {
			return fail("no_files", errors.New("No (non cgo) Go files"))
		}
		files := make([]*ast.File, 0, len(bp.GoFiles))
		for _, name := range bp.GoFiles {
			f, err := parser.ParseFile(fset, filepath.Join(bp.Dir, name), nil, 0)
			if err != nil {
				return fail("parse", fmt.Errorf("could not parse: %v", err))
			}
			files = append(files, f)
		}
		conf := types.Config{Importer: imp}
		pkg, err = conf.Check(bp.ImportPath, fset, files, nil)
		if err != nil {
			return fail("check", err)
		}
	}

	scope := pkg.Scope()
	for _, name := range scope.Names() {
		res.Objects = append(res.Objects, describe(scope.Lookup(name)))
	}
	return res
}

func describe(obj types.Object) outObj {
	o := outObj{Name: obj.Name(), Kind: "other", Methods: []outObj{}}
	if obj.Pkg() != nil {
		o.Pkg = obj.Pkg().Path()
	}
	switch obj := obj.(type) {
	case *types.Func:
		o.Kind = "func"
		if sig, ok := obj.Type().(*types.Signature); ok {
			o.Signature = describeSig(sig)
		}
	case *types.TypeName:
		o.Kind = "type"
		if named, ok := obj.Type().(*types.Named); ok {
			for i := 0; i < named.NumMethods(); i++ {
				o.Methods = append(o.Methods, describe(named.Method(i)))
			}
		}
	case *types.Builtin:
		o.Kind = "builtin"
	case *types.Var:
		o.Kind = "var"
	case *types.Const:
		o.Kind = "const"
	}
	return o
}

func describeSig(sig *types.Signature) *outSig {
	s := &outSig{
		Params:   tupleVars(sig.Params()),
		Results:  tupleVars(sig.Results()),
		Variadic: sig.Variadic(),
	}
	if s.Variadic && len(s.Params) > 0 {
		last := sig.Params().At(sig.Params().Len() - 1)
		if sl, ok := last.Type().(*types.Slice); ok {
			s.Params[len(s.Params)-1].Type = "..." + sl.Elem().String()
		}
	}
	if recv := sig.Recv(); recv != nil {
		s.Recv = &outVar{Name: recv.Name(), Type: recv.Type().String()}
	}
	return s
}

func tupleVars(t *types.Tuple) []outVar {
	out := make([]outVar, 0, t.Len())
	for i := 0; i < t.Len(); i++ {
		v := t.At(i)
		out = append(out, outVar{Name: v.Name(), Type: v.Type().String()})
	}
	return out
}
'''
