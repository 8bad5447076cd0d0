from __future__ import annotations

import logging

from .declarations import Declaration, PackageScope
from .errors import PackageError
from .scan import TypeResolver

logger = logging.getLogger(__name__)


def declarations_from_scope(scope: PackageScope) -> list[Declaration]:
    """Collect the functions and the methods of named types in a package scope.

    Methods are attributed to the package that declares their receiver type.
    Builtins are kept with no signature; everything else is ignored.
    """
    out: list[Declaration] = []
    for obj in scope.objects:
        if obj.kind in {"func", "builtin"}:
            out.append(Declaration(pkg=obj.pkg or scope.path, name=obj.name, signature=obj.signature))
        elif obj.kind == "type":
            owner = obj.pkg or scope.path
            for method in obj.methods:
                out.append(Declaration(pkg=owner, name=method.name, signature=method.signature))
    return out


def extract_declarations(
    paths: list[str], resolver: TypeResolver
) -> tuple[list[Declaration], list[PackageError]]:
    """Resolve every package and flatten their declarations.

    A package that fails to resolve is skipped as a whole and its error is
    recorded; the remaining packages are still processed.
    """
    resolver.prefetch(paths)

    decls: list[Declaration] = []
    errors: list[PackageError] = []
    for path in paths:
        try:
            scope = resolver.resolve(path)
        except PackageError as e:
            logger.debug("skipping %s: %s", path, e)
            errors.append(e)
            continue
        found = declarations_from_scope(scope)
        logger.debug("%s: %d declaration(s)", path, len(found))
        decls.extend(found)
    return decls, errors
