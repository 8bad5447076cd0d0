from __future__ import annotations

from typing import TextIO

from .declarations import Declaration
from .errors import PackageError
from .filter import TypeFilterSet, matches
from .format import format_declaration

FALLBACK_BANNER = "Relying on gc export data for..."


def collect_matches(decls: list[Declaration], filters: TypeFilterSet) -> dict[str, list[str]]:
    """Group the formatted signatures of matching declarations by package.

    Signatures keep the order the declarations were encountered in.
    """
    out: dict[str, list[str]] = {}
    for decl in decls:
        if matches(decl, filters):
            out.setdefault(decl.pkg, []).append(format_declaration(decl))
    return out


def render_report(signatures: dict[str, list[str]]) -> str:
    lines: list[str] = []
    for path in sorted(signatures):
        lines.append(path + ":")
        lines.extend("\t" + sig for sig in signatures[path])
        lines.append("")
    return "".join(ln + "\n" for ln in lines)


def render_errors(errors: list[PackageError], fallbacks: list[str]) -> str:
    lines = [str(e) for e in errors]
    if fallbacks:
        lines.append(FALLBACK_BANNER)
        lines.extend(fallbacks)
        lines.append("")
    return "".join(ln + "\n" for ln in lines)


def write_report(
    signatures: dict[str, list[str]],
    errors: list[PackageError],
    fallbacks: list[str],
    *,
    out: TextIO,
    err: TextIO,
) -> None:
    err.write(render_errors(errors, fallbacks))
    err.flush()
    out.write(render_report(signatures))
    out.flush()
