"""gosigfind: find Go functions and methods by parameter and return types."""

from __future__ import annotations

from . import errors
from .declarations import Declaration, PackageScope, ScopeObject, Signature, Var
from .extract import extract_declarations
from .filter import TypeFilterSet, check_types, matches
from .format import format_declaration
from .report import collect_matches, render_report
from .resolve import expand_patterns
from .scan import GoTypeResolver, TypeResolver

__all__ = [
    "Declaration",
    "GoTypeResolver",
    "PackageScope",
    "ScopeObject",
    "Signature",
    "TypeFilterSet",
    "TypeResolver",
    "Var",
    "check_types",
    "collect_matches",
    "errors",
    "expand_patterns",
    "extract_declarations",
    "format_declaration",
    "matches",
    "render_report",
]
