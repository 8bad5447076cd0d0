from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _isolate_gosigfind_env(monkeypatch, tmp_path):
    # Never reuse a helper binary cached by a previous run or a real install.
    monkeypatch.setenv("GOSIGFIND_CACHE_DIR", str(tmp_path / "gosigfind-cache"))
    monkeypatch.delenv("GOSIGFIND_GO", raising=False)
    yield


@pytest.fixture
def fake_resolver():
    """Build an in-memory TypeResolver from {path: PackageScope | PackageError}."""
    from gosigfind.errors import PackageError
    from gosigfind.scan import TypeResolver

    class FakeResolver(TypeResolver):
        def __init__(self, results, fallbacks=None):
            super().__init__()
            self.results = dict(results)
            self.fallbacks = list(fallbacks or [])
            self.prefetched: list[list[str]] = []
            self.resolved: list[str] = []

        def prefetch(self, paths):
            self.prefetched.append(list(paths))

        def resolve(self, path):
            self.resolved.append(path)
            found = self.results.get(path)
            if found is None:
                raise PackageError(path, "unknown package")
            if isinstance(found, PackageError):
                raise found
            return found

    return FakeResolver
