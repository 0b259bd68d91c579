"""
Error classes for clearer exception sources.
"""
from __future__ import annotations

class BattlesimError(Exception):
    pass

class DataLoadError(BattlesimError):
    def __init__(self, path: str, detail: str):
        super().__init__(f"Failed to load {path}: {detail}")
        self.path = path
        self.detail = detail

class CatalogError(BattlesimError, KeyError):
    """Lookup of an unknown move/effect/ability/creature name.

    This is a content bug, not a runtime condition: callers let it propagate.
    """
    def __init__(self, kind: str, name: str):
        super().__init__(f"'{name}' is not a valid {kind}")
        self.kind = kind
        self.name = name

    def __str__(self) -> str:
        return self.args[0]

class ValidationError(BattlesimError):
    pass
