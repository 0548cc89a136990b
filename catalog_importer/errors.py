from __future__ import annotations


class CatalogImportError(Exception):
    """Base class for hard failures of a single import item."""


class FetchError(CatalogImportError):
    def __init__(self, message: str, attempted: list[str] | None = None):
        super().__init__(message)
        self.attempted = attempted or []


class NoCandidateUrlError(FetchError):
    pass


class MissingNameError(CatalogImportError):
    pass


class StoreError(CatalogImportError):
    pass
