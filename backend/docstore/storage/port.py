# docstore/storage/port.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TypedDict

Record = Dict[str, Any]
Filter = Dict[str, Any]


class PaginatedResult(TypedDict):
    data: List[Record]
    total: int
    limit: Optional[int]
    page: Optional[int]


class QueryBuilder(ABC):
    """
    Fluent query over one storage collection.

    Every chainable method returns the builder itself:

        versions.query()
            .where({"document_id": "doc-1", "locale": "en"})
            .sort({"version_number": -1})
            .limit(1)
            .exec_one()
    """

    @abstractmethod
    def where(self, filter: Filter) -> "QueryBuilder": ...

    @abstractmethod
    def and_(self, filter: Filter) -> "QueryBuilder": ...

    @abstractmethod
    def or_(self, filters: List[Filter]) -> "QueryBuilder": ...

    @abstractmethod
    def sort(self, spec: Dict[str, Any]) -> "QueryBuilder": ...

    @abstractmethod
    def limit(self, count: int) -> "QueryBuilder": ...

    @abstractmethod
    def skip(self, count: int) -> "QueryBuilder": ...

    @abstractmethod
    def select(self, projection: Dict[str, int]) -> "QueryBuilder": ...

    @abstractmethod
    def locale(self, locale: str) -> "QueryBuilder": ...

    @abstractmethod
    def version(self, status: str) -> "QueryBuilder": ...

    @abstractmethod
    def exec(self) -> List[Record]: ...

    @abstractmethod
    def exec_one(self) -> Optional[Record]: ...

    @abstractmethod
    def count(self) -> int: ...

    @abstractmethod
    def exists(self) -> bool: ...

    @abstractmethod
    def paginate(self) -> PaginatedResult: ...


class StoragePort(ABC):
    """
    Minimal persistence contract the version store and document use cases
    depend on. Records go in and come out as plain dicts.
    """

    @abstractmethod
    def create(self, record: Record) -> Record: ...

    @abstractmethod
    def find_one(self, filter: Filter) -> Optional[Record]: ...

    @abstractmethod
    def find_many(self, filter: Filter) -> List[Record]: ...

    @abstractmethod
    def update(self, filter: Filter, patch: Record) -> Optional[Record]: ...

    @abstractmethod
    def delete(self, filter: Filter) -> bool: ...

    @abstractmethod
    def query(self, locale: Optional[str] = None, version: Optional[str] = None) -> QueryBuilder: ...
