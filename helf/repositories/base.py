from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")
ID = TypeVar("ID")


class Repository(ABC, Generic[T, ID]):
    """Row-filtered CRUD over one aggregate. Writes flush; the caller owns the commit."""

    @abstractmethod
    async def get(self, id: ID) -> T | None: ...

    @abstractmethod
    async def create(self, entity: T) -> T: ...

    @abstractmethod
    async def update(self, id: ID, updates: dict) -> T | None: ...

    @abstractmethod
    async def delete(self, id: ID) -> bool: ...
