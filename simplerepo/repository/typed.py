"""
Strongly-typed repository facades.

A ``TypedRepository`` is bound to one entity type at construction and
forwards every call to an owned ``Repository`` with that type filled in.

Example:
    ```python
    dogs = TypedRepository(Dog, "sqlite:///pets.db")
    dog_id = dogs.insert(Dog(name="Fletcher", weight=55.2))
    fletcher = dogs.get(dog_id)
    ```
"""

from typing import Any, Generic, List, Optional, Type, TypeVar

from simplerepo.db.statements import DEFAULT_SP_LIST_TIMEOUT, Params
from simplerepo.logging import Logger
from simplerepo.repository.generic import Repository
from simplerepo.repository.generic_async import AsyncRepository

T = TypeVar("T")


class TypedRepository(Generic[T]):
    """Synchronous repository bound to ``entity_type``."""

    def __init__(
        self,
        entity_type: Type[T],
        connection_string: str,
        *,
        echo: bool = False,
        logger: Optional[Logger] = None,
    ) -> None:
        self.entity_type = entity_type
        self._base = Repository(connection_string, echo=echo, logger=logger)

    # ----------- GET single item ----------- #

    def get(self, key: Any, *, timeout: Optional[float] = None) -> Optional[T]:
        return self._base.get(self.entity_type, key, timeout=timeout)

    def get_where(self, where: str, params: Params = None, *, timeout: Optional[float] = None) -> Optional[T]:
        return self._base.get_where(self.entity_type, where, params, timeout=timeout)

    def get_from_query(self, query: str, params: Params = None, *, timeout: Optional[float] = None) -> Optional[T]:
        return self._base.get_from_query(self.entity_type, query, params, timeout=timeout)

    # ----------- GET lists ----------- #

    def get_all(self, *, timeout: Optional[float] = None) -> List[T]:
        return self._base.get_all(self.entity_type, timeout=timeout)

    def get_list(self, where: str, params: Params = None, *, timeout: Optional[float] = None) -> List[T]:
        return self._base.get_list(self.entity_type, where, params, timeout=timeout)

    def get_list_from_query(self, query: str, params: Params = None, *, timeout: Optional[float] = None) -> List[T]:
        return self._base.get_list_from_query(self.entity_type, query, params, timeout=timeout)

    def get_list_paged(
        self,
        page_number: int,
        rows_per_page: int,
        where: Optional[str] = None,
        order_by: Optional[str] = None,
        params: Params = None,
        *,
        timeout: Optional[float] = None,
    ) -> List[T]:
        return self._base.get_list_paged(
            self.entity_type, page_number, rows_per_page, where, order_by, params, timeout=timeout
        )

    # ----------- UPDATE / INSERT / DELETE ----------- #

    def update(self, entity: T, *, timeout: Optional[float] = None) -> int:
        return self._base.update(entity, timeout=timeout)

    def insert(self, entity: T, key_type: Optional[type] = None, *, timeout: Optional[float] = None) -> Any:
        return self._base.insert(entity, key_type, timeout=timeout)

    def delete(self, key: Any, *, timeout: Optional[float] = None) -> int:
        return self._base.delete(self.entity_type, key, timeout=timeout)

    def delete_where(self, where: str, params: Params = None, *, timeout: Optional[float] = None) -> int:
        return self._base.delete_where(self.entity_type, where, params, timeout=timeout)

    # ----------- EXECUTE ----------- #

    def execute_query(self, query: str, params: Params = None, *, timeout: Optional[float] = None) -> None:
        return self._base.execute_query(query, params, timeout=timeout)

    def execute_scalar(self, query: str, params: Params = None, *, timeout: Optional[float] = None) -> Optional[T]:
        return self._base.execute_scalar(self.entity_type, query, params, timeout=timeout)

    # ----------- STORED PROCEDURES ----------- #

    def execute_sp(self, procedure_name: str, params: Params = None, *, timeout: Optional[float] = None) -> None:
        return self._base.execute_sp(procedure_name, params, timeout=timeout)

    def execute_sp_single(
        self, procedure_name: str, params: Params = None, *, timeout: Optional[float] = None
    ) -> Optional[T]:
        return self._base.execute_sp_single(self.entity_type, procedure_name, params, timeout=timeout)

    def execute_sp_list(
        self,
        procedure_name: str,
        params: Params = None,
        *,
        timeout: Optional[float] = DEFAULT_SP_LIST_TIMEOUT,
    ) -> List[T]:
        return self._base.execute_sp_list(self.entity_type, procedure_name, params, timeout=timeout)


class AsyncTypedRepository(Generic[T]):
    """Async repository bound to ``entity_type``."""

    def __init__(
        self,
        entity_type: Type[T],
        connection_string: str,
        *,
        echo: bool = False,
        logger: Optional[Logger] = None,
    ) -> None:
        self.entity_type = entity_type
        self._base = AsyncRepository(connection_string, echo=echo, logger=logger)

    # ----------- GET single item ----------- #

    async def get(self, key: Any, *, timeout: Optional[float] = None) -> Optional[T]:
        return await self._base.get(self.entity_type, key, timeout=timeout)

    async def get_where(self, where: str, params: Params = None, *, timeout: Optional[float] = None) -> Optional[T]:
        return await self._base.get_where(self.entity_type, where, params, timeout=timeout)

    async def get_from_query(
        self, query: str, params: Params = None, *, timeout: Optional[float] = None
    ) -> Optional[T]:
        return await self._base.get_from_query(self.entity_type, query, params, timeout=timeout)

    # ----------- GET lists ----------- #

    async def get_all(self, *, timeout: Optional[float] = None) -> List[T]:
        return await self._base.get_all(self.entity_type, timeout=timeout)

    async def get_list(self, where: str, params: Params = None, *, timeout: Optional[float] = None) -> List[T]:
        return await self._base.get_list(self.entity_type, where, params, timeout=timeout)

    async def get_list_from_query(
        self, query: str, params: Params = None, *, timeout: Optional[float] = None
    ) -> List[T]:
        return await self._base.get_list_from_query(self.entity_type, query, params, timeout=timeout)

    async def get_list_paged(
        self,
        page_number: int,
        rows_per_page: int,
        where: Optional[str] = None,
        order_by: Optional[str] = None,
        params: Params = None,
        *,
        timeout: Optional[float] = None,
    ) -> List[T]:
        return await self._base.get_list_paged(
            self.entity_type, page_number, rows_per_page, where, order_by, params, timeout=timeout
        )

    # ----------- UPDATE / INSERT / DELETE ----------- #

    async def update(self, entity: T, *, timeout: Optional[float] = None) -> int:
        return await self._base.update(entity, timeout=timeout)

    async def insert(self, entity: T, key_type: Optional[type] = None, *, timeout: Optional[float] = None) -> Any:
        return await self._base.insert(entity, key_type, timeout=timeout)

    async def delete(self, key: Any, *, timeout: Optional[float] = None) -> int:
        return await self._base.delete(self.entity_type, key, timeout=timeout)

    async def delete_where(self, where: str, params: Params = None, *, timeout: Optional[float] = None) -> int:
        return await self._base.delete_where(self.entity_type, where, params, timeout=timeout)

    # ----------- EXECUTE ----------- #

    async def execute_query(self, query: str, params: Params = None, *, timeout: Optional[float] = None) -> None:
        return await self._base.execute_query(query, params, timeout=timeout)

    async def execute_scalar(
        self, query: str, params: Params = None, *, timeout: Optional[float] = None
    ) -> Optional[T]:
        return await self._base.execute_scalar(self.entity_type, query, params, timeout=timeout)

    # ----------- STORED PROCEDURES ----------- #

    async def execute_sp(self, procedure_name: str, params: Params = None, *, timeout: Optional[float] = None) -> None:
        return await self._base.execute_sp(procedure_name, params, timeout=timeout)

    async def execute_sp_single(
        self, procedure_name: str, params: Params = None, *, timeout: Optional[float] = None
    ) -> Optional[T]:
        return await self._base.execute_sp_single(self.entity_type, procedure_name, params, timeout=timeout)

    async def execute_sp_list(
        self,
        procedure_name: str,
        params: Params = None,
        *,
        timeout: Optional[float] = DEFAULT_SP_LIST_TIMEOUT,
    ) -> List[T]:
        return await self._base.execute_sp_list(self.entity_type, procedure_name, params, timeout=timeout)
