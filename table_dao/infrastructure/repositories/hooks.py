"""Repository lifecycle hooks."""

from typing import Generic, TypeVar

from table_dao.domain.entities import Entity

E = TypeVar("E", bound=Entity)


class RepositoryHooks(Generic[E]):
    """
    Extension point for a TableRepository.

    Every hook is a no-op; subclass and override the ones a repository
    needs, then pass an instance to the repository constructor.
    """

    def after_load(self, entity: E) -> None:
        """Called once for every entity built from a row, before it is returned."""

    def after_save(self, entity: E) -> None:
        """Called once per save(), after the create or update ran."""

    def before_delete(self, entity: E) -> None:
        """Called for every entity about to be deleted, before the DELETE runs."""
