"""Base entity — every persisted domain object carries a nullable integer id."""

from typing import Optional

from pydantic import BaseModel


class Entity(BaseModel):
    id: Optional[int] = None

    model_config = {"validate_assignment": True}

    def is_new(self) -> bool:
        """An entity without an id has never been persisted."""
        return not self.id
