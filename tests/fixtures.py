"""
Test Fixtures

Sample entity, table and repository used across the test suite.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import Column, Integer, MetaData, String, Table

from table_dao.domain.entities import Entity
from table_dao.infrastructure.converters import EntityConverter
from table_dao.infrastructure.database import DatabaseConnection
from table_dao.infrastructure.repositories.base_repository import TableRepository
from table_dao.infrastructure.repositories.hooks import RepositoryHooks

metadata = MetaData()

posts_table = Table(
    "posts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(200), nullable=False),
    Column("tag", String(50), nullable=True),
    Column("score", Integer, nullable=False),
)


class Post(Entity):
    title: str
    tag: Optional[str] = None
    score: int = 0

    # Not persisted; filled in by hooks
    label: Optional[str] = None


class PostConverter(EntityConverter[Post]):
    def to_row(self, entity: Post) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "title": entity.title,
            "tag": entity.tag,
            "score": entity.score,
        }

    def _to_entity(self, row: Dict[str, Any]) -> Post:
        return Post(id=row["id"], title=row["title"], tag=row["tag"], score=row["score"])


class RecordingHooks(RepositoryHooks[Post]):
    """Remembers every hook call in order."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def after_load(self, entity: Post) -> None:
        entity.label = f"#{entity.id} {entity.title}"
        self.calls.append(("after_load", entity.id))

    def after_save(self, entity: Post) -> None:
        self.calls.append(("after_save", entity.id))

    def before_delete(self, entity: Post) -> None:
        self.calls.append(("before_delete", entity.id))

    def named(self, hook: str) -> List[Optional[int]]:
        return [entity_id for name, entity_id in self.calls if name == hook]


class PostRepository(TableRepository[Post]):
    def __init__(self, connection: DatabaseConnection, hooks: Optional[RepositoryHooks[Post]] = None):
        super().__init__(connection, "posts", PostConverter(), hooks)


def make_posts(repo: PostRepository, count: int, **fields: Any) -> List[Post]:
    """Save `count` posts titled post-01, post-02, ..."""
    return [repo.save(Post(title=f"post-{i:02d}", **fields)) for i in range(1, count + 1)]
