# database/post.py
from __future__ import annotations

from sqlalchemy import Integer, String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from database.database import Base


class Post(Base):
    """A thread root (parent is None) or a reply to one."""

    __tablename__ = "posts"

    # storage ordinal, newest-first ordering
    uid:      Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # snowflake, the id every API call uses
    id:       Mapped[str] = mapped_column(Text, unique=True, index=True, nullable=False)

    board:    Mapped[str] = mapped_column(String(1), nullable=False)
    author:   Mapped[str] = mapped_column(Text, nullable=False)     # snowflake too, not a user
    subject:  Mapped[str] = mapped_column(Text, nullable=False, default="")
    content:  Mapped[str] = mapped_column(Text, nullable=False)
    views:    Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    parent:   Mapped[str | None] = mapped_column(Text, nullable=True, index=True)   # None = root
    children: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)         # roots only

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "board": self.board,
            "author": self.author,
            "subject": self.subject,
            "content": self.content,
            "views": self.views,
            "parent": self.parent,
            "children": list(self.children) if self.children is not None else None,
        }

    def __repr__(self) -> str:
        return f"<Post {self.id} /{self.board}/ parent={self.parent}>"
