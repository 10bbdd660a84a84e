from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from insightguru.db.sqlite import Base


class StoredItem(Base):
    """One key/value pair of the client's local storage."""
    __tablename__ = "local_storage"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
