"""ORM model for shared file resources."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, String, Text, func

from hearth.models.base import Base

ACCESS_ALL = "all"
ACCESS_ADMIN = "admin"
ACCESS_LEVELS = (ACCESS_ALL, ACCESS_ADMIN)


class Resource(Base):
    """
    File metadata; the bytes live in the blob store under storage_key.

    download_count only ever increases.
    """

    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    storage_key = Column(String(128), nullable=False, unique=True)
    original_name = Column(String(512), nullable=False, default="")
    content_type = Column(String(255), nullable=False, default="application/octet-stream")
    size_bytes = Column(BigInteger, nullable=False, default=0)
    access_level = Column(String(16), nullable=False, default=ACCESS_ALL)
    download_count = Column(Integer, nullable=False, default=0)
    uploaded_by = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    uploaded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)
