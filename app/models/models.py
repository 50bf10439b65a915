from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Float, Boolean, ForeignKey, DateTime, Text, JSON, Uuid, UniqueConstraint
import uuid
from datetime import datetime
from app.core.db import Base
from app.core.timestamps import utcnow


class OwnedMixin:
    """Rows that belong to exactly one principal."""
    owner_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class ShareableMixin:
    """Owned rows that the owner may publish for reading."""
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class User(Base):
    __tablename__ = "user"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class Thread(OwnedMixin, ShareableMixin, Base):
    __tablename__ = "threads"
    thread_id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    thread_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)


class WardrobeItem(OwnedMixin, Base):
    __tablename__ = "wardrobe_items"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100))
    category: Mapped[str] = mapped_column(String(32))
    role: Mapped[str | None] = mapped_column(String(32), nullable=True)
    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    colors: Mapped[list | None] = mapped_column(JSON, nullable=True)
    fabrics: Mapped[list | None] = mapped_column(JSON, nullable=True)
    seasons: Mapped[list | None] = mapped_column(JSON, nullable=True)
    tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    dress_codes: Mapped[list | None] = mapped_column(JSON, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(16), nullable=True)
    size: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str] = mapped_column(String(32), default="manual")
    item_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    links: Mapped[list["LookbookItem"]] = relationship(
        "LookbookItem", back_populates="item", cascade="all, delete-orphan", passive_deletes=True
    )


class Lookbook(OwnedMixin, ShareableMixin, Base):
    __tablename__ = "lookbooks"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    links: Mapped[list["LookbookItem"]] = relationship(
        "LookbookItem", back_populates="lookbook", cascade="all, delete-orphan", passive_deletes=True
    )


class LookbookItem(Base):
    __tablename__ = "lookbook_wardrobe_items"
    lookbook_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("lookbooks.id", ondelete="CASCADE"), primary_key=True
    )
    wardrobe_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("wardrobe_items.id", ondelete="CASCADE"), primary_key=True
    )
    category: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[str | None] = mapped_column(String(32), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    lookbook: Mapped["Lookbook"] = relationship("Lookbook", back_populates="links")
    item: Mapped["WardrobeItem"] = relationship("WardrobeItem", back_populates="links")


class Avatar(OwnedMixin, Base):
    __tablename__ = "avatars"
    __table_args__ = (UniqueConstraint("owner_id", name="uq_avatars_owner"),)
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    image_url: Mapped[str] = mapped_column(Text)
    height_cm: Mapped[float] = mapped_column(Float)
    weight_kg: Mapped[float] = mapped_column(Float)
    body_shape: Mapped[str | None] = mapped_column(String(32), nullable=True)
    measurements: Mapped[dict | None] = mapped_column(JSON, nullable=True)
