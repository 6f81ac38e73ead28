# SQLAlchemy ORM models: users, property listings, uploaded media and the token ledger.
# Reward and upload rules live in the route handlers; models only describe storage.
from sqlalchemy import BigInteger, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import declarative_mixin

from .db import Base


@declarative_mixin
class TimestampMixin:
    """Common UTC-aware timestamps automatically managed by the database.

    - created_at: set on insert
    - updated_at: set on insert and updated on each modification
    """
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class User(Base, TimestampMixin):
    """Visitor identity holding a token balance.

    token_balance only grows through reward events; each change is mirrored by a TokenTransaction row.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    wallet_address = Column(String(255), nullable=True)
    token_balance = Column(BigInteger, nullable=False, default=0, server_default="0")


class Property(Base, TimestampMixin):
    """Real-estate listing created by an upload."""
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    description = Column(Text, nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    area_sqm = Column(Float, nullable=True)
    # public URLs of the listing's cover media; set whenever the upload carried files
    image_thumb_webp = Column(String(512), nullable=True)
    image_large_webp = Column(String(512), nullable=True)


class MediaUpload(Base):
    """File attached to a property at upload time."""
    __tablename__ = "media_uploads"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    file_path = Column(String(512), nullable=False)
    file_type = Column(String(10), nullable=False)  # "image" or "video"
    # sha256 hex of the file body; not unique, re-uploads are stored with is_original=False
    content_hash = Column(String(64), nullable=False, index=True)
    file_size = Column(BigInteger, nullable=False)
    is_original = Column(Boolean, nullable=False, default=True)
    tokens_earned = Column(BigInteger, nullable=False, default=0)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class TokenTransaction(Base):
    """Append-only ledger of token balance changes."""
    __tablename__ = "token_transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=True, index=True)
    amount = Column(BigInteger, nullable=False)
    transaction_type = Column(String(32), nullable=False)  # "upload_reward"
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
