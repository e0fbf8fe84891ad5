from __future__ import annotations

import uuid

from pgvector.sqlalchemy import Vector
from sqlalchemy import JSON, Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from concertops.config import EMBED_DIM

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class Profile(Base):
    __tablename__ = "profiles"

    # Same id as the hosted auth user
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(8), nullable=False, default="tm")
    tour_scale: Mapped[str] = mapped_column(String(16), nullable=False, default="theater")
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    default_role: Mapped[str | None] = mapped_column(String(8), nullable=True)
    default_tour_scale: Mapped[str | None] = mapped_column(String(16), nullable=True)
    default_currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")
    crisis_mode_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    plan: Mapped[str] = mapped_column(String(32), nullable=False, default="free")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    current_period_start: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    current_period_end: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class UsageMetric(Base):
    __tablename__ = "usage_metrics"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    total_queries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    queries_this_month: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_query_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Tour(Base):
    __tablename__ = "tours"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(255))
    artist_name: Mapped[str] = mapped_column(String(255))
    tour_scale: Mapped[str] = mapped_column(String(16), nullable=False, default="theater")
    tour_type: Mapped[str] = mapped_column(String(16), nullable=False, default="headline")
    start_date: Mapped[Date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[Date | None] = mapped_column(Date, nullable=True)
    regions: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")
    num_shows: Mapped[int | None] = mapped_column(Integer, nullable=True)
    avg_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    avg_guarantee: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), index=True)


class ConversationLog(Base):
    __tablename__ = "conversation_logs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    tour_id: Mapped[str | None] = mapped_column(ForeignKey("tours.id", ondelete="SET NULL"), nullable=True, index=True)
    role: Mapped[str] = mapped_column(String(8))
    tour_scale: Mapped[str] = mapped_column(String(16))
    mode: Mapped[str] = mapped_column(String(16))
    user_message: Mapped[str] = mapped_column(Text)
    assistant_message: Mapped[str] = mapped_column(Text)
    retrieved_chunk_ids: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    is_starred: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    user_feedback: Mapped[str | None] = mapped_column(String(16), nullable=True)
    tags: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)


class CoreDoc(Base):
    __tablename__ = "core_docs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    file_name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    doc_type: Mapped[str] = mapped_column(String(64), nullable=False, default="general", index=True)
    raw_text: Mapped[str] = mapped_column(Text)
    word_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    char_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class DocChunk(Base):
    __tablename__ = "doc_chunks"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    doc_id: Mapped[str] = mapped_column(ForeignKey("core_docs.id", ondelete="CASCADE"), index=True)
    chunk_index: Mapped[int] = mapped_column(Integer)
    chunk_text: Mapped[str] = mapped_column(Text)
    embedding: Mapped[Vector] = mapped_column(Vector(EMBED_DIM))
    token_count: Mapped[int | None] = mapped_column(Integer, nullable=True)


class BudgetTemplate(Base):
    __tablename__ = "budget_templates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    tour_id: Mapped[str | None] = mapped_column(ForeignKey("tours.id", ondelete="SET NULL"), nullable=True)
    name: Mapped[str] = mapped_column(String(255))
    budget_data: Mapped[dict] = mapped_column(JSONType)
    ai_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    estimated_margin_low: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimated_margin_high: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)


class Settlement(Base):
    __tablename__ = "settlements"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    tour_id: Mapped[str | None] = mapped_column(ForeignKey("tours.id", ondelete="SET NULL"), nullable=True)
    show_name: Mapped[str] = mapped_column(String(255))
    show_date: Mapped[Date | None] = mapped_column(Date, nullable=True)
    venue_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    venue_city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gross_tickets: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_taxes: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_fees: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    venue_rent: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    marketing_costs: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    production_reimbursements: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    artist_guarantee: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    overage_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=85.0)
    settlement_data: Mapped[dict] = mapped_column(JSONType)
    ai_breakdown: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_watchouts: Mapped[str | None] = mapped_column(Text, nullable=True)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
