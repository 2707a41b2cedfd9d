"""Field event ORM models — observations, pinches and production records.

All three are append-only in the field-data store.  Quantities are nullable
there, so the engine coerces whatever it reads.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from floracast.models.base import Base


class Observacion(Base):
    """Stem count observed on a bed at one of the observable stages."""

    __tablename__ = "observacion"
    __table_args__ = (Index("ix_observacion_creado_en", "creado_en"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    creado_en: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    id_cama: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("cama.id_cama"), nullable=True
    )
    tipo_observacion: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cantidad: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Observacion id={self.id} cama={self.id_cama} "
            f"tipo={self.tipo_observacion!r} ts={self.creado_en}>"
        )


class Pinche(Base):
    """Pinch record — restarts stem development at the first stage.

    Refers either to a bed (``cama``) or directly to a block and variety.
    """

    __tablename__ = "pinche"
    __table_args__ = (Index("ix_pinche_created_at", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    bloque: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("bloque.id_bloque"), nullable=True
    )
    variedad: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("variedad.id_variedad"), nullable=True
    )
    cama: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("cama.id_cama"), nullable=True
    )
    cantidad: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<Pinche id={self.id} cama={self.cama} ts={self.created_at}>"


class Produccion(Base):
    """Stems actually cut for a (block, variety) on a given day."""

    __tablename__ = "produccion"
    __table_args__ = (Index("ix_produccion_created_at", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    bloque: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("bloque.id_bloque"), nullable=True
    )
    variedad: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("variedad.id_variedad"), nullable=True
    )
    cantidad: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Produccion id={self.id} bloque={self.bloque} "
            f"variedad={self.variedad} ts={self.created_at}>"
        )
