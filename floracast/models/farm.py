"""Farm layout ORM models — finca, bloque, variedad, grupo_cama, cama.

A bed (``cama``) belongs to a bed group (``grupo_cama``) which pins the bed to
one block and one variety; that (block, variety) pair is the planting unit the
projection engine works on.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from floracast.models.base import Base

# ═══════════════════════════════════════════════════════════════════════════
# Farm / block / variety
# ═══════════════════════════════════════════════════════════════════════════


class Finca(Base):
    """A farm."""

    __tablename__ = "finca"

    id_finca: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Finca id={self.id_finca} nombre={self.nombre!r}>"


class Bloque(Base):
    """A block within a farm."""

    __tablename__ = "bloque"

    id_bloque: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    id_finca: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("finca.id_finca"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Bloque id={self.id_bloque} nombre={self.nombre!r}>"


class Variedad(Base):
    """A flower variety."""

    __tablename__ = "variedad"

    id_variedad: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Variedad id={self.id_variedad} nombre={self.nombre!r}>"


# ═══════════════════════════════════════════════════════════════════════════
# Beds
# ═══════════════════════════════════════════════════════════════════════════


class GrupoCama(Base):
    """Bed group — binds its beds to one (block, variety) planting unit."""

    __tablename__ = "grupo_cama"

    id_grupo: Mapped[int] = mapped_column(Integer, primary_key=True)
    id_bloque: Mapped[int] = mapped_column(
        Integer, ForeignKey("bloque.id_bloque"), nullable=False
    )
    id_variedad: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("variedad.id_variedad"), nullable=True
    )


class Cama(Base):
    """A single bed."""

    __tablename__ = "cama"

    id_cama: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    id_grupo: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("grupo_cama.id_grupo"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Cama id={self.id_cama} nombre={self.nombre!r}>"
