"""EstadoFenologico ORM model — per-unit stage duration reference table.

One row per (block, variety) with a nullable ``dias_<stage>`` column for every
stage in the cycle.  Null or zero means "use the global default"; resolution
happens in :class:`floracast.engine.stages.StageDurations`.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from floracast.engine.stages import STAGE_ORDER
from floracast.models.base import Base


class EstadoFenologico(Base):
    """Configured stage durations (days) for one planting unit."""

    __tablename__ = "estado_fenologico"

    id_bloque: Mapped[int] = mapped_column(
        Integer, ForeignKey("bloque.id_bloque"), primary_key=True
    )
    id_variedad: Mapped[int] = mapped_column(
        Integer, ForeignKey("variedad.id_variedad"), primary_key=True
    )
    dias_brotacion: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_cincuenta_mm: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_quince_cm: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_veinte_cm: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_primera_hoja: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_espiga: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_arroz: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_arveja: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_garbanzo: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_uva: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_rayando_color: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_sepalos_abiertos: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dias_cosecha: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def durations(self) -> dict[str, int | None]:
        """Raw ``{stage: days}`` mapping in cycle order."""
        return {stage.value: getattr(self, f"dias_{stage.value}") for stage in STAGE_ORDER}

    def __repr__(self) -> str:
        return (
            f"<EstadoFenologico bloque={self.id_bloque} "
            f"variedad={self.id_variedad}>"
        )
