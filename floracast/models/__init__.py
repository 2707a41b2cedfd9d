"""ORM model registry — importing this module registers every table on Base.metadata.

Application code can do::

    from floracast.models import Cama, Observacion, Pinche, ...
"""

# ── Base ────────────────────────────────────────────────────────────────────
from floracast.models.base import Base

# ── Field events ────────────────────────────────────────────────────────────
from floracast.models.events import Observacion, Pinche, Produccion

# ── Farm layout ─────────────────────────────────────────────────────────────
from floracast.models.farm import Bloque, Cama, Finca, GrupoCama, Variedad

# ── Phenology reference ─────────────────────────────────────────────────────
from floracast.models.phenology import EstadoFenologico

__all__ = [
    "Base",
    "Bloque",
    "Cama",
    "EstadoFenologico",
    "Finca",
    "GrupoCama",
    "Observacion",
    "Pinche",
    "Produccion",
    "Variedad",
]
