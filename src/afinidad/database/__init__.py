"""
Módulo de base de datos.

Provee acceso a Supabase para traer candidatos al motor de matching.
"""

from afinidad.database.supabase_client import get_supabase_client, SupabaseClient
from afinidad.database.repositories import (
    ClientRepository,
    PropertyRepository,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "ClientRepository",
    "PropertyRepository",
]
