"""
Repositorios de lectura en Supabase.

Proveen los candidatos que consume el motor de matching: leen registros
de clientes y propiedades de una organización y los convierten en
snapshots inmutables. El motor nunca consulta la base directamente.
"""

from typing import Optional

import structlog

from afinidad.database.supabase_client import get_supabase_client, SupabaseClient
from afinidad.models import ClientCandidate, PropertyCandidate, parse_candidates

logger = structlog.get_logger()

# Estados que participan del matching
MATCHABLE_CLIENT_STATUSES = ["LEAD", "ACTIVE"]
MATCHABLE_PROPERTY_STATUSES = ["ACTIVE", "PENDING"]


class BaseRepository:
    """Clase base para repositorios."""

    TABLE = ""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or get_supabase_client()

    @property
    def client(self) -> SupabaseClient:
        return self._client

    def _get_record(self, record_id: str, organization_id: str) -> Optional[dict]:
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("id", record_id)
            .eq("organizationId", organization_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def _get_matchable(
        self, organization_id: str, statuses: list[str], status_column: str, limit: int
    ) -> list[dict]:
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("organizationId", organization_id)
            .in_(status_column, statuses)
            .order("updatedAt", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data


class ClientRepository(BaseRepository):
    """Clientes con sus preferencias de búsqueda."""

    TABLE = "clients"

    def get_by_id(self, client_id: str, organization_id: str) -> Optional[ClientCandidate]:
        """Obtiene un cliente de la organización por su ID."""
        record = self._get_record(client_id, organization_id)
        return ClientCandidate.from_record(record) if record else None

    def get_candidates(self, organization_id: str, limit: int = 1000) -> list[ClientCandidate]:
        """
        Clientes que pueden matchear con una propiedad.

        Returns:
            Clientes en estado LEAD o ACTIVE de la organización
        """
        records = self._get_matchable(
            organization_id, MATCHABLE_CLIENT_STATUSES, "client_status", limit
        )
        logger.info(
            "Clientes candidatos obtenidos",
            organization_id=organization_id,
            total=len(records),
        )
        return parse_candidates(records, ClientCandidate.from_record, source=self.TABLE)


class PropertyRepository(BaseRepository):
    """Propiedades publicadas con sus atributos."""

    TABLE = "properties"

    def get_by_id(self, property_id: str, organization_id: str) -> Optional[PropertyCandidate]:
        """Obtiene una propiedad de la organización por su ID."""
        record = self._get_record(property_id, organization_id)
        return PropertyCandidate.from_record(record) if record else None

    def get_candidates(self, organization_id: str, limit: int = 1000) -> list[PropertyCandidate]:
        """
        Propiedades que pueden matchear con un cliente.

        Returns:
            Propiedades en estado ACTIVE o PENDING de la organización
        """
        records = self._get_matchable(
            organization_id, MATCHABLE_PROPERTY_STATUSES, "property_status", limit
        )
        logger.info(
            "Propiedades candidatas obtenidas",
            organization_id=organization_id,
            total=len(records),
        )
        return parse_candidates(records, PropertyCandidate.from_record, source=self.TABLE)
