"""
Script para ejecutar el matching desde la línea de comandos.

Calcula los mejores matches para un cliente o una propiedad e imprime
los resultados como JSON por stdout. Los logs van por stderr.

Uso:
    python -m afinidad.scripts.run_matching --input matches.json
    python -m afinidad.scripts.run_matching --client-id <id> --organization-id <org>
    python -m afinidad.scripts.run_matching --property-id <id> --organization-id <org>

Formato de --input:
    {
        "mode": "client" | "property",
        "anchor": {... registro del cliente o de la propiedad ...},
        "candidates": [{"id": "...", "updated_at": "...", ...}, ...]
    }
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from afinidad.config import get_settings
from afinidad.errors import MatchingError
from afinidad.matching import MatchingEngine, MatchOptions, summarize
from afinidad.models import (
    ClientCandidate,
    ListingAttributes,
    PreferenceProfile,
    PropertyCandidate,
    parse_candidates,
)

logger = structlog.get_logger()


def configure_logging(level: str) -> None:
    """Configura structlog sobre logging estándar (stderr)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Matching cliente-propiedad con score explicable"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", type=Path, help="Archivo JSON con ancla y candidatos")
    source.add_argument("--client-id", help="Buscar propiedades para este cliente")
    source.add_argument("--property-id", help="Buscar clientes para esta propiedad")

    parser.add_argument("--organization-id", help="Organización (requerido con Supabase)")
    parser.add_argument("--min-score", type=float, default=None, help="Score mínimo (0-100)")
    parser.add_argument("--limit", type=int, default=None, help="Máximo de resultados")
    parser.add_argument("--top-n", type=int, default=5, help="Criterios en la explicación")
    parser.add_argument(
        "--no-breakdown",
        action="store_true",
        help="No incluir el breakdown por criterio",
    )

    args = parser.parse_args(argv)
    if args.input is None and not args.organization_id:
        parser.error("--organization-id es requerido con --client-id/--property-id")
    return args


def load_offline(path: Path) -> tuple[str, Optional[str], object, list]:
    """
    Lee ancla y candidatos desde un archivo JSON.

    Returns:
        (mode, anchor_id, anchor, candidates)
    """
    payload = json.loads(path.read_text(encoding="utf-8"))
    mode = payload.get("mode", "client")
    anchor_record = payload.get("anchor") or {}
    records = payload.get("candidates") or []

    if mode == "client":
        anchor = PreferenceProfile.from_record(anchor_record)
        candidates = parse_candidates(records, PropertyCandidate.from_record, source=str(path))
    elif mode == "property":
        anchor = ListingAttributes.from_record(anchor_record)
        candidates = parse_candidates(records, ClientCandidate.from_record, source=str(path))
    else:
        raise ValueError(f"mode debe ser 'client' o 'property': {mode!r}")

    anchor_id = anchor_record.get("id")
    return mode, str(anchor_id) if anchor_id is not None else None, anchor, candidates


def load_from_supabase(args: argparse.Namespace) -> tuple[str, Optional[str], object, list]:
    """Trae ancla y candidatos de Supabase, acotados a la organización."""
    from afinidad.database import ClientRepository, PropertyRepository

    if args.client_id:
        client = ClientRepository().get_by_id(args.client_id, args.organization_id)
        if client is None:
            raise ValueError(f"Cliente no encontrado: {args.client_id}")
        candidates = PropertyRepository().get_candidates(args.organization_id)
        return "client", client.id, client.preferences, candidates

    listing = PropertyRepository().get_by_id(args.property_id, args.organization_id)
    if listing is None:
        raise ValueError(f"Propiedad no encontrada: {args.property_id}")
    candidates = ClientRepository().get_candidates(args.organization_id)
    return "property", listing.id, listing.attributes, candidates


def run(args: argparse.Namespace, engine: Optional[MatchingEngine] = None) -> dict:
    """Ejecuta el matching y devuelve el payload a imprimir."""
    engine = engine or MatchingEngine()
    settings = engine.settings

    if args.input is not None:
        mode, anchor_id, anchor, candidates = load_offline(args.input)
    else:
        mode, anchor_id, anchor, candidates = load_from_supabase(args)

    options = MatchOptions(
        min_score_threshold=(
            args.min_score if args.min_score is not None else settings.min_score_threshold
        ),
        limit=args.limit if args.limit is not None else settings.default_match_limit,
        include_breakdown=not args.no_breakdown,
    )

    if mode == "client":
        results = engine.matches_for_client(anchor, candidates, options, anchor_id=anchor_id)
    else:
        results = engine.matches_for_property(anchor, candidates, options, anchor_id=anchor_id)

    return {
        "mode": mode,
        "anchor_id": anchor_id,
        "total_candidates": len(candidates),
        "results": [
            {**result.to_dict(), "explanation": summarize(result, top_n=args.top_n)}
            for result in results
        ],
    }


def main(argv: Optional[list[str]] = None):
    """Entry point del script."""
    args = parse_args(argv)
    configure_logging(get_settings().log_level)
    logger.info("Iniciando matching...")

    try:
        payload = run(args)
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        logger.info(
            "Matching completado",
            mode=payload["mode"],
            anchor_id=payload["anchor_id"],
            results=len(payload["results"]),
        )
        sys.exit(0)

    except (MatchingError, ValidationError, ValueError, OSError) as e:
        logger.error("Entrada o configuración inválida", error=str(e))
        sys.exit(2)
    except KeyboardInterrupt:
        logger.info("Matching interrumpido por usuario")
        sys.exit(130)
    except Exception as e:
        logger.error("Error fatal en matching", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
