"""
Errores del motor de matching.

Los datos incompletos nunca son un error: se absorben en el scoring.
Solo la configuración inválida y las opciones inválidas por llamada se
reportan, siempre indicando el campo culpable.
"""

from typing import Optional


class MatchingError(Exception):
    """Error base del motor de matching."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConfigurationError(MatchingError, ValueError):
    """Perfil de pesos o settings inválidos. Se detecta antes de puntuar."""


class InputError(MatchingError, ValueError):
    """Opciones inválidas en una llamada puntual (threshold, limit, policy)."""
