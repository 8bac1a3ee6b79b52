"""
Exceptions personnalisées pour NIM Proxy Gateway.
"""
from typing import Optional


class NimProxyError(Exception):
    """Exception de base pour toutes les erreurs du proxy."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or "unknown_error"
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} - Détails: {self.details}"
        return f"[{self.code}] {self.message}"


class ConfigurationError(NimProxyError):
    """Erreur de configuration (fichier manquant, valeur invalide)."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(
            message=message,
            code="config_error",
            details={"key": config_key} if config_key else {}
        )


class ProviderError(NimProxyError):
    """Erreur liée à un provider (provider inconnu, URL invalide)."""

    def __init__(self, message: str, provider: str = None):
        super().__init__(
            message=message,
            code="provider_error",
            details={"provider": provider} if provider else {}
        )


class UpstreamError(NimProxyError):
    """
    Échec de l'appel upstream: erreur réseau ou statut >= 500.

    `status_code` vaut None quand aucune réponse n'a été reçue.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider: str = None
    ):
        super().__init__(
            message=message,
            code="upstream_error",
            details={"provider": provider, "status_code": status_code} if provider else {}
        )
        self.status_code = status_code
        self.provider = provider

    @property
    def client_status(self) -> int:
        """Statut HTTP à renvoyer au client (500 si inconnu)."""
        return self.status_code or 500
