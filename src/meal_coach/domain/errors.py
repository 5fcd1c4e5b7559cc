"""Error types raised across service boundaries."""

from meal_coach.domain.locale import Locale

_GENERATION_MESSAGES: dict[str, dict[str, str]] = {
    "unavailable": {
        "fr": (
            "La génération a échoué. L'IA est peut-être occupée ou une erreur "
            "est survenue. Veuillez réessayer."
        ),
        "en": (
            "Generation failed. The AI might be busy or an error occurred. "
            "Please try again."
        ),
    },
    "structure": {
        "fr": "La réponse de l'IA est invalide. Veuillez réessayer.",
        "en": "The AI returned an invalid response. Please try again.",
    },
}


class GenerationError(Exception):
    """Base error for failed content generation."""

    code = "generation_failed"
    _kind = "unavailable"

    def __init__(self, detail: str, locale: Locale = "en") -> None:
        super().__init__(detail)
        self.detail = detail
        self.locale = locale

    @property
    def user_message(self) -> str:
        """Localized, retryable message for display."""
        return _GENERATION_MESSAGES[self._kind][self.locale]


class GenerationUnavailableError(GenerationError):
    """Backend unreachable, quota exhausted or failing."""

    code = "generation_unavailable"
    _kind = "unavailable"


class GenerationStructureError(GenerationError):
    """Backend reply is not JSON or does not match the requested shape."""

    code = "generation_invalid_structure"
    _kind = "structure"


class SyncError(Exception):
    """Remote store read or write failed."""
