"""Language handling for category descriptions."""

from typing import Iterable, Optional

from shiftbook.config import get_settings
from shiftbook.core.exceptions import ValidationException
from shiftbook.domain.repositories.category_repository import CategoryRepository
from shiftbook.domain.schemas.shiftbook import LogRead

settings = get_settings()


def get_supported_languages() -> list[str]:
    return [lang.lower() for lang in settings.SUPPORTED_LANGUAGES]


def is_language_supported(language: str) -> bool:
    return language.lower() in get_supported_languages()


def resolve_language(language: Optional[str]) -> str:
    """Explicit language if given and supported, the default language if omitted."""
    if not language:
        return settings.DEFAULT_LANGUAGE.lower()
    if not is_language_supported(language):
        raise ValidationException(
            f"Unsupported language '{language}'. Supported languages: {', '.join(get_supported_languages())}",
            details={"language": language},
        )
    return language.lower()


def fallback_chain(language: str) -> list[str]:
    chain = [language.lower()]
    default = settings.DEFAULT_LANGUAGE.lower()
    if default not in chain:
        chain.append(default)
    return chain


def localize_categories(
    repo: CategoryRepository,
    logs: Iterable[LogRead],
    plant: str,
    language: str,
) -> None:
    """Fill ``category_desc``/``category_language`` of every log from one translation lookup."""
    logs = list(logs)
    if not logs:
        return

    chain = fallback_chain(language)
    translations = repo.get_translations({log.category_id for log in logs}, plant, chain)

    for log in logs:
        log.category_desc = f"Category {log.category_id}"
        log.category_language = "none"
        for lang in chain:
            description = translations.get((log.category_id, lang.upper()))
            if description:
                log.category_desc = description
                log.category_language = lang
                break
