from dataclasses import dataclass

from libs.settings import Settings


@dataclass(frozen=True)
class ListingDefaults:
    """Fallbacks applied to catalog listing parameters."""

    page: int = 1
    limit: int = 6
    max_limit: int = 100
    sort: str = "featured"
    all_categories: str = "all"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ListingDefaults":
        return cls(
            page=settings.default_page,
            limit=settings.default_limit,
            max_limit=settings.max_page_limit,
            sort=settings.default_sort,
            all_categories=settings.all_categories_sentinel,
        )
