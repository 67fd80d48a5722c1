from typing import NamedTuple


class CleaningReport(NamedTuple):
    """Descriptive counts comparing a raw sitemap URL list with its cleaned form."""
    original: int
    cleaned: int
    removed: int
    files_removed: int
    language_normalized: int
    duplicates_removed: int

    @property
    def reduction_rate(self) -> str:
        if self.original == 0:
            return "0.0%"
        return f"{(self.removed / self.original) * 100:.1f}%"

    def to_dict(self) -> dict:
        return {
            "original": self.original,
            "cleaned": self.cleaned,
            "removed": self.removed,
            "categories": {
                "files_removed": self.files_removed,
                "language_normalized": self.language_normalized,
                "duplicates_removed": self.duplicates_removed,
            },
            "reduction_rate": self.reduction_rate,
        }
