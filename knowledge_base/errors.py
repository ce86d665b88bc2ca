"""
knowledge_base/errors.py
Failures raised while loading the static data tables.
"""


class DataLoadError(Exception):
    """A data file could not be read or parsed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to load {url}: {reason}")
        self.url = url
        self.reason = reason


class DataValidationError(Exception):
    """The data tables parsed but violate the schema or an integrity rule."""

    def __init__(self, issues: list[str]) -> None:
        super().__init__("; ".join(issues) if issues else "Invalid data")
        self.issues = issues
