"""
Data-access exceptions.

Raised by repositories and the column codec; the API layer maps them to HTTP
responses.
"""


class RepositoryError(Exception):
    """Base class for errors raised by the data-access layer."""


class DuplicateEntryError(RepositoryError):
    """A store-enforced uniqueness constraint rejected an insert or update."""

    def __init__(self, entity: str, field: str):
        self.entity = entity
        self.field = field
        super().__init__(f"duplicate {entity} {field}")


class PayloadDecodeError(RepositoryError):
    """A serialized column holds text that cannot be decoded."""

    def __init__(self, column: str, reason: str):
        self.column = column
        self.reason = reason
        super().__init__(f"cannot decode stored {column}: {reason}")


class InvalidSortError(RepositoryError):
    """Requested sort key or direction is outside the allow-list."""

    def __init__(self, value: str, allowed):
        self.value = value
        self.allowed = sorted(allowed)
        super().__init__(f"invalid sort option {value!r}")


class NoFieldsToUpdateError(RepositoryError):
    """An update call carried no recognised field."""

    def __init__(self):
        super().__init__("No fields to update")
