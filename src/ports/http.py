"""HTTP port definition (DTO)."""

from dataclasses import dataclass, field

__all__ = ["RestQuery"]


@dataclass
class RestQuery:
    """Read query against one REST table endpoint.

    Decouples the data store adapter from HTTP implementation details.

    Attributes:
        table: Table name, appended to the REST base path.
        select: Comma separated column list.
        filters: Column to filter expression, e.g. {"user_id": "eq.42"}.
    """

    table: str
    select: str = "*"
    filters: dict[str, str] = field(default_factory=dict)

    def params(self) -> dict[str, str]:
        """Return query string parameters for the request."""
        return {"select": self.select, **self.filters}
