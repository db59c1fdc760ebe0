"""Base model shared by every dashboard payload."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DashboardModel(BaseModel):
    """Base model; serialises with camelCase keys for the dashboard frontend."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
