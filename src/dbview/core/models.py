from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exchanged with the record store and the UI.

    Attributes are snake_case in Python and camelCase on the wire; both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_wire(self) -> dict:
        """Dump with camelCase keys, as the record store expects."""
        return self.model_dump(mode="json", by_alias=True)
