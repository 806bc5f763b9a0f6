"""Wire models for bus messages."""

import base64
import binascii
import json
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_pascal

M = TypeVar("M", bound=BaseModel)


def _decode_base64(value: Any) -> Any:
    if isinstance(value, str):
        if not value:
            return None
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"invalid base64 image data: {e}") from e
    return value


def _encode_base64(value: bytes | None) -> str | None:
    if value is None:
        return None
    return base64.b64encode(value).decode("ascii")


# Binary fields travel as base64 strings in JSON
Base64Bytes = Annotated[
    bytes | None,
    BeforeValidator(_decode_base64),
    PlainSerializer(_encode_base64, when_used="json"),
]


class EventPayload(BaseModel):
    """Base for event payloads; fields are PascalCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, coerce_numbers_to_str=True
    )

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")


class Envelope(BaseModel):
    """A routed, serialized bus message."""

    routing_key: str = Field(..., description="Routing key, e.g. 'product.created'")
    payload: bytes = Field(..., description="UTF-8 JSON body")
    persistent: bool = Field(default=True, description="Survives a broker restart")
    message_id: str | None = Field(default=None, description="Broker message id, kept on redelivery")

    @classmethod
    def wrap(cls, payload: BaseModel | dict[str, Any], routing_key: str) -> "Envelope":
        """Serialize a payload into an envelope."""
        if isinstance(payload, BaseModel):
            body = payload.model_dump_json(by_alias=True).encode("utf-8")
        else:
            body = json.dumps(payload, default=str).encode("utf-8")
        return cls(routing_key=routing_key, payload=body)

    def decode(self, model: type[M]) -> M:
        """Validate the body against a payload model.

        Raises:
            pydantic.ValidationError: If the body is not valid JSON or fails the schema.
        """
        return model.model_validate_json(self.payload)
