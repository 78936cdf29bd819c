"""Response body decoders.

An :class:`ObjectDecoder` pairs a target type with a function turning raw
body bytes into a value of that type. Decoding into :class:`EmptyBody`
never looks at the body, so it succeeds for any content, including an
empty body.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Generic, Type, TypeVar

from pydantic import BaseModel, TypeAdapter

from ..exceptions import BadResponseError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class EmptyBody:
    """Value of responses with no meaningful body."""


@dataclass(frozen=True)
class ObjectDecoder(Generic[T]):
    """Decoder from response bytes to ``target``.

    :param target: Type produced by the decoder
    :param function: Callable decoding raw bytes
    """

    target: Type[T]
    function: Callable[[bytes], T]

    @property
    def is_empty(self) -> bool:
        return isinstance(self.target, type) and issubclass(self.target, EmptyBody)

    def decode(self, data: bytes) -> T:
        return self.function(data)

    @classmethod
    def json(cls) -> "ObjectDecoder[Any]":
        """Decode the body as JSON into plain Python objects."""
        return cls(target=object, function=json.loads)

    @classmethod
    def text(cls, encoding: str = "utf-8") -> "ObjectDecoder[str]":
        """Decode the body as text, failing on invalid bytes."""
        return cls(target=str, function=lambda data: data.decode(encoding))

    @classmethod
    def model(cls, model: Type[M]) -> "ObjectDecoder[M]":
        """Decode and validate the JSON body as a pydantic model."""
        return cls(target=model, function=model.model_validate_json)

    @classmethod
    def type_adapter(cls, target: Any) -> "ObjectDecoder[Any]":
        """Decode and validate the JSON body as any type pydantic supports.

        Useful for containers such as ``List[Model]``.
        """
        adapter = TypeAdapter(target)
        return cls(target=object, function=adapter.validate_json)

    @classmethod
    def empty(cls) -> "ObjectDecoder[EmptyBody]":
        """Decoder that ignores the body."""
        return cls(target=EmptyBody, function=lambda data: EmptyBody())


def decode_response(data: bytes, decoder: ObjectDecoder[T]) -> T:
    """Decode ``data`` with ``decoder``.

    :param data: Raw response body
    :param decoder: Decoder to apply
    :return: Decoded value, :class:`EmptyBody` for empty decoders
    :raises BadResponseError: If the decoder raises
    """
    if decoder.is_empty:
        return EmptyBody()  # type: ignore[return-value]
    try:
        return decoder.decode(data)
    except Exception as e:
        raise BadResponseError(e) from e
