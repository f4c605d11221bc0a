"""Entity <-> bytes encoding for the key-value store.

Records are stored as compact UTF-8 JSON envelopes::

    {"fields":{...},"type":"Document","version":1}

Keys are sorted so equal entities always encode to identical bytes. The
type tag and the exact field set make every record self-describing, so a
record written for another entity type or an older layout is rejected
instead of being silently misread.
"""

import dataclasses
import json
import typing
from typing import Any, Generic, TypeVar, Union

from libai.errors import DeserializeError, SerializeError

CODEC_VERSION = 1

E = TypeVar("E")


def _matches(value: Any, hint: Any) -> bool:
    """Check ``value`` against a simple annotation (str/int/bool/Optional)."""
    if typing.get_origin(hint) is Union:
        return any(_matches(value, arg) for arg in typing.get_args(hint))
    if hint is type(None):
        return value is None
    if hint is int:
        # bool is an int subclass but a different field type
        return isinstance(value, int) and not isinstance(value, bool)
    if isinstance(hint, type):
        return isinstance(value, hint)
    return False


class EntityCodec(Generic[E]):
    """Encode and decode one dataclass entity type."""

    def __init__(self, entity_type: type[E]):
        if not dataclasses.is_dataclass(entity_type):
            raise TypeError(f"{entity_type!r} is not a dataclass")
        self.entity_type = entity_type
        self.type_name = entity_type.__name__
        self._fields = dataclasses.fields(entity_type)
        self._hints = typing.get_type_hints(entity_type)

    def encode(self, entity: E) -> bytes:
        """Serialize an entity.

        Raises:
            SerializeError: If the entity has the wrong type or a field
                value does not match its declared type.
        """
        if not isinstance(entity, self.entity_type):
            raise SerializeError(
                f"expected {self.type_name}, got {type(entity).__name__}"
            )

        values = {}
        for f in self._fields:
            value = getattr(entity, f.name)
            if not _matches(value, self._hints[f.name]):
                raise SerializeError(
                    f"{self.type_name}.{f.name} has invalid value {value!r}"
                )
            values[f.name] = value

        envelope = {"type": self.type_name, "version": CODEC_VERSION, "fields": values}
        try:
            text = json.dumps(
                envelope,
                ensure_ascii=False,
                sort_keys=True,
                separators=(",", ":"),
                allow_nan=False,
            )
            return text.encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializeError(f"failed to encode {self.type_name}: {e}") from e

    def decode(self, data: bytes) -> E:
        """Rebuild an entity from stored bytes.

        Raises:
            DeserializeError: If the bytes are not a valid record of this
                entity type.
        """
        try:
            envelope = json.loads(bytes(data).decode("utf-8"))
        except ValueError as e:
            raise DeserializeError(f"stored {self.type_name} is not valid JSON: {e}") from e

        if not isinstance(envelope, dict):
            raise DeserializeError(f"stored {self.type_name} is not an object")
        if envelope.get("type") != self.type_name:
            raise DeserializeError(
                f"expected type {self.type_name!r}, found {envelope.get('type')!r}"
            )
        if envelope.get("version") != CODEC_VERSION:
            raise DeserializeError(
                f"unsupported {self.type_name} version {envelope.get('version')!r}"
            )

        stored = envelope.get("fields")
        if not isinstance(stored, dict):
            raise DeserializeError(f"stored {self.type_name} has no fields object")

        expected = {f.name for f in self._fields}
        missing = expected - stored.keys()
        unknown = stored.keys() - expected
        if missing or unknown:
            raise DeserializeError(
                f"{self.type_name} field mismatch: "
                f"missing={sorted(missing)} unknown={sorted(unknown)}"
            )

        for name, value in stored.items():
            if not _matches(value, self._hints[name]):
                raise DeserializeError(
                    f"{self.type_name}.{name} has invalid stored value {value!r}"
                )

        init_args = {f.name: stored[f.name] for f in self._fields if f.init}
        try:
            entity = self.entity_type(**init_args)
        except (TypeError, ValueError) as e:
            raise DeserializeError(f"invalid stored {self.type_name}: {e}") from e

        # Derived fields are recomputed on construction and must agree
        for f in self._fields:
            if not f.init and getattr(entity, f.name) != stored[f.name]:
                raise DeserializeError(
                    f"{self.type_name}.{f.name} is {stored[f.name]!r} in storage "
                    f"but {getattr(entity, f.name)!r} when recomputed"
                )
        return entity

