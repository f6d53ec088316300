"""Registration keys: the (type, tag) pair identifying one registry slot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union


def type_name(service_type: Any) -> str:
    return getattr(service_type, "__qualname__", None) or repr(service_type)


@dataclass(frozen=True)
class RegistrationKey:
    """
    Composite key of a declared type and an optional tag.

    Untagged registrations use ``tag=None``. Keys render as ``Repo`` or
    ``Repo[primary]`` in logs and error messages.
    """

    service_type: Any
    tag: Optional[str] = None

    @classmethod
    def of(cls, target: Union["RegistrationKey", Any], tag: Optional[str] = None) -> "RegistrationKey":
        """Build a key from a bare type, or pass an existing key through."""
        if isinstance(target, RegistrationKey):
            if tag is not None and tag != target.tag:
                raise ValueError(f"Conflicting tag {tag!r} given for key {target}")
            return target
        return cls(target, tag)

    def __str__(self) -> str:
        name = type_name(self.service_type)
        if self.tag is None:
            return name
        return f"{name}[{self.tag}]"
