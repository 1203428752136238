from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..utils.errors import SchemaError
from .parameters import ParameterTable


@dataclass(frozen=True)
class Model:
    """A behavioural model declaration.

    ``parent`` is a weak reference to another model id; this layer does not
    resolve it.
    """

    id: str
    gtu_type: Optional[str] = None
    parent: Optional[str] = None
    parameters: ParameterTable = field(default_factory=ParameterTable)

    def __post_init__(self) -> None:
        if not self.id:
            raise SchemaError("Model requires an Id")
        if self.parent == self.id:
            raise SchemaError(f"Model {self.id} cannot be its own parent")
