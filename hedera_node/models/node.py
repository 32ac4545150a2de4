"""Node catalog models.

Describe the parameters a node shows on the host platform. Nothing here is
persisted.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class NodeCategory(str, Enum):
    TOOL = "tool"  # no credentials needed
    API = "api"  # talks to an external network with credentials


class NodeInputType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OPTIONS = "options"
    ANY = "any"


class NodeOutputType(str, Enum):
    ARRAY = "array"


@dataclass
class NodeInput:
    """One node parameter.

    ``display_options`` maps another parameter's name to the values for which
    this one is shown, e.g. ``{"resource": ["account"]}``. It only affects
    presentation; validation is done by the request models.
    """

    name: str
    display_name: str
    type: NodeInputType
    description: str = ""
    required: bool = True
    default: Any = None
    options: list[str] | None = None
    display_options: dict[str, list[str]] | None = None
    min_value: float | None = None
    number_precision: int | None = None


@dataclass
class NodeOutput:
    name: str
    display_name: str
    type: NodeOutputType
    description: str = ""


@dataclass
class NodeDefinition:
    """Node metadata served by the catalog API."""

    name: str
    display_name: str
    description: str
    category: NodeCategory
    inputs: list[NodeInput] = field(default_factory=list)
    outputs: list[NodeOutput] = field(default_factory=list)
    credential_type: str | None = None
    icon: str | None = None
    version: str = "1.0.0"
    tags: list[str] = field(default_factory=list)

    def get_input(self, name: str) -> NodeInput | None:
        return next((inp for inp in self.inputs if inp.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form with enum members replaced by their values."""
        return asdict(
            self,
            dict_factory=lambda items: {
                key: value.value if isinstance(value, Enum) else value for key, value in items
            },
        )
