"""Visual graph and endpoint catalog models."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class VisualNode(BaseModel):
    """A node drawn in the visual editor. `connections` lists downstream node ids."""
    model_config = ConfigDict(extra="ignore")

    id: str
    endpoint: Optional[str] = None
    inputs: Dict[str, Any] = Field(default_factory=dict)
    config: Dict[str, Any] = Field(default_factory=dict)
    connections: List[str] = Field(default_factory=list)


class EndpointParam(BaseModel):
    name: str
    type: str
    required: bool = False
    description: str = ""
    default: Any = None


class ApiEndpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    category: str
    method: str = "GET"
    inputs: List[EndpointParam] = Field(default_factory=list)
    outputs: List[EndpointParam] = Field(default_factory=list)

    @property
    def input_names(self) -> List[str]:
        return [param.name for param in self.inputs]

    @property
    def output_names(self) -> List[str]:
        return [param.name for param in self.outputs]
