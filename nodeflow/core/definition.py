"""Node definition interface.

Every node type implements this abstract base class. A definition is
shared by all instances of its type and holds no per-run state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Mapping

from nodeflow.core.types import DataType, PortSpec

if TYPE_CHECKING:
    from nodeflow.core.instance import NodeContext


class NodeDefinition(ABC):
    """Abstract base class for node types.

    Subclasses declare their ports and implement :meth:`compute`.
    Types whose inputs depend on configuration override :meth:`input_specs`.

    Example:
        >>> class UpperNode(NodeDefinition):
        ...     type_name = "upper"
        ...     INPUTS = {"in_text": PortSpec(dtype=DataType.STRING)}
        ...     OUTPUTS = {"out_text": PortSpec(dtype=DataType.STRING)}
        ...
        ...     async def compute(self, inputs, config, context):
        ...         return {"out_text": inputs.get("in_text", "").upper()}
    """

    type_name: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    description: ClassVar[str] = ""

    INPUTS: ClassVar[dict[str, PortSpec]] = {}
    OUTPUTS: ClassVar[dict[str, PortSpec]] = {}

    def default_config(self) -> dict[str, Any]:
        """Configuration a freshly placed node starts with."""
        return {}

    def input_specs(self, config: Mapping[str, Any]) -> dict[str, PortSpec]:
        """Declared input ports under ``config``."""
        return dict(self.INPUTS)

    def current_input_ports(self, config: Mapping[str, Any]) -> dict[str, DataType]:
        """All input ports declared under ``config``, mapped to their data type."""
        return {port: spec.dtype for port, spec in self.input_specs(config).items()}

    def required_input_ports(self, config: Mapping[str, Any]) -> dict[str, DataType]:
        """Input ports that must be connected before the node can run."""
        return {
            port: spec.dtype
            for port, spec in self.input_specs(config).items()
            if spec.required
        }

    def output_ports(self) -> dict[str, DataType]:
        """Output ports, constant per type."""
        return {port: spec.dtype for port, spec in self.OUTPUTS.items()}

    @abstractmethod
    async def compute(
        self,
        inputs: dict[str, Any],
        config: dict[str, Any],
        context: NodeContext,
    ) -> dict[str, Any]:
        """Run the node's logic.

        Args:
            inputs: Values collected from completed parents, keyed by input port.
            config: Point-in-time copy of the node's configuration.
            context: Execution context carrying the run's cancellation signal.

        Returns:
            Mapping of output port to value.

        Raises:
            ConfigurationError: If a required field is missing.
            ExternalCallError: If an outbound call fails.
            NodeCancelledError: If the run is cancelled mid-compute.
        """
        ...

    def describe(self) -> dict[str, Any]:
        """Serializable summary for the editor's node palette."""
        defaults = self.default_config()
        return {
            "type": self.type_name,
            "display_name": self.display_name or self.__class__.__name__,
            "description": self.description or (self.__doc__ or "").strip(),
            "inputs": {
                port: spec.model_dump(mode="json")
                for port, spec in self.input_specs(defaults).items()
            },
            "outputs": {port: spec.model_dump(mode="json") for port, spec in self.OUTPUTS.items()},
            "default_config": defaults,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.type_name!r})"
