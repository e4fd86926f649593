"""LLM tools the model may call while generating a response

Each tool is a ToolDescriptor registered by name: a description, a pydantic
model describing its arguments, and the function that runs it. The model sees
the enabled subset in OpenAI function-calling format; calls coming back from
the model are validated against the argument model before anything runs.
"""

import inspect
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from chat_backend.core.errors import ToolCallRejected


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    parameters: Type[BaseModel]
    execute: Callable[..., Any]

    def to_openai(self) -> Dict[str, Any]:
        """OpenAI function-calling definition for this tool"""
        schema = self.parameters.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("properties", {})
        schema.setdefault("required", [])
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": schema,
            },
        }


# Map of all available tools by name
ALL_TOOLS: Dict[str, ToolDescriptor] = {}


def register_tool(name: str, description: str, parameters: Type[BaseModel]):
    """Decorator adding the wrapped function to ALL_TOOLS"""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if name in ALL_TOOLS:
            raise ValueError(f"Tool already registered: {name}")
        ALL_TOOLS[name] = ToolDescriptor(name, description, parameters, func)
        return func

    return decorator


# ============================================================================
# Tool Definitions
# ============================================================================

class NoArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")


@register_tool(
    "getWalletAddress",
    "Get the current wallet for the trader",
    NoArguments,
)
def get_wallet_address(args: NoArguments) -> Dict[str, Any]:
    return {"content": "No wallet address found, you should create a wallet first."}


@register_tool(
    "createEvmWallet",
    "Create a EVM wallet for trading",
    NoArguments,
)
def create_evm_wallet(args: NoArguments) -> Dict[str, Any]:
    return {"content": "Yes, I created an EVM wallet for you, it is 0x1234567890"}


# ============================================================================
# Catalog Access
# ============================================================================

def get_active_tools(
    active_tool_names: Optional[Sequence[str]] = None,
    registry: Mapping[str, ToolDescriptor] = ALL_TOOLS,
) -> Dict[str, ToolDescriptor]:
    """Select the tools a request may use, preserving the requested order

    Args:
        active_tool_names: Tool names to enable. None enables every tool.
        registry: Catalog to select from

    Raises:
        KeyError: If a requested tool is not registered
    """
    if active_tool_names is None:
        return dict(registry)

    unknown = [name for name in active_tool_names if name not in registry]
    if unknown:
        raise KeyError(f"Unknown tools: {', '.join(unknown)}")
    return {name: registry[name] for name in active_tool_names}


def get_enabled_tools(tools: Mapping[str, ToolDescriptor]) -> List[Dict[str, Any]]:
    """OpenAI function-calling definitions for the given tools"""
    return [tool.to_openai() for tool in tools.values()]


def validate_tool_call(
    tool_name: str,
    raw_arguments: str,
    tools: Mapping[str, ToolDescriptor],
) -> BaseModel:
    """Parse and validate the arguments the model sent for a tool call

    Args:
        tool_name: Name the model asked for
        raw_arguments: JSON-encoded arguments, possibly empty
        tools: Tools enabled for this request

    Returns:
        The validated argument model

    Raises:
        ToolCallRejected: Unknown tool, undecodable JSON, or schema mismatch
    """
    tool = tools.get(tool_name)
    if tool is None:
        raise ToolCallRejected(f"Unknown tool: {tool_name}")

    try:
        arguments = json.loads(raw_arguments) if raw_arguments and raw_arguments.strip() else {}
    except json.JSONDecodeError as e:
        raise ToolCallRejected(f"Invalid JSON arguments for {tool_name}: {e}") from e

    if not isinstance(arguments, dict):
        raise ToolCallRejected(f"Arguments for {tool_name} must be an object")

    try:
        return tool.parameters.model_validate(arguments)
    except ValidationError as e:
        raise ToolCallRejected(f"Invalid arguments for {tool_name}: {e}") from e


async def execute_tool(tool: ToolDescriptor, arguments: BaseModel) -> Any:
    """Run a tool with already validated arguments and return its result

    Both plain and async execute functions are supported.
    """
    result = tool.execute(arguments)
    if inspect.isawaitable(result):
        result = await result
    return result
