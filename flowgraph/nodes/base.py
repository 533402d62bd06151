"""Built-in Provider Implementations

This module provides the "logic" and "debug" providers. They serve as both
usable nodes and examples for custom provider development.

A node invoked without input mappings receives the raw frontier value; with
mappings it receives a dict of coerced parameters. The helpers below accept
both shapes.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Dict, List

from ..engine.coerce import coerce
from ..engine.predicates import evaluate
from .registry import BaseNodeImpl, FunctionProvider

logger = logging.getLogger(__name__)

_MISSING = object()

logic = FunctionProvider("logic", description="Arithmetic and comparison functions")
debug = FunctionProvider("debug", description="Logging and no-op functions")


def _param(node: BaseNodeImpl, inputs: Any, name: str, default: Any = _MISSING) -> Any:
    """Read a mapped parameter, with a default when it was not mapped."""
    if node.inputs and name in inputs:
        return inputs[name]
    if default is _MISSING:
        raise ValueError(f"{node.function}: missing input '{name}'")
    return default


def _value(node: BaseNodeImpl, inputs: Any, name: str = "value") -> Any:
    """Primary parameter: the mapped value, or the raw frontier coerced."""
    if node.inputs:
        return _param(node, inputs, name)
    return coerce(node.input_schema[name], inputs)


# =====================================================================
# logic
# =====================================================================


@logic.function("sum", description="Sums a list of numbers")
class SumNode(BaseNodeImpl):
    input_schema = {"values": "[]float64"}

    async def execute(self, ctx, inputs: Any) -> float:
        values: List[float] = _value(self, inputs, "values")
        result = sum(values)
        logger.debug(f"SumNode {self.node_id}: {values} -> {result}")
        return result


@logic.function("add", description="Adds an amount to a number")
class AddNode(BaseNodeImpl):
    input_schema = {"value": "float64", "amount": "float64"}
    required_inputs = ("value", "amount")

    async def execute(self, ctx, inputs: Any) -> Any:
        value = _value(self, inputs)
        result = value + _param(self, inputs, "amount")
        return int(result) if float(result).is_integer() else result


@logic.function("multiply", description="Multiplies a number by a factor")
class MultiplyNode(BaseNodeImpl):
    input_schema = {"value": "float64", "factor": "float64"}
    required_inputs = ("value", "factor")

    async def execute(self, ctx, inputs: Any) -> Any:
        value = _value(self, inputs)
        result = value * _param(self, inputs, "factor")
        return int(result) if float(result).is_integer() else result


@logic.function("compare", description="Compares a value with an operand using a named predicate")
class CompareNode(BaseNodeImpl):
    """Outputs True/False; pairs with 'truthy'/'falsy' edge conditions."""

    input_schema = {"value": "float64", "operator": "string", "operand": "float64"}
    required_inputs = ("value", "operator", "operand")

    async def execute(self, ctx, inputs: Any) -> bool:
        return evaluate(
            _param(self, inputs, "operator"),
            _value(self, inputs),
            _param(self, inputs, "operand"),
        )


@logic.function("timer", description="Waits for a number of seconds and outputs the delay")
class TimerNode(BaseNodeImpl):
    input_schema = {"seconds": "float64"}
    required_inputs = ("seconds",)

    async def execute(self, ctx, inputs: Any) -> float:
        seconds = _param(self, inputs, "seconds")
        if seconds < 0:
            raise ValueError(f"timer: seconds must be >= 0, got {seconds}")
        await asyncio.sleep(seconds)
        return seconds


@logic.function("rand", description="Random integer in [min, max]")
class RandNode(BaseNodeImpl):
    input_schema = {"min": "int", "max": "int"}

    async def execute(self, ctx, inputs: Any) -> int:
        low = _param(self, inputs, "min", 0)
        high = _param(self, inputs, "max", 100)
        if low > high:
            raise ValueError(f"rand: min ({low}) is greater than max ({high})")
        return random.randint(low, high)


# =====================================================================
# debug
# =====================================================================

_LOG_LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


@debug.function("log", description="Logs a message and passes its value through")
class LogNode(BaseNodeImpl):
    input_schema = {"level": "string", "message": "string", "value": "any"}

    def validate_config(self) -> List[Dict[str, str]]:
        errors = super().validate_config()
        for mapping in self.inputs:
            if mapping.source == "level" and isinstance(mapping.origin, str) \
                    and not mapping.origin.startswith("{{") and mapping.origin not in _LOG_LEVELS:
                errors.append({
                    "field": "level",
                    "error": f"level must be one of {sorted(_LOG_LEVELS)}",
                })
        return errors

    async def execute(self, ctx, inputs: Any) -> Any:
        if self.inputs:
            level = _LOG_LEVELS.get(_param(self, inputs, "level", "info"), logging.INFO)
            message = _param(self, inputs, "message", "")
            value = _param(self, inputs, "value", None)
        else:
            level, message, value = logging.INFO, "", inputs
        text = f"{message} {value!r}" if message else repr(value)
        logger.log(level, f"[{ctx.run_id}] {self.node_id}: {text}")
        return value


@debug.function("nil", description="Discards its input and outputs None")
class NilNode(BaseNodeImpl):
    async def execute(self, ctx, inputs: Any) -> None:
        return None


@debug.function("passthrough", description="Outputs its input unchanged")
class PassthroughNode(BaseNodeImpl):
    async def execute(self, ctx, inputs: Any) -> Any:
        return inputs


def builtin_providers() -> List[FunctionProvider]:
    """Providers shipped with flowgraph."""
    return [logic, debug]
