"""
Serialization helpers for Program objects (functions, statements, expressions).

Provides lossless JSON/YAML round-trip via intermediate dict representation.
The dict layout is explicit and stable so dumps can be diffed.
"""
from __future__ import annotations

import json
import math
from typing import Any, Dict

import yaml

from mdlang.expressions import (
    BinaryExpression,
    BinaryOperator,
    CallExpression,
    Expression,
    Identifier,
    Literal,
    MemberExpression,
    TemplateLiteral,
    TemplatePart,
    UnaryExpression,
    UnaryOperator,
)
from mdlang.model import (
    AssignmentOperator,
    AssignmentStatement,
    BreakStatement,
    CallStatement,
    ConditionalStatement,
    FunctionDeclaration,
    InputStatement,
    PrintStatement,
    Program,
    Statement,
)
from mdlang.values import UNDEFINED


def _literal_to_dict(value: Any) -> Dict[str, Any]:
    if value is UNDEFINED:
        return {"type": "lit", "undefined": True}
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return {"type": "lit", "number": repr(value)}
    return {"type": "lit", "value": value}


def _literal_from_dict(d: Dict[str, Any]) -> Literal:
    if d.get("undefined"):
        return Literal(UNDEFINED)
    if "number" in d:
        return Literal(float(d["number"]))
    return Literal(d["value"])


def expr_to_dict(expr: Expression | None) -> Any:
    if expr is None:
        return None
    if isinstance(expr, Literal):
        return _literal_to_dict(expr.value)
    if isinstance(expr, Identifier):
        return {"type": "var", "name": expr.name}
    if isinstance(expr, BinaryExpression):
        return {
            "type": "binary",
            "operator": expr.operator.value,
            "left": expr_to_dict(expr.left),
            "right": expr_to_dict(expr.right),
        }
    if isinstance(expr, UnaryExpression):
        return {
            "type": "unary",
            "operator": expr.operator.value,
            "operand": expr_to_dict(expr.operand),
        }
    if isinstance(expr, MemberExpression):
        prop = expr_to_dict(expr.property) if expr.computed else expr.property
        return {"type": "member", "object": expr_to_dict(expr.object), "property": prop, "computed": expr.computed}
    if isinstance(expr, CallExpression):
        return {
            "type": "call",
            "callee": expr_to_dict(expr.callee),
            "arguments": [expr_to_dict(a) for a in expr.arguments],
        }
    if isinstance(expr, TemplateLiteral):
        parts = []
        for part in expr.parts:
            if part.is_literal:
                parts.append({"text": part.text})
            else:
                parts.append({"expression": expr_to_dict(part.expression)})
        return {"type": "template", "parts": parts}
    raise TypeError(f"Unsupported Expression type: {type(expr)}")


def expr_from_dict(d: Any) -> Expression | None:
    if d is None:
        return None
    t = d.get("type")
    if t == "lit":
        return _literal_from_dict(d)
    if t == "var":
        return Identifier(d["name"])
    if t == "binary":
        return BinaryExpression(
            operator=BinaryOperator(d["operator"]),
            left=expr_from_dict(d["left"]),
            right=expr_from_dict(d["right"]),
        )
    if t == "unary":
        return UnaryExpression(operator=UnaryOperator(d["operator"]), operand=expr_from_dict(d["operand"]))
    if t == "member":
        computed = d.get("computed", False)
        prop = expr_from_dict(d["property"]) if computed else d["property"]
        return MemberExpression(expr_from_dict(d["object"]), prop, computed=computed)
    if t == "call":
        return CallExpression(expr_from_dict(d["callee"]), tuple(expr_from_dict(a) for a in d.get("arguments", [])))
    if t == "template":
        parts = []
        for p in d.get("parts", []):
            if "expression" in p:
                parts.append(TemplatePart(expression=expr_from_dict(p["expression"])))
            else:
                parts.append(TemplatePart(text=p["text"]))
        return TemplateLiteral(tuple(parts))
    raise TypeError(f"Unsupported expression dict type: {t}")


def statement_to_dict(s: Statement) -> Dict[str, Any]:
    if isinstance(s, PrintStatement):
        return {"type": "print", "expression": expr_to_dict(s.expression)}
    if isinstance(s, AssignmentStatement):
        return {
            "type": "assign",
            "variable": s.variable,
            "operator": s.operator.value if s.operator else None,
            "value": expr_to_dict(s.value),
        }
    if isinstance(s, CallStatement):
        return {
            "type": "call",
            "function": s.function_name,
            "external_file": s.external_file,
            "arguments": [expr_to_dict(a) for a in s.arguments],
        }
    if isinstance(s, ConditionalStatement):
        return {
            "type": "if",
            "condition": expr_to_dict(s.condition),
            "body": [statement_to_dict(child) for child in s.body],
        }
    if isinstance(s, BreakStatement):
        return {"type": "break"}
    if isinstance(s, InputStatement):
        return {"type": "input", "variable": s.variable}
    raise TypeError(f"Unsupported Statement type: {type(s)}")


def statement_from_dict(d: Dict[str, Any]) -> Statement:
    t = d.get("type")
    if t == "print":
        return PrintStatement(expr_from_dict(d["expression"]))
    if t == "assign":
        operator = d.get("operator")
        return AssignmentStatement(
            variable=d["variable"],
            value=expr_from_dict(d["value"]),
            operator=AssignmentOperator(operator) if operator else None,
        )
    if t == "call":
        return CallStatement(
            function_name=d["function"],
            arguments=tuple(expr_from_dict(a) for a in d.get("arguments", [])),
            external_file=d.get("external_file"),
        )
    if t == "if":
        return ConditionalStatement(
            condition=expr_from_dict(d["condition"]),
            body=tuple(statement_from_dict(child) for child in d.get("body", [])),
        )
    if t == "break":
        return BreakStatement()
    if t == "input":
        return InputStatement(d["variable"])
    raise TypeError(f"Unsupported statement dict type: {t}")


def function_to_dict(f: FunctionDeclaration) -> Dict[str, Any]:
    return {
        "name": f.name,
        "parameters": list(f.parameters),
        "body": [statement_to_dict(s) for s in f.body],
    }


def function_from_dict(d: Dict[str, Any]) -> FunctionDeclaration:
    return FunctionDeclaration(
        name=d["name"],
        parameters=tuple(d.get("parameters", [])),
        body=tuple(statement_from_dict(s) for s in d.get("body", [])),
    )


def program_to_dict(p: Program) -> Dict[str, Any]:
    return {
        "base_dir": p.base_dir,
        "source_path": p.source_path,
        "functions": [function_to_dict(f) for f in p.functions.values()],
    }


def program_from_dict(d: Dict[str, Any]) -> Program:
    p = Program(base_dir=d.get("base_dir"), source_path=d.get("source_path"))
    for f in d.get("functions", []):
        function = function_from_dict(f)
        p.functions[function.name] = function
    return p


def program_to_json(p: Program) -> str:
    return json.dumps(program_to_dict(p), sort_keys=True)


def program_from_json(s: str) -> Program:
    d = json.loads(s)
    return program_from_dict(d)


def program_to_yaml(p: Program) -> str:
    return yaml.safe_dump(program_to_dict(p), sort_keys=False)


def program_from_yaml(s: str) -> Program:
    d = yaml.safe_load(s)
    return program_from_dict(d)
