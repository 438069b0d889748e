"""Concrete expression types for dynq."""

from typing import Any, Dict, Optional, Tuple

from ..errors import UnknownMember
from ..resolver import ResolvedAccessor
from ..schema import Schema
from .base import Expr


class ParameterExpr(Expr):
    """
    A lambda parameter, e.g. the `v` in `lambda r, v: r.Age > v`.

    Record parameters are wrapped in a SchemaProxy during capture and show up
    in the tree through MemberExpr.param; scalar parameters appear directly.

    Attributes:
        name (str): Parameter name from the lambda signature
        index (int): Position in the lambda's parameter list
        schema (Schema or None): Record schema, None for scalar parameters
    """

    def __init__(self, name: str, index: int, schema: Optional[Schema] = None):
        self.name = name
        self.index = index
        self.schema = schema

    def serialize(self) -> Dict[str, Any]:
        return {"type": "Parameter", "name": self.name}

    def __repr__(self) -> str:
        return f"ParameterExpr({self.name!r})"


class MemberExpr(Expr):
    """
    Represents a member-chain read on a parameter, e.g. r.Address.City.

    Accessing a member of a nested record extends the chain; any other
    attribute on a scalar member returns a callable that builds a CallExpr,
    so r.Name.startswith("A") captures a method call.

    Attributes:
        param (ParameterExpr): Parameter the chain starts from
        accessor (ResolvedAccessor): Resolved chain on the parameter's schema
    """

    def __init__(self, param: ParameterExpr, accessor: ResolvedAccessor):
        self.param = param
        self.accessor = accessor

    @property
    def chain(self) -> Tuple[str, ...]:
        return self.accessor.chain

    def serialize(self) -> Dict[str, Any]:
        return {"type": "Member", "param": self.param.name, "chain": list(self.chain)}

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(f"No attribute {name}")

        owner = self.accessor.fields[-1].member_schema()
        field = owner.lookup(name)
        if field is not None:
            return MemberExpr(
                self.param,
                ResolvedAccessor(self.accessor.root, self.accessor.fields + (field,)),
            )
        if len(owner):
            raise UnknownMember(owner.name, name, len(self.chain))

        # Scalar member: capture a method call on it
        return _call_builder(name, self)

    def __repr__(self) -> str:
        return f"MemberExpr({self.param.name}.{self.accessor.path})"


# Literal dtype names, checked in order; bool must precede int
_LITERAL_DTYPES = (
    (bool, "Boolean"),
    (int, "Int64"),
    (float, "Float64"),
    (str, "String"),
    (type(None), "Null"),
)


def _operand(value: Any) -> Dict[str, Any]:
    if isinstance(value, Expr):
        return value.serialize()
    return LiteralExpr(value).serialize()


def _call_builder(name: str, on: Expr):
    def build(*args, **kwargs):
        return CallExpr(name, args, kwargs, on=on)

    return build


class LiteralExpr(Expr):
    """A constant, either written in the lambda or bound into a predicate."""

    def __init__(self, value: Any):
        self.value = value

    @property
    def dtype(self) -> str:
        for kind, name in _LITERAL_DTYPES:
            if isinstance(self.value, kind):
                return name
        return type(self.value).__name__

    def serialize(self) -> Dict[str, Any]:
        return {"type": "Literal", "value": self.value, "dtype": self.dtype}

    def __repr__(self) -> str:
        return f"LiteralExpr({self.value!r})"


class BinOpExpr(Expr):
    """
    Two operands joined by an operator.

    `op` is the capitalised operator name recorded by Expr: Add, Sub, Mul,
    Div, Mod, Eq, Ne, Lt, Le, Gt, Ge, And or Or.
    """

    def __init__(self, op: str, left: Expr, right: Expr):
        self.op, self.left, self.right = op, left, right

    def serialize(self) -> Dict[str, Any]:
        return {
            "type": "BinOp",
            "op": self.op,
            "left": self.left.serialize(),
            "right": self.right.serialize(),
        }

    def __repr__(self) -> str:
        return f"BinOpExpr({self.op}, {self.left!r}, {self.right!r})"


class UnaryOpExpr(Expr):
    """Negation of a captured condition (`~expr`); `op` is always "Not"."""

    def __init__(self, op: str, operand: Expr):
        self.op, self.operand = op, operand

    def serialize(self) -> Dict[str, Any]:
        return {"type": "UnaryOp", "op": self.op, "operand": self.operand.serialize()}


class CallExpr(Expr):
    """
    A method call captured on another node, e.g. r.Name.lower().startswith("a").

    Arguments may be Exprs or plain values. Further attribute access chains
    another call onto this one.

    Attributes:
        func (str): Method name
        args (tuple): Positional arguments
        kwargs (dict): Keyword arguments
        on (Expr or None): Node the method is called on
    """

    def __init__(
        self,
        func: str,
        args: tuple = (),
        kwargs: Optional[Dict[str, Any]] = None,
        on: Optional[Expr] = None,
    ):
        self.func = func
        self.args = tuple(args)
        self.kwargs = dict(kwargs or {})
        self.on = on

    def serialize(self) -> Dict[str, Any]:
        return {
            "type": "Call",
            "func": self.func,
            "args": [_operand(a) for a in self.args],
            "kwargs": {k: _operand(v) for k, v in self.kwargs.items()},
            "on": None if self.on is None else self.on.serialize(),
        }

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(f"No attribute {name}")
        return _call_builder(name, self)

    def __repr__(self) -> str:
        return f"CallExpr({self.func}, on={self.on!r})"


class LambdaExpr:
    """
    A captured lambda: parameters plus an expression body.

    A LambdaExpr is itself callable with one argument per parameter and can be
    handed to any pipeline filter in place of the captured function.

    Attributes:
        params (tuple): ParameterExpr per lambda parameter
        body (Expr): The captured expression tree
    """

    def __init__(self, params: Tuple[ParameterExpr, ...], body: Expr):
        self.params = tuple(params)
        self.body = body

    @property
    def arity(self) -> int:
        return len(self.params)

    def __call__(self, *args: Any) -> Any:
        if len(args) != self.arity:
            raise TypeError(
                f"Lambda takes {self.arity} argument(s) ({len(args)} given)"
            )
        from .evaluate import evaluate

        env = {param.name: value for param, value in zip(self.params, args)}
        return evaluate(self.body, env)

    def bind(self, index: int, value: Any) -> "LambdaExpr":
        """
        Replace a parameter with a constant, dropping it from the signature.

        Every occurrence of the parameter in the body is replaced by a
        LiteralExpr carrying value; the rest of the tree is left as it is.

        Args:
            index: Position of the parameter to bind
            value: Constant to substitute

        Returns:
            A new LambdaExpr with one parameter fewer
        """
        from .transforms import substitute

        param = self.params[index]
        body = substitute(self.body, param, value)
        params = self.params[:index] + self.params[index + 1:]
        return LambdaExpr(params, body)

    def serialize(self) -> Dict[str, Any]:
        return {
            "type": "Lambda",
            "params": [p.name for p in self.params],
            "body": self.body.serialize(),
        }

    def __repr__(self) -> str:
        return f"LambdaExpr({[p.name for p in self.params]})"
