"""
Tests for lambda capture and expression trees.

Covers:
- SchemaProxy member access and error reporting
- Serialization of captured trees
- Evaluation, including null semantics
- substitute() / references() on captured trees
"""

from dataclasses import dataclass
from typing import Optional

import pytest

from dynq import SchemaProxy, UnknownMember, capture, get_schema
from dynq.expr import (
    BinOpExpr,
    CallExpr,
    LiteralExpr,
    MemberExpr,
    ParameterExpr,
    UnaryOpExpr,
    evaluate,
    references,
    substitute,
)


@dataclass
class Location:
    City: str
    Zip: int


@dataclass
class User:
    Id: int
    Name: str
    Age: Optional[int] = None
    Address: Optional[Location] = None


ANN = User(1, "Ann", 30, Location("Paris", 75001))
BOB = User(2, "Bob", None, None)


class TestSchemaProxy:
    def test_member_access_returns_member_expr(self):
        proxy = SchemaProxy(get_schema(User))
        expr = proxy.Age
        assert isinstance(expr, MemberExpr)
        assert expr.chain == ("Age",)
        assert expr.param.name == "r"

    def test_case_insensitive_member(self):
        assert SchemaProxy(get_schema(User)).age.chain == ("Age",)

    def test_item_access(self):
        assert SchemaProxy(get_schema(User))["Name"].chain == ("Name",)

    def test_unknown_member(self):
        with pytest.raises(UnknownMember) as exc_info:
            SchemaProxy(get_schema(User)).Salary
        assert exc_info.value.type_name == "User"
        assert exc_info.value.member == "Salary"

    def test_private_attribute(self):
        with pytest.raises(AttributeError):
            SchemaProxy(get_schema(User))._hidden

    def test_get_schema(self):
        schema = get_schema(User)
        assert SchemaProxy(schema).get_schema() is schema


class TestCapture:
    def test_parameters(self):
        pred = capture(lambda u, v: u.Age > v, User, None)
        assert [p.name for p in pred.params] == ["u", "v"]
        assert pred.params[0].schema is get_schema(User)
        assert pred.params[1].schema is None

    def test_body_structure(self):
        pred = capture(lambda u, v: u.Age > v, User, None)
        assert isinstance(pred.body, BinOpExpr)
        assert pred.body.op == "Gt"
        assert isinstance(pred.body.left, MemberExpr)
        assert pred.body.right is pred.params[1]

    def test_nested_member_chain(self):
        pred = capture(lambda u: u.Address.City == "Paris", User)
        assert pred.body.left.chain == ("Address", "City")

    def test_unknown_nested_member(self):
        with pytest.raises(UnknownMember) as exc_info:
            capture(lambda u: u.Address.Street == "x", User)
        assert exc_info.value.type_name == "Location"
        assert exc_info.value.position == 1

    def test_method_call_on_scalar_member(self):
        pred = capture(lambda u: u.Name.startswith("A"), User)
        assert isinstance(pred.body, CallExpr)
        assert pred.body.func == "startswith"
        assert pred.body.args == ("A",)

    def test_lambda_must_return_expr(self):
        with pytest.raises(TypeError, match="must return an Expr"):
            capture(lambda u: True, User)

    def test_python_boolean_operators_are_rejected(self):
        with pytest.raises(TypeError, match="instead of and/or/not"):
            capture(lambda u: u.Age > 1 and u.Age < 5, User)

    def test_call_with_wrong_argument_count(self):
        pred = capture(lambda u: u.Age > 1, User)
        with pytest.raises(TypeError):
            pred(ANN, 2)


class TestSerialize:
    def test_binop(self):
        pred = capture(lambda u, v: u.Address.City == v, User, None)
        assert pred.serialize() == {
            "type": "Lambda",
            "params": ["u", "v"],
            "body": {
                "type": "BinOp",
                "op": "Eq",
                "left": {"type": "Member", "param": "u", "chain": ["Address", "City"]},
                "right": {"type": "Parameter", "name": "v"},
            },
        }

    def test_literal_dtypes(self):
        assert LiteralExpr(True).serialize()["dtype"] == "Boolean"
        assert LiteralExpr(1).serialize()["dtype"] == "Int64"
        assert LiteralExpr(1.5).serialize()["dtype"] == "Float64"
        assert LiteralExpr("a").serialize()["dtype"] == "String"
        assert LiteralExpr(None).serialize()["dtype"] == "Null"

    def test_call(self):
        pred = capture(lambda u: u.Name.is_in(["Ann", "Bob"]), User)
        data = pred.body.serialize()
        assert data["func"] == "is_in"
        assert [a["value"] for a in data["args"]] == ["Ann", "Bob"]
        assert data["on"]["chain"] == ["Name"]


class TestEvaluate:
    def test_comparison(self):
        pred = capture(lambda u, v: u.Age >= v, User, None)
        assert pred(ANN, 30) is True
        assert pred(ANN, 31) is False

    def test_null_operand_yields_none(self):
        pred = capture(lambda u: u.Age + 1, User)
        assert pred(BOB) is None
        assert capture(lambda u: u.Age > 1, User)(BOB) is None

    def test_null_intermediate_member(self):
        assert capture(lambda u: u.Address.City == "Paris", User)(BOB) is False
        assert capture(lambda u: u.Address.City.is_null(), User)(BOB) is True

    def test_equality_with_none(self):
        assert capture(lambda u: u.Age == None, User)(BOB) is True  # noqa: E711

    def test_division_by_zero_yields_none(self):
        assert capture(lambda u: u.Id / 0, User)(ANN) is None
        assert capture(lambda u: u.Age % 7, User)(ANN) == 2

    def test_boolean_operators(self):
        pred = capture(lambda u: (u.Age > 18) & ~(u.Name == "Bob"), User)
        assert pred(ANN) is True
        assert pred(User(3, "Bob", 40)) is False

    def test_not_of_null_is_null(self):
        assert capture(lambda u: ~(u.Age > 1), User)(BOB) is None

    def test_between_and_is_in(self):
        assert capture(lambda u: u.Age.between(20, 30), User)(ANN) is True
        assert capture(lambda u: u.Id.is_in([2, 3]), User)(ANN) is False

    def test_method_call(self):
        pred = capture(lambda u: u.Name.lower().startswith("an"), User)
        assert pred(ANN) is True
        assert pred(User(5, None)) is None

    def test_reversed_arithmetic(self):
        assert capture(lambda u: 100 - u.Age, User)(ANN) == 70

    def test_evaluate_with_env(self):
        expr = BinOpExpr("Mul", LiteralExpr(3), LiteralExpr(4))
        assert evaluate(expr, {}) == 12

    def test_unknown_operator(self):
        with pytest.raises(ValueError, match="Unknown binary operator"):
            evaluate(BinOpExpr("Pow", LiteralExpr(2), LiteralExpr(3)), {})


class TestSubstitute:
    def test_parameter_becomes_literal(self):
        pred = capture(lambda u, v: u.Age > v, User, None)
        body = substitute(pred.body, pred.params[1], 21)
        assert isinstance(body.right, LiteralExpr)
        assert body.right.value == 21
        assert body.left is pred.body.left

    def test_input_tree_is_not_mutated(self):
        pred = capture(lambda u, v: (u.Age > v) | (u.Id == v), User, None)
        before = pred.body.serialize()
        substitute(pred.body, pred.params[1], 5)
        assert pred.body.serialize() == before

    def test_untouched_tree_is_returned_as_is(self):
        pred = capture(lambda u, v: u.Age > 3, User, None)
        assert substitute(pred.body, pred.params[1], 5) is pred.body

    def test_member_of_bound_record(self):
        pred = capture(lambda u, other: u.Age < other.Age, User, User)
        body = substitute(pred.body, pred.params[1], ANN)
        assert body.right.value == 30

    def test_inside_call_and_unary(self):
        pred = capture(lambda u, v: ~u.Name.startswith(v), User, None)
        body = substitute(pred.body, pred.params[1], "A")
        assert isinstance(body, UnaryOpExpr)
        assert body.operand.args[0].value == "A"

    def test_bind_keeps_other_parameters(self):
        pred = capture(lambda u, v: u.Age > v, User, None)
        bound = pred.bind(1, 20)
        assert [p.name for p in bound.params] == ["u"]
        assert bound(ANN) is True


class TestReferences:
    def test_references(self):
        pred = capture(lambda u, v: u.Name.startswith(v), User, None)
        assert references(pred.body, pred.params[0])
        assert references(pred.body, pred.params[1])

    def test_no_reference(self):
        pred = capture(lambda u, v: u.Age > 1, User, None)
        assert not references(pred.body, pred.params[1])
        assert not references(LiteralExpr(1), ParameterExpr("x", 0))
