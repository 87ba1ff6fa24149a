from __future__ import annotations

import pytest

from automation_engine.runtime import ExpressionValidationFailure, evaluate_condition
from automation_engine.runtime.expressions import truthy

VARIABLES = {
    "score": 5,
    "name": "ada",
    "flag": True,
    "empty": "",
    "zero": 0,
    "user": {"age": 30, "roles": ["admin", "dev"]},
    "items": [],
    "count_text": "5",
}


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("score > 10", False),
        ("score < 10", True),
        ("score >= 5 && score <= 5", True),
        ("score == 5", True),
        ("score == '5'", True),
        ("score === '5'", False),
        ("score !== 5", False),
        ("score != 6", True),
        ("name == 'ada'", True),
        ('name == "bob"', False),
        ("user.age > 18", True),
        ("user.roles[0] == 'admin'", True),
        ("user['age'] == 30", True),
        ("flag", True),
        ("!flag", False),
        ("not flag or score > 1", True),
        ("flag and zero", False),
        ("empty || name", True),
        ("(score > 10 || flag) && name == 'ada'", True),
        ("missing", False),
        ("missing == null", True),
        ("items", True),
        ("count_text > 4", True),
        ("name < 'bob'", True),
        ("name > 3", False),
        ("true", True),
        ("false || null", False),
        ("2.5 < score", True),
        ("user.roles.length == 2", True),
        ("items.length > 0", False),
        ("name.length === 3", True),
        ("flag == 1", True),
        ("flag == '1'", True),
        ("flag === 1", False),
        ("zero == false", True),
        ("missing == false", False),
        ("missing < 1", False),
    ],
)
def test_evaluate(expression: str, expected: bool) -> None:
    assert evaluate_condition(expression, VARIABLES) is expected


@pytest.mark.parametrize(
    "expression",
    [
        "__import__('os').system('ls')",
        "score; drop",
        "score + 1 > 2",
        "a -> b",
        "score > 1 > 0",
        "score >",
        "(score > 1",
        "'unterminated",
        "",
        "   ",
        "user.",
        "user[",
        "score score",
        "{{score}} > 1",
        "{{ user.age }} == 30",
    ],
)
def test_rejected_expressions_raise(expression: str) -> None:
    with pytest.raises(ExpressionValidationFailure):
        evaluate_condition(expression, VARIABLES)


def test_injection_attempt_does_not_execute(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr("builtins.eval", lambda *a, **k: calls.append(a))

    with pytest.raises(ExpressionValidationFailure):
        evaluate_condition("score > 1; __import__('os')", VARIABLES)
    assert calls == []


def test_variable_values_are_never_parsed_as_expression_text() -> None:
    assert evaluate_condition("name == 'x || true'", {"name": "x || true"}) is True
    assert evaluate_condition("name == 'x'", {"name": "x || true"}) is False


def test_length_of_lists_and_strings() -> None:
    variables = {"items": [1, 2], "text": "hello", "obj": {"length": 7}}

    assert evaluate_condition("items.length > 0", variables) is True
    assert evaluate_condition("text.length == 5", variables) is True
    assert evaluate_condition("obj.length == 7", variables) is True
    assert evaluate_condition("score.length > 0", {"score": 5}) is False


@pytest.mark.parametrize(
    "value, expected",
    [(None, False), (False, False), (0, False), (0.0, False), ("", False), ([], True), ({}, True), ("0", True), (1, True)],
)
def test_truthy(value, expected: bool) -> None:
    assert truthy(value) is expected
