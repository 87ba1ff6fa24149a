from __future__ import annotations

import pytest

from automation_engine.blueprint import (
    ActionStep,
    Blueprint,
    ConditionStep,
    DelayStep,
    InvalidBlueprint,
    LoopStep,
    OnErrorPolicy,
    UnknownStepType,
)


def _action(step_id: str | None = None, **extra):
    step = {
        "type": "action",
        "action": {"integration": "slack", "method": "post_message", "parameters": {"text": "hi"}},
        **extra,
    }
    if step_id is not None:
        step["id"] = step_id
    return step


def test_parses_every_step_variant() -> None:
    bp = Blueprint.from_payload(
        {
            "version": 1,
            "steps": [
                _action("a"),
                {
                    "id": "c",
                    "type": "condition",
                    "condition": {"expression": "x > 1", "if_true": [_action("t")], "if_false": [_action("f")]},
                },
                {"id": "l", "type": "loop", "loop": {"array_source": "{{items}}", "steps": [_action("body")]}},
                {"id": "d", "type": "delay", "delay": {"duration_seconds": 2}},
                {"id": "ai", "type": "ai_agent_call", "ai_agent_call": {"agent_id": "agent-1", "input_prompt": "hi"}},
            ],
        }
    )

    assert bp.version == "1"
    assert [s.type for s in bp.steps] == ["action", "condition", "loop", "delay", "ai_agent_call"]
    assert isinstance(bp.steps[1], ConditionStep)
    assert isinstance(bp.steps[1].condition.if_true[0], ActionStep)
    assert isinstance(bp.steps[2], LoopStep)
    assert isinstance(bp.steps[3], DelayStep)
    assert bp.steps[3].delay.duration_seconds == 2
    assert bp.steps[2].loop.steps[0].id == "body"


def test_defaults_for_optional_fields() -> None:
    bp = Blueprint.from_payload({"steps": [_action("a"), {"id": "d", "type": "delay"}]})

    assert bp.variables == {}
    assert bp.steps[0].on_error is OnErrorPolicy.stop
    assert bp.steps[0].action.output_variable is None
    assert bp.steps[1].delay.duration_seconds == 0


def test_null_variables_become_empty() -> None:
    assert Blueprint.from_payload({"steps": [], "variables": None}).variables == {}


def test_missing_ids_are_assigned_by_position() -> None:
    bp = Blueprint.from_payload(
        {
            "steps": [
                _action(),
                {"type": "loop", "loop": {"array_source": [1], "steps": [_action(), _action()]}},
            ]
        }
    )

    assert [s.id for s in bp.steps] == ["step_1", "step_2"]
    assert [s.id for s in bp.steps[1].loop.steps] == ["step_2.1.step_1", "step_2.1.step_2"]


def test_positional_ids_skip_explicit_ids_later_in_the_list() -> None:
    bp = Blueprint.from_payload({"steps": [{"type": "delay"}, {"id": "step_1", "type": "delay"}]})

    assert [s.id for s in bp.steps] == ["step_1_2", "step_1"]


def test_numeric_ids_are_coerced_to_strings() -> None:
    bp = Blueprint.from_payload({"steps": [_action(7)]})

    assert bp.steps[0].id == "7"


def test_duplicate_ids_are_rejected() -> None:
    with pytest.raises(InvalidBlueprint):
        Blueprint.from_payload({"steps": [_action("a"), _action("a")]})


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("continue", OnErrorPolicy.continue_),
        ("RETRY", OnErrorPolicy.retry),
        ("stop", OnErrorPolicy.stop),
        ("explode", OnErrorPolicy.stop),
    ],
)
def test_on_error_is_normalised(raw: str, expected: OnErrorPolicy) -> None:
    bp = Blueprint.from_payload({"steps": [_action("a", on_error=raw)]})

    assert bp.steps[0].on_error is expected


def test_unknown_step_type_is_reported_by_name() -> None:
    with pytest.raises(UnknownStepType) as exc:
        Blueprint.from_payload({"steps": [{"id": "x", "type": "teleport"}]})

    assert exc.value.step_type == "teleport"
    assert str(exc.value) == "Unknown step type: teleport"


def test_unknown_step_type_nested_in_a_branch() -> None:
    payload = {
        "steps": [
            {"id": "c", "type": "condition", "condition": {"expression": "true", "if_true": [{"type": "webhook"}]}}
        ]
    }

    with pytest.raises(UnknownStepType):
        Blueprint.from_payload(payload)


def test_unknown_step_type_is_an_invalid_blueprint() -> None:
    assert issubclass(UnknownStepType, InvalidBlueprint)


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        "steps",
        {"steps": [{"id": "a", "type": "action"}]},
        {"steps": [{"id": "d", "type": "delay", "delay": {"duration_seconds": -1}}]},
        {"steps": "not-a-list"},
    ],
)
def test_malformed_payloads_are_rejected(payload) -> None:
    with pytest.raises(InvalidBlueprint):
        Blueprint.from_payload(payload)


def test_extra_presentation_keys_are_ignored() -> None:
    bp = Blueprint.from_payload({"steps": [_action("a", ui={"x": 10, "y": 20})], "layout": "grid"})

    assert bp.steps[0].id == "a"


def test_label_prefers_name() -> None:
    bp = Blueprint.from_payload({"steps": [_action("a", name="Send greeting"), _action("b")]})

    assert bp.steps[0].label == "Send greeting"
    assert bp.steps[1].label == "b"
