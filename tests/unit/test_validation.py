"""
Unit tests for workflow definition validation.
"""

import pytest
from services.api.domain.validation import validate_step, validate_workflow
from shared.exceptions import ValidationError
from tests.helpers import make_step, make_workflow


def test_validate_simple_workflow():
    """Checks that a basic two-step workflow validates"""
    workflow = make_workflow([
        make_step("a", config={"script": '{"v": 1}'}),
        make_step("b", dependencies=["a"], inputs={"v": "$steps.a.v"}, config={"script": '{"v": v}'}),
    ])

    validate_workflow(workflow)


def test_empty_workflow_rejected():
    with pytest.raises(ValidationError, match="at least one step"):
        validate_workflow(make_workflow([]))


def test_duplicate_step_ids():
    workflow = make_workflow([make_step("a"), make_step("a")])

    with pytest.raises(ValidationError, match="Duplicate step ID: a"):
        validate_workflow(workflow)


def test_cycle_rejected():
    """Makes sure cycles get caught"""
    workflow = make_workflow([
        make_step("a", dependencies=["b"]),
        make_step("b", dependencies=["a"]),
    ])

    with pytest.raises(ValidationError, match="Circular dependency"):
        validate_workflow(workflow)


def test_dangling_dependency_rejected():
    with pytest.raises(ValidationError, match="non-existent step 'ghost'"):
        validate_workflow(make_workflow([make_step("a", dependencies=["ghost"])]))


def test_unknown_step_type_rejected():
    with pytest.raises(ValidationError, match="invalid type: 'teleport'"):
        validate_step(make_step("a", step_type="teleport"))


def test_invalid_config_rejected():
    step = make_step("a", step_type="llm-completion", config={"max_tokens": 0})

    with pytest.raises(ValidationError, match="Invalid configuration"):
        validate_step(step)


def test_unknown_config_field_rejected():
    step = make_step("a", step_type="external-call", config={"endpoint": "channels", "url": "http://x"})

    with pytest.raises(ValidationError):
        validate_step(step)


def test_parallel_sub_steps_validated():
    step = make_step("group", step_type="parallel-group", config={"steps": [{"id": "s", "type": "teleport"}]})

    with pytest.raises(ValidationError, match="teleport"):
        validate_step(step)


def test_reference_to_non_ancestor_rejected():
    workflow = make_workflow([
        make_step("a"),
        make_step("b", inputs={"v": "$steps.a.value"}),
    ])

    with pytest.raises(ValidationError, match="does not depend on 'a'"):
        validate_workflow(workflow)


def test_template_reference_to_transitive_ancestor_allowed():
    workflow = make_workflow([
        make_step("a", config={"script": '{"v": 1}'}),
        make_step("b", dependencies=["a"], config={"script": '{"v": 2}'}),
        make_step("c", dependencies=["b"], inputs={"text": "from {{steps.a.v}}"}, config={"script": '{"t": text}'}),
    ])

    validate_workflow(workflow)


def test_oversized_config_rejected():
    step = make_step("a", config={"script": "x" * 70000})

    with pytest.raises(ValidationError, match="exceeds size limit"):
        validate_step(step)


def test_transitive_ancestor_declared_after_dependent_allowed():
    workflow = make_workflow([
        make_step("c", dependencies=["b"], inputs={"v": "$steps.a.v"}, config={"script": '{"v": v}'}),
        make_step("b", dependencies=["a"], config={"script": '{"v": 2}'}),
        make_step("a", config={"script": '{"v": 1}'}),
    ])

    validate_workflow(workflow)


@pytest.mark.parametrize("name", ["steps", "workflow_inputs"])
def test_reserved_transform_input_names_rejected(name):
    step = make_step("t", inputs={name: "$input.x"}, config={"script": '{"r": 1}'})

    with pytest.raises(ValidationError, match=f"reserved input names: {name}"):
        validate_step(step)


def test_reserved_names_rejected_inside_parallel_group():
    step = make_step("group", step_type="parallel-group", config={"steps": [
        {"id": "s", "type": "transform", "inputs": {"steps": 1}, "config": {"script": '{"r": 1}'}},
    ]})

    with pytest.raises(ValidationError, match="reserved input names"):
        validate_step(step)
