"""Offline renderer — print-literal extraction and the never-empty fallback."""

from __future__ import annotations

import pytest

from devrate.client.simulated import (
    NO_OUTPUT_MESSAGE,
    OUTPUT_HEADER,
    PLACEHOLDER,
    OfflineExecutor,
    simulate_output,
)
from devrate.models.schemas import ExecutionRequest, StatusKind


def test_literal_and_expression_prints():
    output = simulate_output('print("hi")\nprint(2+2)')

    assert output.split("\n") == [OUTPUT_HEADER, "hi", PLACEHOLDER]


def test_single_quoted_literal():
    assert simulate_output("print('single')").split("\n")[1] == "single"


def test_indented_print_is_collected():
    code = "for i in range(3):\n    print(i)\n"
    assert simulate_output(code).split("\n") == [OUTPUT_HEADER, PLACEHOLDER]


def test_commented_print_is_ignored():
    assert simulate_output('# print("hidden")\nx = 1') == NO_OUTPUT_MESSAGE


@pytest.mark.parametrize("code", ["", "x = 1\ny = 2", "\n\n", "printf('nope')"])
def test_no_prints_gives_fixed_message_never_empty(code):
    output = simulate_output(code)
    assert output == NO_OUTPUT_MESSAGE
    assert output.strip()


def test_empty_call_uses_placeholder():
    assert simulate_output("print()").split("\n")[1] == PLACEHOLDER


@pytest.mark.asyncio
async def test_offline_executor_marks_result_simulated():
    request = ExecutionRequest(script='print("hi")', language="python3")

    result = await OfflineExecutor().execute(request)

    assert result.simulated
    assert result.status is StatusKind.SUCCESS
    assert result.request_id == request.request_id
    assert "hi" in result.output
