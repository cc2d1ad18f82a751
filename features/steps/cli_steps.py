from __future__ import annotations

import json
import shlex

from behave import given, then, when

from features.environment import run_wordchain


@given('a text file "{name}" with content:')
def step_text_file(context, name: str) -> None:
    (context.workdir / name).write_text(context.text + "\n", encoding="utf-8")


@when('I run wordchain "{arguments}" with input:')
def step_run_with_input(context, arguments: str) -> None:
    run_wordchain(context, shlex.split(arguments), input_text=context.text)


@when('I run wordchain "{arguments}"')
def step_run(context, arguments: str) -> None:
    run_wordchain(context, shlex.split(arguments))


@then("the command succeeds")
def step_command_succeeds(context) -> None:
    result = context.last_result
    assert result.returncode == 0, result.stderr


@then("the command exits with code {code:d}")
def step_command_exit_code(context, code: int) -> None:
    result = context.last_result
    assert result.returncode == code, (result.returncode, result.stderr)


@then('the file "{name}" exists')
def step_file_exists(context, name: str) -> None:
    assert (context.workdir / name).is_file()


@then('standard output ends with "{suffix}"')
def step_stdout_ends_with(context, suffix: str) -> None:
    output = context.last_result.stdout.strip()
    assert output.lower().endswith(suffix.lower()), output


@then('standard error contains "{fragment}"')
def step_stderr_contains(context, fragment: str) -> None:
    assert fragment in context.last_result.stderr, context.last_result.stderr


@then("standard output reports {count:d} nodes")
def step_stdout_node_count(context, count: int) -> None:
    summary = json.loads(context.last_result.stdout)
    assert summary["node_count"] == count, summary
