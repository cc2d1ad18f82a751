from __future__ import annotations

import contextlib
import io
import os
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from wordchain.cli import main as wordchain_main


def before_scenario(context, scenario) -> None:
    """
    Behave hook executed before each scenario.

    :param context: Behave context object.
    :type context: object
    :param scenario: Behave scenario.
    :type scenario: object
    :return: None.
    :rtype: None
    """
    context._tmp = tempfile.TemporaryDirectory(prefix="wordchain-bdd-")
    context.workdir = Path(context._tmp.name)
    context.last_result = None
    context.trainer = None
    context.builder = None
    context.rendered = None
    context.loaded = None


def after_scenario(context, scenario) -> None:
    tmp = getattr(context, "_tmp", None)
    if tmp is not None:
        tmp.cleanup()
        context._tmp = None


@dataclass
class RunResult:
    """
    Captured command-line interface execution result.

    :ivar returncode: Process exit code.
    :vartype returncode: int
    :ivar stdout: Captured standard output.
    :vartype stdout: str
    :ivar stderr: Captured standard error.
    :vartype stderr: str
    """

    returncode: int
    stdout: str
    stderr: str


def run_wordchain(
    context, args: Sequence[str], *, input_text: Optional[str] = None
) -> RunResult:
    """
    Run the wordchain command-line interface in-process inside the scenario directory.

    :param context: Behave context object.
    :type context: object
    :param args: Command-line interface argument list.
    :type args: Sequence[str]
    :param input_text: Optional standard input content.
    :type input_text: str or None
    :return: Captured execution result.
    :rtype: RunResult
    """
    out = io.StringIO()
    err = io.StringIO()
    prev_cwd = os.getcwd()
    prev_stdin = sys.stdin
    try:
        os.chdir(str(context.workdir))
        if input_text is not None:
            sys.stdin = io.StringIO(input_text)
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            try:
                code = int(wordchain_main(list(args)) or 0)
            except SystemExit as e:
                code = e.code if isinstance(e.code, int) else 1
    finally:
        os.chdir(prev_cwd)
        sys.stdin = prev_stdin

    result = RunResult(returncode=code, stdout=out.getvalue(), stderr=err.getvalue())
    context.last_result = result
    return result
