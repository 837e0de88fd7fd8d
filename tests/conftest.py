"""
Pytest fixtures shared by the Line-Lang test modules.
"""

import pytest

from interpreter import Interpreter, run_source


@pytest.fixture
def run():
    """Run a program given as a list of lines and return its RunResult."""

    def _run(lines, **kwargs):
        return run_source("\n".join(lines), **kwargs)

    return _run


@pytest.fixture
def make_interpreter():
    """Build an Interpreter over the given lines that collects printed output."""

    def _make(lines, **kwargs):
        output = []
        interpreter = Interpreter(source="\n".join(lines), output_sink=output.append, **kwargs)
        return interpreter, output

    return _make
