from __future__ import annotations
import json
import numpy as np
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from lexer import LineError, LineParseError, is_number, is_special
from parser import CLOSER, Instruction, Parser, Program, SourceLocation


PRECEDENCE: Dict[str, int] = {
    "+": 1,
    "-": 1,
    "*": 2,
    "/": 2,
    "^": 3,
}

COMPARISONS = ("<", ">")

TRUE = np.float64(1.0)
FALSE = np.float64(0.0)


def format_number(value: Any) -> str:
    # Matches the default C stream rendering of a double (%g, 6 significant digits).
    return f"{float(value):g}"


class LineRuntimeError(LineError):
    """Raised for runtime faults."""

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        location: Optional[SourceLocation] = None,
    ) -> None:
        super().__init__(message, kind=kind, location=location)
        self.step_index: Optional[int] = None


@dataclass
class Cursor:
    """Read position inside an instruction's token tuple."""

    index: int = 0


@dataclass
class Environment:
    values: Dict[str, np.float64] = field(default_factory=dict)

    def set(self, name: str, value: np.float64) -> None:
        self.values[name] = np.float64(value)

    def get_optional(self, name: str) -> Optional[np.float64]:
        return self.values.get(name)

    def snapshot(self) -> Dict[str, str]:
        return {k: format_number(v) for k, v in self.values.items()}


@dataclass(frozen=True)
class StepRecord:
    """The most recently dispatched instruction of the current run."""

    step_index: int
    pc: int
    rule: str
    location: SourceLocation
    env_snapshot: Optional[Dict[str, str]]


def classify(instruction: Instruction) -> str:
    """Name the action an instruction performs, in dispatch priority order."""
    tokens = instruction.tokens
    head = tokens[0]
    if head == "#" or head == "":
        return "NOOP"
    if head == CLOSER:
        return "END"
    if head == "while":
        return "WHILE"
    if head == "if":
        return "IF"
    if len(tokens) == 1:
        return "PRINT"
    if tokens[1] == "=":
        return "ASSIGN"
    return "EXPR"


def _apply_operator(op: str, a: np.float64, b: np.float64) -> np.float64:
    # IEEE semantics: x / 0 and overflowing powers give inf/nan instead of raising.
    with np.errstate(all="ignore"):
        if op == "+":
            return a + b
        if op == "-":
            return a - b
        if op == "*":
            return a * b
        if op == "/":
            return np.divide(a, b)
        return np.power(a, b)


class Interpreter:
    def __init__(
        self,
        *,
        source: str = "",
        filename: str = "<string>",
        verbose: bool = False,
        output_sink: Optional[Callable[[str], None]] = None,
        max_steps: Optional[int] = None,
    ) -> None:
        if max_steps is not None and max_steps <= 0:
            raise ValueError("max_steps must be >= 1")
        self.source = source
        self._source_lines = source.splitlines()
        self.filename = filename
        self.verbose = verbose
        self.max_steps = max_steps
        self.output_sink = output_sink or (lambda text: print(text))

        self.env = Environment()
        self.program = Program(instructions=[])
        self.pc = 0
        # Both reset at the start of every execute(); only the latest step is kept.
        self.steps = 0
        self.last_step: Optional[StepRecord] = None

    def parse(self) -> Program:
        return Parser(self._source_lines, self.filename).parse()

    def run(self) -> None:
        self.execute(self.parse())

    def execute(self, program: Program) -> None:
        """Run ``program`` from its first instruction, keeping existing variables."""
        self.program = program
        self.pc = 0
        self.steps = 0
        self.last_step = None
        try:
            while self.step():
                pass
        except LineRuntimeError as error:
            error.step_index = self.steps
            raise
        except Exception as exc:
            # Surface unexpected Python-level faults as interpreter errors so
            # the CLI can format them like any other failure.
            loc = self.last_step.location if self.last_step else None
            wrapped = LineRuntimeError(f"Internal interpreter error: {exc}", kind="internal", location=loc)
            wrapped.step_index = self.steps
            raise wrapped from exc

    def step(self) -> bool:
        """Dispatch the instruction at ``pc``; return False once the program has finished."""
        if self.pc >= len(self.program):
            return False
        self._dispatch(self.program.instructions[self.pc])
        return self.pc < len(self.program)

    def _dispatch(self, instruction: Instruction) -> None:
        tokens = instruction.tokens
        location = instruction.location
        rule = classify(instruction)
        self._record_step(rule=rule, location=location)

        if rule == "NOOP":
            self.pc += 1
        elif rule == "END":
            opener = self.program.jump_table[self.pc]
            if self.program.instructions[opener].head == "while":
                self.pc = opener
            else:
                self.pc += 1
        elif rule in ("WHILE", "IF"):
            condition = self.evaluate_condition(tokens, Cursor(1), len(tokens), location)
            if condition == 0:
                self.pc = self.program.jump_table[self.pc] + 1
            else:
                self.pc += 1
        elif rule == "PRINT":
            name = tokens[0]
            if is_number(name):
                self._write(name)
            else:
                value = self.env.get_optional(name)
                if value is None:
                    raise LineRuntimeError(
                        f"Variable '{name}' not found at line {location.line}",
                        kind="UndefinedVariable",
                        location=location,
                    )
                self._write(format_number(value))
            self.pc += 1
        elif rule == "ASSIGN":
            target = tokens[0]
            if is_number(target) or is_special(target):
                raise LineRuntimeError(
                    f"Cannot assign to '{target}' at line {location.line}",
                    kind="InvalidAssignmentTarget",
                    location=location,
                )
            self.env.set(target, self.evaluate_expression(tokens, Cursor(2), len(tokens), location))
            self.pc += 1
        else:
            self._write(format_number(self.evaluate_expression(tokens, Cursor(0), len(tokens), location)))
            self.pc += 1

    def evaluate_expression(
        self,
        tokens: Sequence[str],
        cursor: Cursor,
        end: int,
        location: SourceLocation,
    ) -> np.float64:
        values: List[np.float64] = []
        ops: List[str] = []

        while cursor.index < end:
            token = tokens[cursor.index]
            cursor.index += 1
            if is_number(token):
                values.append(np.float64(token))
            elif token == "(":
                values.append(self.evaluate_expression(tokens, cursor, end, location))
            elif token == ")":
                break
            elif token in PRECEDENCE:
                while ops and PRECEDENCE[ops[-1]] >= PRECEDENCE[token]:
                    self._apply_top(values, ops, location)
                ops.append(token)
            else:
                value = self.env.get_optional(token)
                if value is None:
                    what = "Unexpected token" if is_special(token) else "Unknown identifier"
                    raise LineRuntimeError(
                        f"{what} '{token}' in expression at line {location.line}",
                        kind="MalformedExpression",
                        location=location,
                    )
                values.append(value)

        while ops:
            self._apply_top(values, ops, location)
        if len(values) != 1:
            raise LineRuntimeError(
                f"Invalid math expression at line {location.line}",
                kind="MalformedExpression",
                location=location,
            )
        return values[0]

    def _apply_top(self, values: List[np.float64], ops: List[str], location: SourceLocation) -> None:
        op = ops.pop()
        if len(values) < 2:
            raise LineRuntimeError(
                f"Operator '{op}' is missing an operand at line {location.line}",
                kind="MissingOperand",
                location=location,
            )
        b = values.pop()
        a = values.pop()
        values.append(_apply_operator(op, a, b))

    def evaluate_condition(
        self,
        tokens: Sequence[str],
        cursor: Cursor,
        end: int,
        location: SourceLocation,
    ) -> np.float64:
        """Evaluate ``lhs < rhs`` / ``lhs > rhs`` to 1.0 or 0.0.

        Ranges without a comparison are plain arithmetic and evaluate to
        their numeric value, so any non-zero result counts as true.
        """
        begin = cursor.index
        idx: Optional[int] = None
        for i in range(begin, end):
            if tokens[i] in COMPARISONS:
                if i == begin or i == end - 1:
                    raise LineRuntimeError(
                        f"Could not evaluate boolean expression at line {location.line}",
                        kind="MalformedCondition",
                        location=location,
                    )
                idx = i
                break

        if idx is None:
            return self.evaluate_expression(tokens, cursor, end, location)

        lhs = self.evaluate_condition(tokens, Cursor(begin), idx, location)
        rhs = self.evaluate_condition(tokens, Cursor(idx + 1), end, location)
        cursor.index = end
        if tokens[idx] == "<":
            return TRUE if lhs < rhs else FALSE
        return TRUE if lhs > rhs else FALSE

    def _write(self, text: str) -> None:
        self.output_sink(text)

    def _record_step(self, *, rule: str, location: SourceLocation) -> None:
        self.steps += 1
        self.last_step = StepRecord(
            step_index=self.steps,
            pc=self.pc,
            rule=rule,
            location=location,
            env_snapshot=self.env.snapshot() if self.verbose else None,
        )
        if self.max_steps is not None and self.steps > self.max_steps:
            raise LineRuntimeError(
                f"Step limit of {self.max_steps} exceeded at line {location.line}",
                kind="StepLimitExceeded",
                location=location,
            )


@dataclass(frozen=True)
class RunResult:
    output: List[str]
    exit_code: int
    error: Optional[LineError] = None


def run_source(
    source: str,
    *,
    filename: str = "<string>",
    verbose: bool = False,
    max_steps: Optional[int] = None,
) -> RunResult:
    """Run a whole program and report its output and exit status without raising."""
    output: List[str] = []
    interpreter = Interpreter(
        source=source,
        filename=filename,
        verbose=verbose,
        output_sink=output.append,
        max_steps=max_steps,
    )
    try:
        interpreter.run()
    except LineError as error:
        return RunResult(output=output, exit_code=1, error=error)
    return RunResult(output=output, exit_code=0)


def format_error(error: LineError, last_step: Optional[StepRecord] = None, *, verbose: bool = False) -> str:
    if isinstance(error, LineParseError):
        return f"ParseError: {error.message}"
    lines: List[str] = []
    location = error.location or (last_step.location if last_step else None)
    if location is not None:
        lines.append(f"  File \"{location.file}\", line {location.line}")
        if location.statement:
            lines.append(f"    {location.statement}")
    if verbose and last_step is not None and last_step.env_snapshot is not None:
        snapshot = ", ".join(f"{k}={v}" for k, v in last_step.env_snapshot.items())
        lines.append(f"    Variables: {snapshot}")
    lines.append(f"{error.__class__.__name__}: {error.message} (kind: {error.kind})")
    return "\n".join(lines)


def error_to_json(error: LineError) -> str:
    data = {
        "type": error.__class__.__name__,
        "kind": error.kind,
        "message": error.message,
        "file": error.location.file if error.location else None,
        "line": error.line,
        "step_index": getattr(error, "step_index", None),
    }
    return json.dumps(data, indent=2)
