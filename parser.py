from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from lexer import LineParseError, tokenize


OPENERS = ("while", "if")
CLOSER = "end"


@dataclass(frozen=True)
class SourceLocation:
    file: str
    line: int
    column: int
    statement: str


@dataclass(frozen=True)
class Instruction:
    tokens: Tuple[str, ...]
    location: SourceLocation

    @property
    def head(self) -> str:
        return self.tokens[0]

    def __len__(self) -> int:
        return len(self.tokens)


@dataclass(frozen=True)
class Program:
    instructions: List[Instruction]
    jump_table: Dict[int, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.instructions)


def build_jump_table(instructions: Sequence[Instruction]) -> Dict[int, int]:
    """Pair every ``while``/``if`` with its ``end``.

    The returned mapping holds both directions, so ``table[table[i]] == i``
    for every opener and closer index.
    """
    table: Dict[int, int] = {}
    pending: List[int] = []
    for index, instruction in enumerate(instructions):
        head = instruction.head
        if head in OPENERS:
            pending.append(index)
        elif head == CLOSER:
            if not pending:
                raise LineParseError(
                    f"'end' without matching 'while' or 'if' at line {instruction.location.line}",
                    kind="UnmatchedEnd",
                    location=instruction.location,
                )
            opener = pending.pop()
            table[index] = opener
            table[opener] = index
    if pending:
        unclosed = instructions[pending[-1]]
        raise LineParseError(
            f"'{unclosed.head}' is never closed by 'end' at line {unclosed.location.line}",
            kind="UnmatchedOpener",
            location=unclosed.location,
        )
    return table


class Parser:
    def __init__(self, source_lines: Sequence[str], filename: str) -> None:
        self.source_lines = list(source_lines)
        self.filename = filename

    def parse(self) -> Program:
        instructions = [self._instruction(index, raw) for index, raw in enumerate(self.source_lines)]
        return Program(instructions=instructions, jump_table=build_jump_table(instructions))

    def _instruction(self, index: int, raw: str) -> Instruction:
        stripped = raw.lstrip()
        location = SourceLocation(
            file=self.filename,
            line=index + 1,
            column=len(raw) - len(stripped) + 1,
            statement=raw.strip(),
        )
        return Instruction(tokens=tuple(tokenize(raw)), location=location)


def parse_lines(source_lines: Sequence[str], filename: str = "<string>") -> Program:
    return Parser(source_lines, filename).parse()
