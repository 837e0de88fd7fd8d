"""Line-Lang entry point and REPL wiring."""

from __future__ import annotations
import argparse
import sys
from typing import Callable, List, Optional

from interpreter import Interpreter, LineRuntimeError, error_to_json, format_error
from lexer import LineParseError, tokenize
from parser import OPENERS, parse_lines


def _is_block_start(line: str) -> bool:
    return tokenize(line)[0] in OPENERS


def run_repl(
    verbose: bool,
    max_steps: Optional[int] = None,
    input_provider: Optional[Callable[[str], str]] = None,
    output_sink: Optional[Callable[[str], None]] = None,
) -> int:
    read_line = input_provider or input
    write = output_sink or (lambda text: print(text))
    write("Line-Lang REPL. Enter statements, blank line to run a block.")

    # One interpreter for the session: variables persist, the step limit applies per submission.
    interpreter = Interpreter(filename="<repl>", verbose=verbose, output_sink=write, max_steps=max_steps)
    buffer: List[str] = []

    def _run(lines: List[str]) -> None:
        try:
            interpreter.execute(parse_lines(lines, "<repl>"))
        except LineParseError as error:
            write(format_error(error))
        except LineRuntimeError as error:
            write(format_error(error, interpreter.last_step, verbose=interpreter.verbose))

    while True:
        prompt = ">>> " if not buffer else "..> "
        try:
            line = read_line(prompt)
        except EOFError:
            break

        stripped = line.strip()
        if not buffer:
            if stripped == "":
                continue
            if not _is_block_start(line):
                _run([line])
                continue

        if stripped == "" and buffer:
            source_lines = list(buffer)
            buffer.clear()
            _run(source_lines)
            continue

        buffer.append(line)

    return 0


def run_cli(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Line-Lang interpreter")
    parser.add_argument("program", nargs="?", help="Source file path or literal source with -source")
    parser.add_argument("-source", "--source", dest="source_mode", action="store_true", help="Treat program argument as literal source text")
    parser.add_argument("-stdin", "--stdin", dest="stdin_mode", action="store_true", help="Read the program from standard input")
    parser.add_argument("-verbose", "--verbose", dest="verbose", action="store_true", help="Show variable values in error reports")
    parser.add_argument("--traceback-json", action="store_true", help="Also emit the error as JSON")
    parser.add_argument("--max-steps", type=int, default=None, help="Abort after this many executed instructions")
    args = parser.parse_args(argv)

    if args.stdin_mode and (args.program is not None or args.source_mode):
        parser.error("--stdin cannot be combined with a program argument or -source")
    if args.max_steps is not None and args.max_steps <= 0:
        parser.error("--max-steps must be >= 1")

    if args.program is None and not args.stdin_mode:
        if args.source_mode:
            print("-source requires a program string", file=sys.stderr)
            return 1
        return run_repl(verbose=args.verbose, max_steps=args.max_steps)

    if args.stdin_mode:
        filename = "<stdin>"
        try:
            source_text = sys.stdin.read()
        except (OSError, UnicodeDecodeError) as exc:
            print(f"Failed to read standard input: {exc}", file=sys.stderr)
            return 1
    elif args.source_mode:
        source_text = args.program
        filename = "<string>"
    else:
        filename = args.program
        try:
            with open(filename, "r", encoding="utf-8") as handle:
                source_text = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            print(f"Failed to read {filename}: {exc}", file=sys.stderr)
            return 1

    interpreter = Interpreter(source=source_text, filename=filename, verbose=args.verbose, max_steps=args.max_steps)
    try:
        interpreter.run()
    except LineParseError as error:
        interpreter.output_sink(format_error(error))
        return 1
    except LineRuntimeError as error:
        interpreter.output_sink(format_error(error, interpreter.last_step, verbose=args.verbose))
        if args.traceback_json:
            interpreter.output_sink(error_to_json(error))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(run_cli())
