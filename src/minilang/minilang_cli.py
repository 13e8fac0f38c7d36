"""
minilang CLI Entrypoint.

Runs the syntax analyser over one source file (or, with `-s`, over a literal
program string) and reports whether it is a valid minilang program.

Example usage:
    minilang program.txt
    minilang -s "begin x := 1 end" --trace
    minilang program.txt --symbols --verbose

Functions:
    run_minilang(source: str, is_string: bool = False, trace: bool = False,
                 verbose: bool = False, symbols: bool = False) -> int:
        Analyses the source and returns a process exit status.

    main(argv: list[str] | None = None) -> None:
        Parses CLI arguments and exits with the status of `run_minilang`.
"""

import argparse
import sys

from minilang.minilang_errors import CompilationError
from minilang.minilang_generate import Generate
from minilang.minilang_lexer import CharacterStream, Lexer
from minilang.minilang_parser import SyntaxAnalyser

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_UNREADABLE = 2


def run_minilang(
    source: str,
    is_string: bool = False,
    trace: bool = False,
    verbose: bool = False,
    symbols: bool = False,
) -> int:
    """
    Analyse a minilang program and print the outcome.

    Args:
        source (str): Path to the program, or the program text when `is_string`.
        is_string (bool): Treat `source` as program text. Defaults to False.
        trace (bool): Print the indented parse trace as it is built.
        verbose (bool): On failure, also print the grammar rules the error passed through.
        symbols (bool): On success, print the declared variables and their types.

    Returns:
        int: 0 if the program is valid, 1 if analysis failed, 2 if the file
        could not be read.
    """
    try:
        if is_string:
            lexer = Lexer(CharacterStream(source), filename="<string>")
        else:
            lexer = Lexer.from_file(source)
    except OSError as e:
        print(f"error: cannot read {source}: {e.strerror or e}", file=sys.stderr)
        return EXIT_UNREADABLE
    except UnicodeDecodeError as e:
        print(f"error: cannot read {source}: not valid UTF-8 ({e.reason})", file=sys.stderr)
        return EXIT_UNREADABLE

    generate = Generate(echo=trace)
    try:
        SyntaxAnalyser(lexer, generate).parse()
    except CompilationError as e:
        print(f"error: {e.root.message}", file=sys.stderr)
        if verbose:
            print("rule trace: " + " > ".join(e.rule_trace()), file=sys.stderr)
        return EXIT_INVALID

    print(f"{lexer.filename}: parsed successfully")
    if symbols:
        for identifier, type_name in generate.registry.snapshot().items():
            print(f"  {identifier}: {type_name}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the minilang CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as program text instead of a file path.
        - `-t`, `--trace`: Print the indented parse trace.
        - `-v`, `--verbose`: Print the rule trace of a failure.
        - `--symbols`: Print the variable registry after a successful parse.
    """
    parser = argparse.ArgumentParser(
        prog="minilang", description="Syntax and type check a minilang program."
    )
    parser.add_argument("source", help="Filename or program text (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal text"
    )
    parser.add_argument(
        "-t", "--trace", action="store_true", help="Print the parse trace"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show the rule trace on failure"
    )
    parser.add_argument(
        "--symbols", action="store_true", help="Print declared variables on success"
    )

    args = parser.parse_args(argv)
    sys.exit(
        run_minilang(
            source=args.source,
            is_string=args.string,
            trace=args.trace,
            verbose=args.verbose,
            symbols=args.symbols,
        )
    )


if __name__ == "__main__":
    main()
