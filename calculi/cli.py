#!/usr/bin/env python3
"""
CALCULI Command-Line Interface

Provides interactive REPL, script execution, and pipe/filter modes.

Usage:
    calculi                           # Start REPL
    calculi script.calc               # Run script
    calculi -e "XIV + IX"             # Evaluate expression
    calculi -t -e "X - I"             # Show every phase of the calculation
    calculi --rules bundle            # Print a rule table
    echo "MCM + LXX" | calculi        # Filter mode

Script Format (.calc files):
    #!/usr/bin/env calculi
    :max-length 100

    XIV + IX
    MCMXCIX - CMXCIX
    IIII

REPL Commands:
    :help              Show help
    :trace on|off      Toggle tracing
    :rules [TABLE]     List a rule table (normalize, bundle, contract)
    :max-length [N]    Show or set the maximum numeral length
    :additive NUMERAL  Show a numeral without subtractive forms
    :quit              Exit
"""

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from . import __version__
from .arithmetic import add, subtract, normalize, to_additive
from .errors import NumeralError
from .symbols import DEFAULT_SYSTEM, NumeralSystem

# Try to import readline for better REPL experience
try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False

log = logging.getLogger("calculi.cli")

TABLE_NAMES = ["normalize", "bundle", "contract"]

_TOKEN = re.compile(r"\s*(?:([A-Za-z]+)|([+-])|(\S))")


def tokenize(line: str) -> List[str]:
    """
    Split an expression into numerals and operators.

    Numerals are upper-cased. Any other character is an error.

    Examples:
        tokenize("xiv+ix")     # => ["XIV", "+", "IX"]
        tokenize("X - I + V")  # => ["X", "-", "I", "+", "V"]
    """
    tokens = []
    for numeral, operator, other in _TOKEN.findall(line):
        if other:
            raise ValueError(f"Unexpected character: {other!r}")
        tokens.append(numeral.upper() if numeral else operator)
    return tokens


def evaluate(line: str, system: NumeralSystem = DEFAULT_SYSTEM,
             trace: bool = False) -> Tuple[str, List]:
    """
    Evaluate a left-to-right chain such as "X + V - II".

    A lone numeral evaluates to its minimal form.

    Returns:
        (result, traces) where traces holds a CalculationTrace per
        operator when trace=True
    """
    tokens = tokenize(line)
    if not tokens:
        raise ValueError("Empty expression")
    if len(tokens) % 2 == 0 or any(
            (tok in "+-") != (i % 2 == 1) for i, tok in enumerate(tokens)):
        raise ValueError(f"Malformed expression: {line.strip()}")

    traces = []
    if len(tokens) == 1:
        return normalize(tokens[0], system), traces

    result = tokens[0]
    for operator, operand in zip(tokens[1::2], tokens[2::2]):
        operation = add if operator == "+" else subtract
        if trace:
            result, calc = operation(result, operand, system=system, trace=True)
            traces.append(calc)
        else:
            result = operation(result, operand, system=system)
    return result, traces


class CalculiCompleter:
    """Tab completer for CALCULI REPL."""

    COMMANDS = [
        ":help", ":quit", ":exit", ":q",
        ":trace", ":rules", ":max-length", ":additive",
    ]

    TRACE_OPTIONS = ["on", "off"]

    def __init__(self, repl: 'CalculiREPL'):
        self.repl = repl

    def complete(self, text: str, state: int) -> Optional[str]:
        """Return the next possible completion for 'text'."""
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)

        try:
            return self.matches[state]
        except IndexError:
            return None

    def _get_matches(self, text: str, line: str) -> list:
        """Get list of matches for the current input."""
        line = line.lstrip()

        if line.startswith(":rules "):
            return [t for t in TABLE_NAMES if t.startswith(text)]

        if line.startswith(":trace "):
            return [t for t in self.TRACE_OPTIONS if t.startswith(text)]

        if text.startswith(":") or (line.startswith(":") and " " not in line):
            return [c for c in self.COMMANDS if c.startswith(text)]

        return []


class CalculiREPL:
    """Interactive REPL for calculi."""

    def __init__(self, system: NumeralSystem = DEFAULT_SYSTEM):
        self.system = system
        self.trace = False
        self.running = True

        # Set up readline history and completion
        if HAS_READLINE:
            self.history_file = Path.home() / ".calculi_history"
            try:
                readline.read_history_file(self.history_file)
            except (FileNotFoundError, OSError):
                pass
            readline.set_history_length(1000)

            self.completer = CalculiCompleter(self)
            readline.set_completer(self.completer.complete)
            readline.parse_and_bind("tab: complete")
            readline.set_completer_delims(" \t\n")

    def save_history(self):
        """Save readline history."""
        if HAS_READLINE:
            try:
                readline.write_history_file(self.history_file)
            except OSError as e:
                log.debug("Could not save history: %s", e)

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        Returns a message to print, or None.
        """
        parts = line[1:].split(None, 1)
        if not parts:
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd in ("quit", "exit", "q"):
            self.running = False
            return None

        elif cmd == "trace":
            if arg.lower() in ("on", "true", "1"):
                self.trace = True
                return "Tracing enabled"
            elif arg.lower() in ("off", "false", "0"):
                self.trace = False
                return "Tracing disabled"
            else:
                self.trace = not self.trace
                return f"Tracing {'enabled' if self.trace else 'disabled'}"

        elif cmd == "rules":
            tables = self.system.tables()
            names = [arg.lower()] if arg else TABLE_NAMES
            unknown = [n for n in names if n not in tables]
            if unknown:
                return f"Unknown table: {unknown[0]}. Options: {', '.join(TABLE_NAMES)}"
            return "\n\n".join(tables[n].to_dsl() for n in names)

        elif cmd == "max-length":
            if not arg:
                return f"Maximum numeral length: {self.system.max_length}"
            try:
                self.system = self.system.with_max_length(int(arg))
            except ValueError as e:
                return f"Error: {e}"
            return f"Maximum numeral length set to: {self.system.max_length}"

        elif cmd == "additive":
            if not arg:
                return "Usage: :additive NUMERAL"
            try:
                return to_additive(arg.upper(), self.system)
            except NumeralError as e:
                return f"Error: {e}"

        else:
            return f"Unknown command: {cmd}. Type :help for help."

    def help_text(self) -> str:
        """Return help text."""
        return """CALCULI REPL Commands:
  :help              Show this help
  :trace on|off      Toggle tracing
  :rules [TABLE]     List rule tables (normalize, bundle, contract)
  :max-length [N]    Show or set the maximum numeral length
  :additive NUMERAL  Write a numeral without subtractive forms
  :quit              Exit

Syntax:
  XIV + IX                                 Add
  MCM - XC                                 Subtract
  X + V - II                               Chain, left to right
  IIII                                     Minimal form of a numeral
"""

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a single line of input.

        Returns the result to print, or None.
        """
        line = line.strip()

        # Empty line or comment
        if not line or line.startswith("#"):
            return None

        # Command
        if line.startswith(":"):
            return self.handle_command(line)

        log.debug("Evaluating %r", line)
        try:
            result, traces = evaluate(line, self.system, trace=self.trace)
        except ValueError as e:
            # NumeralError is a ValueError too
            log.info("Evaluation of %r failed: %s", line, e)
            return f"Error: {e}"

        if traces:
            return "\n".join([repr(calc) for calc in traces])
        return result

    def run(self):
        """Run the REPL loop."""
        print("CALCULI - Roman arithmetic on the counting board")
        print("Type :help for help, :quit to exit")
        print()

        while self.running:
            try:
                line = input("calculi> ")
                result = self.process_line(line)
                if result:
                    print(result)

            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                print()
                continue

        self.save_history()


class ScriptRunner:
    """Runs calculi scripts."""

    def __init__(self, system: NumeralSystem = DEFAULT_SYSTEM):
        self.repl = CalculiREPL(system)

    def run_script(self, path: Path, quiet: bool = False) -> int:
        """
        Run a script file.

        Args:
            path: Path to the script
            quiet: If True, don't print expression results

        Returns:
            Exit code (0 for success)
        """
        try:
            lines = path.read_text().splitlines()
        except OSError as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            return 1

        for lineno, line in enumerate(lines, 1):
            line = line.strip()

            # Skip empty lines, comments, and shebang
            if not line or line.startswith("#"):
                continue

            result = self.repl.process_line(line)
            if not result:
                continue
            if result.startswith("Error") or result.startswith("Unknown"):
                print(f"{path}:{lineno}: {result}", file=sys.stderr)
                return 1
            if not quiet and not line.startswith(":"):
                print(result)

        return 0

    def run_expression(self, expr_str: str) -> int:
        """
        Evaluate a single expression.

        Returns:
            Exit code (0 for success)
        """
        result = self.repl.process_line(expr_str)
        if result:
            if result.startswith("Error"):
                print(result, file=sys.stderr)
                return 1
            print(result)
        return 0

    def run_stdin(self) -> int:
        """
        Read expressions from stdin and evaluate them.

        Every line is evaluated; the exit code is 1 if any of them failed.
        """
        status = 0
        for line in sys.stdin:
            result = self.repl.process_line(line)
            if not result:
                continue
            if result.startswith("Error"):
                status = 1
            print(result)

        return status


def configure_logging(verbose: bool = False, logfile: Optional[str] = None):
    """Send log records to stderr, or to a file when one is given."""
    level = logging.DEBUG if verbose else logging.WARNING
    handler_args = {"filename": logfile} if logfile else {"stream": sys.stderr}
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        **handler_args,
    )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="calculi",
        description="CALCULI - Roman numeral arithmetic by symbol rewriting",
        epilog="Examples:\n"
               "  calculi                        Start REPL\n"
               "  calculi script.calc            Run script\n"
               "  calculi -e 'XIV + IX'          Evaluate expression\n"
               "  calculi --rules contract       Print a rule table\n"
               "  echo 'X - I' | calculi         Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "script",
        nargs="?",
        help="Script file to run (.calc)"
    )

    parser.add_argument(
        "-e", "--expr",
        help="Evaluate a single expression"
    )

    parser.add_argument(
        "-t", "--trace",
        action="store_true",
        help="Show every phase of each calculation"
    )

    parser.add_argument(
        "-m", "--max-length",
        type=int,
        default=DEFAULT_SYSTEM.max_length,
        help="Maximum combined additive length of two operands (default: %(default)s)"
    )

    parser.add_argument(
        "--rules",
        choices=TABLE_NAMES,
        help="Print a rule table and exit"
    )

    parser.add_argument(
        "--format",
        choices=["dsl", "json"],
        default="dsl",
        help="Output format for --rules"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (suppress non-essential output)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output"
    )

    parser.add_argument(
        "-l", "--log",
        dest="logfile",
        help="Save log output to a file"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args()
    configure_logging(args.verbose, args.logfile)

    try:
        system = NumeralSystem(max_length=args.max_length)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    log.debug("Using %r", system)

    if args.rules:
        table = system.tables()[args.rules]
        print(table.to_json() if args.format == "json" else table.to_dsl())
        sys.exit(0)

    runner = ScriptRunner(system)
    runner.repl.trace = args.trace

    # Determine mode
    if args.script:
        sys.exit(runner.run_script(Path(args.script), quiet=args.quiet))

    elif args.expr:
        sys.exit(runner.run_expression(args.expr))

    elif not sys.stdin.isatty():
        sys.exit(runner.run_stdin())

    else:
        runner.repl.run()


if __name__ == "__main__":
    main()
