#!/usr/bin/env python3
"""
Scientific Calculator - Command Line Front End
Evaluates a single expression from the command line or runs an interactive
session on top of the postfix engine.
"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from calc_engine import (
    CalculatorError, EngineConfig, PostfixEngine, format_postfix
)

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "WARNING"):
    """Configure root logging for the command line tool"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def format_result(result: float) -> str:
    """Standard float text: 11.0, inf, nan"""
    return repr(result)


class Calculator:
    """Interactive session: wraps the stateless engine and keeps a history"""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.engine = PostfixEngine(config)
        self.history: List[Tuple[str, float]] = []

    def evaluate(self, expression: str) -> float:
        """Evaluate expression and record it in the session history"""
        result = self.engine.evaluate(expression)
        self.history.append((expression, result))
        return result

    def postfix(self, expression: str) -> str:
        """RPN form of expression"""
        return format_postfix(self.engine.to_postfix(self.engine.tokenize(expression)))

    def show_history(self, n: int = 10):
        """Display last n calculations"""
        for expr, result in self.history[-n:]:
            print(f"  {expr} = {format_result(result)}")

    def clear_history(self):
        """Clear calculation history"""
        self.history = []


def print_help():
    print("\nOperators: + - * / ^ (all left-associative, ^ binds tightest)")
    print("Functions: sin cos tan (degrees), log (base 10), sqrt")
    print("Examples:  3+4*2   (3+4)*2   sqrt(16)   sin(30)   (0-5)*2")
    print("\nCommands:")
    print("  help     - Show this help")
    print("  history  - Show calculation history")
    print("  clear    - Clear history")
    print("  quit     - Exit calculator")
    print()


def run_repl(calc: Calculator, show_rpn: bool = False):
    print("=" * 60)
    print("SCIENTIFIC CALCULATOR")
    print("=" * 60)
    print("Type 'help' for usage, 'quit' to exit.")
    print()

    while True:
        try:
            user_input = input("calc> ").strip()

            if not user_input:
                continue

            command = user_input.lower()
            if command in ('quit', 'exit'):
                print("Goodbye!")
                break
            elif command == 'help':
                print_help()
            elif command == 'history':
                if calc.history:
                    print("\nRecent calculations:")
                    calc.show_history()
                else:
                    print("No history yet")
                print()
            elif command == 'clear':
                calc.clear_history()
                print("Cleared history\n")
            else:
                if show_rpn:
                    print(f"rpn: {calc.postfix(user_input)}")
                result = calc.evaluate(user_input)
                print(f"= {format_result(result)}\n")

        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break
        except CalculatorError as e:
            print(f"Error: {e}\n")
        except Exception as e:
            logger.error(f"Unexpected error in main loop: {e}")
            print(f"Unexpected error: {e}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calc",
        description="Scientific calculator: + - * / ^, parentheses, sin cos tan log sqrt",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "3+4*2"            # 11.0
  %(prog)s --rpn "(3+4)*2"    # show postfix form too
  %(prog)s --strict "2 $ 3"   # reject unknown characters
  %(prog)s                    # interactive mode
        """
    )
    parser.add_argument(
        'expression',
        nargs='?',
        help='Expression to evaluate'
    )
    parser.add_argument(
        '--interactive', '-i',
        action='store_true',
        help='Start interactive mode'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Reject unrecognized characters and missing operands'
    )
    parser.add_argument(
        '--rpn',
        action='store_true',
        help='Print the postfix form before the result'
    )
    parser.add_argument(
        '--log-level',
        default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (default: WARNING)'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    calc = Calculator(EngineConfig(strict=args.strict))

    if args.interactive or args.expression is None:
        run_repl(calc, show_rpn=args.rpn)
        return 0

    try:
        if args.rpn:
            print(f"rpn: {calc.postfix(args.expression)}")
        result = calc.evaluate(args.expression)
    except CalculatorError as e:
        logger.info(f"Evaluation of {args.expression!r} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(format_result(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
