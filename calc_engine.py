#!/usr/bin/env python3
"""
Postfix Scientific Calculator Engine
Tokenizes infix expressions, converts them to Reverse Polish Notation with the
shunting-yard algorithm and evaluates the result in double precision.
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

# ==========================================
# ERRORS
# ==========================================

class CalculatorError(ValueError):
    """Base class for every failure raised by the engine"""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class ExpressionSyntaxError(CalculatorError):
    """Malformed token structure: unmatched parentheses, missing operands, stray characters"""


class EvaluationError(CalculatorError):
    """Expression parsed but did not reduce to exactly one value"""

# ==========================================
# DATA MODELS
# ==========================================

class TokenType(Enum):
    NUMBER = "NUMBER"
    OPERATOR = "OPERATOR"
    FUNCTION = "FUNCTION"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: Union[str, float]
    position: int


@dataclass(frozen=True)
class EngineConfig:
    """Evaluation settings.

    In lenient mode (the default) unrecognized characters are skipped and a
    binary operator with no left operand uses 0.0 instead. Strict mode turns
    both cases into ExpressionSyntaxError.
    """
    strict: bool = False


DEFAULT_CONFIG = EngineConfig()

# Alternatives are tried in order at each position: functions, operators and
# parentheses, numbers. Anything else falls through to `space` or `other`.
_TOKEN_PATTERN = re.compile(
    r"(?P<function>sin|cos|tan|log|sqrt)"
    r"|(?P<operator>[-+*/^])"
    r"|(?P<lparen>\()"
    r"|(?P<rparen>\))"
    r"|(?P<number>[0-9]+(?:\.[0-9]+)?)"
    r"|(?P<space>\s+)"
    r"|(?P<other>.)",
    re.DOTALL,
)

_GROUP_TYPES = {
    'function': TokenType.FUNCTION,
    'operator': TokenType.OPERATOR,
    'lparen': TokenType.LPAREN,
    'rparen': TokenType.RPAREN,
}

# ==========================================
# ENGINE
# ==========================================

class PostfixEngine:
    """Shunting-yard converter and RPN evaluator.

    The engine only holds its (immutable) configuration; the operator and
    operand stacks live inside each call, so one instance can be shared
    between threads.
    """

    # All operators are left-associative: equal precedence pops the stack.
    PRECEDENCE: Dict[str, int] = {
        '+': 1,
        '-': 1,
        '*': 2,
        '/': 2,
        '^': 3,
    }

    OPERATIONS: Dict[str, Callable] = {
        '+': np.add,
        '-': np.subtract,
        '*': np.multiply,
        '/': np.divide,
        '^': np.power,
    }

    # Trigonometric functions take degrees, log is base 10
    FUNCTIONS: Dict[str, Callable] = {
        'sin': lambda x: np.sin(np.radians(x)),
        'cos': lambda x: np.cos(np.radians(x)),
        'tan': lambda x: np.tan(np.radians(x)),
        'log': np.log10,
        'sqrt': np.sqrt,
    }

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def tokenize(self, expression: str) -> Iterator[Token]:
        """Lazily split an expression into tokens"""
        for match in _TOKEN_PATTERN.finditer(expression):
            kind = match.lastgroup
            text = match.group()
            position = match.start()

            if kind == 'number':
                value = float(text)
                if not math.isfinite(value):
                    raise ExpressionSyntaxError(f"number out of range at position {position}", position)
                yield Token(TokenType.NUMBER, value, position)
            elif kind in _GROUP_TYPES:
                yield Token(_GROUP_TYPES[kind], text, position)
            elif kind == 'other':
                if self.config.strict:
                    raise ExpressionSyntaxError(
                        f"unrecognized character {text!r} at position {position}", position
                    )
                logger.debug(f"Skipping unrecognized character {text!r} at position {position}")

    def to_postfix(self, tokens: Iterable[Token]) -> List[Token]:
        """Convert an infix token stream to RPN order"""
        output: List[Token] = []
        stack: List[Token] = []

        for token in tokens:
            if token.type is TokenType.NUMBER:
                output.append(token)

            elif token.type in (TokenType.FUNCTION, TokenType.LPAREN):
                stack.append(token)

            elif token.type is TokenType.RPAREN:
                while stack and stack[-1].type is not TokenType.LPAREN:
                    output.append(stack.pop())
                if not stack:
                    raise ExpressionSyntaxError("unmatched parenthesis", token.position)
                stack.pop()
                # A function directly before '(' owns this group
                if stack and stack[-1].type is TokenType.FUNCTION:
                    output.append(stack.pop())

            else:
                precedence = self.PRECEDENCE[token.value]
                while (stack and stack[-1].type is TokenType.OPERATOR
                       and self.PRECEDENCE[stack[-1].value] >= precedence):
                    output.append(stack.pop())
                stack.append(token)

        while stack:
            token = stack.pop()
            if token.type is TokenType.LPAREN:
                raise ExpressionSyntaxError("unmatched parenthesis", token.position)
            output.append(token)

        return output

    def evaluate_postfix(self, postfix: Iterable[Token]) -> float:
        """Reduce an RPN token sequence to a single float"""
        stack: List[float] = []

        with np.errstate(all='ignore'):
            for token in postfix:
                if token.type is TokenType.NUMBER:
                    stack.append(float(token.value))

                elif token.type is TokenType.FUNCTION:
                    if not stack:
                        raise ExpressionSyntaxError(
                            f"function '{token.value}' is missing its argument", token.position
                        )
                    a = stack.pop()
                    stack.append(float(self.FUNCTIONS[token.value](np.float64(a))))

                elif token.type is TokenType.OPERATOR:
                    b, a = self._pop_operands(stack, token, 0.0)
                    stack.append(float(self.OPERATIONS[token.value](np.float64(a), np.float64(b))))

                else:
                    raise ExpressionSyntaxError(
                        f"unexpected {token.value!r} in postfix sequence", token.position
                    )

        if not stack:
            raise EvaluationError("empty expression")
        if len(stack) > 1:
            raise EvaluationError("malformed expression")

        return stack[0]

    def _pop_operands(self, stack: List, token: Token,
                      zero: Union[float, str]) -> Tuple[Any, Any]:
        """Pop right then left operand, substituting zero for a missing left one in lenient mode"""
        if not stack:
            raise ExpressionSyntaxError(
                f"operator '{token.value}' is missing operands", token.position
            )
        b = stack.pop()

        if stack:
            return b, stack.pop()

        if self.config.strict:
            raise ExpressionSyntaxError(
                f"operator '{token.value}' is missing its left operand", token.position
            )
        logger.debug(f"Operator '{token.value}' at position {token.position} has no left operand, using 0")
        return b, zero

    def evaluate(self, expression: str) -> float:
        """Evaluate an infix expression"""
        postfix = self.to_postfix(self.tokenize(expression))
        logger.debug(f"{expression!r} -> {format_postfix(postfix)!r}")

        result = self.evaluate_postfix(postfix)
        logger.debug(f"{expression!r} = {result!r}")
        return result

    def to_infix(self, postfix: Iterable[Token]) -> str:
        """Rebuild a fully parenthesized infix expression from RPN tokens.

        Every operator application is wrapped in parentheses, so the text
        evaluates to the same value as the postfix sequence it came from.
        """
        stack: List[str] = []

        for token in postfix:
            if token.type is TokenType.NUMBER:
                stack.append(format_number(token.value))

            elif token.type is TokenType.FUNCTION:
                if not stack:
                    raise ExpressionSyntaxError(
                        f"function '{token.value}' is missing its argument", token.position
                    )
                argument = stack.pop()
                if not _is_wrapped(argument):
                    argument = f"({argument})"
                stack.append(f"{token.value}{argument}")

            elif token.type is TokenType.OPERATOR:
                b, a = self._pop_operands(stack, token, "0")
                stack.append(f"({a}{token.value}{b})")

            else:
                raise ExpressionSyntaxError(
                    f"unexpected {token.value!r} in postfix sequence", token.position
                )

        if not stack:
            raise EvaluationError("empty expression")
        if len(stack) > 1:
            raise EvaluationError("malformed expression")

        return stack[0]


def _is_wrapped(text: str) -> bool:
    """True when the outer parentheses of text enclose all of it"""
    if not (text.startswith('(') and text.endswith(')')):
        return False
    depth = 0
    for i, char in enumerate(text):
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth == 0 and i < len(text) - 1:
                return False
    return True

# ==========================================
# FORMATTING
# ==========================================

def format_number(value: float) -> str:
    """Shortest positional text that parses back to value (no exponent, no sign)"""
    return np.format_float_positional(value, trim='-')


def format_postfix(postfix: Iterable[Token]) -> str:
    """Space separated RPN text, e.g. '3 4 2 * +'"""
    return ' '.join(
        format_number(token.value) if token.type is TokenType.NUMBER else str(token.value)
        for token in postfix
    )

# ==========================================
# MODULE LEVEL API
# ==========================================

def tokenize(expression: str, config: Optional[EngineConfig] = None) -> Iterator[Token]:
    return PostfixEngine(config).tokenize(expression)


def to_postfix(tokens: Iterable[Token]) -> List[Token]:
    return PostfixEngine().to_postfix(tokens)


def evaluate_postfix(postfix: Iterable[Token], config: Optional[EngineConfig] = None) -> float:
    return PostfixEngine(config).evaluate_postfix(postfix)


def to_infix(postfix: Iterable[Token], config: Optional[EngineConfig] = None) -> str:
    return PostfixEngine(config).to_infix(postfix)


def evaluate(expression: str, config: Optional[EngineConfig] = None) -> float:
    """Evaluate an infix expression, raising CalculatorError on failure.

    >>> evaluate("3+4*2")
    11.0
    """
    return PostfixEngine(config).evaluate(expression)
