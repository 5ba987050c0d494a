# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains classes that define:
- Tokens from lexing an expression
- Nodes of the expression tree
- A parser that builds the tree via precedence climbing

Expressions are evaluated by walking the tree against an Environment. No
host-language eval is involved, so evaluation has no side effects.
"""
from __future__ import annotations

import collections
import logging
import math
import typing
from dataclasses import dataclass
from typing import Any

from condpp import values
from condpp.environment import Environment, is_variable_name
from condpp.errors import ExpressionRuntimeError, ExpressionSyntaxError
from condpp.values import UNDEFINED

log = logging.getLogger(__name__)


class TokenError(ValueError):
    """
    Represents an error encountered during tokenization.
    """


class ParseError(ValueError):
    """
    Represents an error encountered during parsing.
    """


@dataclass
class Token:
    """
    Represents a token constructed by the lexer.
    """

    col: int
    token: str

    def __str__(self) -> str:
        return self.token


@dataclass
class NumericalConstant(Token):
    """
    Represents a number literal.
    """

    value: float = 0.0


@dataclass
class StringConstant(Token):
    """
    Represents a quoted string literal. `value` holds the unescaped text.
    """

    value: str = ""


@dataclass
class Identifier(Token):
    """
    Represents an identifier or keyword.
    """


@dataclass
class Operator(Token):
    """
    Represents an operator.
    """


@dataclass
class Punctuator(Token):
    """
    Represents a punctuator (e.g. parentheses)
    """


_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


class Lexer:
    """
    A lexer for the expression grammar.
    """

    operators = [
        "===",
        "!==",
        ">>>",
        "==",
        "!=",
        "<=",
        ">=",
        "&&",
        "||",
        "<<",
        ">>",
        "+",
        "-",
        "*",
        "/",
        "%",
        "!",
        "~",
        "<",
        ">",
        "&",
        "|",
        "^",
        "?",
        ":",
    ]
    punctuators = ["(", ")", "[", "]", ".", ","]

    def __init__(self, string: str) -> None:
        self.string = string
        self.pos = 0

    def read(self, n: int = 1) -> str:
        """
        Return the next n characters in the string.
        """
        return self.string[self.pos : self.pos + n]

    def eos(self) -> bool:
        """
        Return True when the end of the string is reached.
        """
        return self.pos >= len(self.string)

    def whitespace(self) -> None:
        """
        Consume whitespace and advance position.
        """
        while not self.eos() and self.read().isspace():
            self.pos += 1

    def match_any(self, literals: list[str]) -> int:
        """
        Match one from a list of character/string literals exactly.
        Return the matched index and advance position.
        """
        for index, literal in enumerate(literals):
            if self.read(len(literal)) == literal:
                self.pos += len(literal)
                return index

        raise TokenError()

    def identifier_char(self) -> bool:
        """
        Return True if the next character may continue an identifier.
        """
        return self.read().isalnum() or self.read() in ["_", "$"]

    def digits(self, allowed: str = "0123456789") -> str:
        """
        Consume and return a (possibly empty) run of allowed characters.
        """
        start = self.pos
        while not self.eos() and self.read() in allowed:
            self.pos += 1
        return self.string[start : self.pos]

    def number(self) -> NumericalConstant:
        """
        Construct a NumericalConstant by parsing a string.
        Return a NumericalConstant and advance position.

        <prefixed> := '0'['x'|'o'|'b']<digit>+
        <decimal>  := [<digit>+['.'<digit>*]?|'.'<digit>+][<exponent>]?
        <exponent> := ['e'|'E']['+'|'-']?<digit>+
        """
        col = self.pos
        bases = {"x": 16, "o": 8, "b": 2}
        allowed = {
            16: "0123456789abcdefABCDEF",
            8: "01234567",
            2: "01",
        }
        try:
            if self.read() == "0" and self.read(2)[1:].lower() in bases:
                base = bases[self.read(2)[1].lower()]
                self.pos += 2
                chars = self.digits(allowed[base])
                if not chars:
                    raise TokenError("Expected digit.")
                value = float(int(chars, base))
            else:
                chars = self.digits()
                if self.read() == ".":
                    self.pos += 1
                    fraction = self.digits()
                    if not chars and not fraction:
                        raise TokenError("Expected digit.")
                elif not chars:
                    raise TokenError("Expected digit.")

                if self.read() in ["e", "E"]:
                    self.pos += 1
                    if self.read() in ["+", "-"]:
                        self.pos += 1
                    if not self.digits():
                        raise TokenError("Expected exponent.")
                value = float(self.string[col : self.pos])

            # 1abc is not a number followed by an identifier
            if not self.eos() and self.identifier_char():
                raise TokenError("Invalid number.")
        except TokenError:
            self.pos = col
            raise TokenError("Invalid number.")

        return NumericalConstant(col, self.string[col : self.pos], value)

    def string_constant(self) -> StringConstant:
        """
        Construct a StringConstant by parsing a string.
        Return a StringConstant and advance position.

        <string-constant> := ['"'.*'"'|"'".*"'"]
        """
        col = self.pos
        quote = self.read()
        if quote not in ["'", '"']:
            raise TokenError("Expected quote.")
        self.pos += 1

        chars = []
        while not self.eos() and self.read() != quote:
            if self.read() == "\\":
                self.pos += 1
                chars.append(self.escape())
            else:
                chars.append(self.read())
                self.pos += 1

        if self.eos():
            self.pos = col
            raise TokenError("Unterminated string constant.")
        self.pos += 1

        return StringConstant(
            col,
            self.string[col : self.pos],
            "".join(chars),
        )

    def escape(self) -> str:
        """
        Decode one escape sequence (after the backslash) and advance.
        """
        char = self.read()
        if char in _ESCAPES:
            self.pos += 1
            return _ESCAPES[char]
        for prefix, width in [("x", 2), ("u", 4)]:
            if char == prefix:
                code = self.string[self.pos + 1 : self.pos + 1 + width]
                try:
                    if len(code) != width:
                        raise ValueError
                    decoded = chr(int(code, 16))
                except ValueError:
                    raise TokenError("Invalid escape sequence.")
                self.pos += 1 + width
                return decoded
        if self.eos():
            raise TokenError("Unterminated string constant.")
        self.pos += 1
        return char

    def identifier(self) -> Identifier:
        """
        Construct an Identifier by parsing a string.
        Return an Identifier and advance position.

        <identifier> := [<alpha>|'_'|'$'][<alpha>|<digit>|'_'|'$']*
        """
        col = self.pos
        if self.eos() or not (self.read().isalpha() or self.read() in "_$"):
            raise TokenError("Invalid identifier.")
        while not self.eos() and self.identifier_char():
            self.pos += 1
        return Identifier(col, self.string[col : self.pos])

    def operator(self) -> Operator:
        """
        Construct an Operator by parsing a string.
        Return an Operator and advance position.
        """
        col = self.pos
        index = self.match_any(Lexer.operators)
        return Operator(col, Lexer.operators[index])

    def punctuator(self) -> Punctuator:
        """
        Construct a Punctuator by parsing a string.
        Return a Punctuator and advance position.

        <punc> := ['('|')'|'['|']'|'.'|',']
        """
        col = self.pos
        index = self.match_any(Lexer.punctuators)
        return Punctuator(col, Lexer.punctuators[index])

    def tokenize_one(self) -> Token | None:
        """
        Consume and return next token. Returns None if not possible.
        """
        candidates = [
            self.number,
            self.string_constant,
            self.identifier,
            self.operator,
            self.punctuator,
        ]
        for f in candidates:
            col = self.pos
            try:
                return f()
            except TokenError:
                self.pos = col
        return None

    def tokenize(self) -> list[Token]:
        """
        Return a list of all tokens in the string.
        """
        tokens = []
        self.whitespace()
        while not self.eos():
            token = self.tokenize_one()
            if token is None:
                raise TokenError(
                    f"Unexpected character '{self.read()}' at column "
                    + f"{self.pos + 1}.",
                )
            tokens.append(token)
            self.whitespace()
        return tokens


class Expression:
    """
    Base class for all nodes of an expression tree.
    """

    def evaluate(self, environment: Environment) -> Any:
        raise NotImplementedError


@dataclass
class Literal(Expression):
    value: Any

    def evaluate(self, environment: Environment) -> Any:
        return self.value


@dataclass
class Variable(Expression):
    name: str

    def evaluate(self, environment: Environment) -> Any:
        """
        Variables that are not set evaluate to undefined; any other
        identifier is a reference error.
        """
        if not is_variable_name(self.name):
            raise ExpressionRuntimeError(f"{self.name} is not defined")
        return environment.get(self.name)


@dataclass
class Member(Expression):
    target: Expression
    key: Expression

    def evaluate(self, environment: Environment) -> Any:
        target = self.target.evaluate(environment)
        key = self.key.evaluate(environment)
        return values.get_member(target, key)


@dataclass
class Unary(Expression):
    op: str
    operand: Expression

    def evaluate(self, environment: Environment) -> Any:
        """
        Apply the specified unary operator: op operand
        """
        operand = self.operand.evaluate(environment)
        if self.op == "-":
            return -values.to_number(operand)
        elif self.op == "+":
            return values.to_number(operand)
        elif self.op == "!":
            return not values.truthy(operand)
        elif self.op == "~":
            return float(~values.to_int32(operand))
        else:
            raise ValueError("Not a valid unary operator.")


@dataclass
class Binary(Expression):
    op: str
    lhs: Expression
    rhs: Expression

    def evaluate(self, environment: Environment) -> Any:
        """
        Apply the specified binary operator: lhs op rhs
        """
        op = self.op

        # Logical operators short-circuit and return an operand
        if op in ["&&", "||"]:
            lhs = self.lhs.evaluate(environment)
            if values.truthy(lhs) == (op == "||"):
                return lhs
            return self.rhs.evaluate(environment)

        lhs = self.lhs.evaluate(environment)
        rhs = self.rhs.evaluate(environment)
        if op == "==":
            return values.loose_equals(lhs, rhs)
        elif op == "!=":
            return not values.loose_equals(lhs, rhs)
        elif op == "===":
            return values.strict_equals(lhs, rhs)
        elif op == "!==":
            return not values.strict_equals(lhs, rhs)
        elif op in ["<", "<=", ">", ">="]:
            return values.compare(op, lhs, rhs)
        elif op in ["+", "-", "*", "/", "%"]:
            return values.arithmetic(op, lhs, rhs)
        elif op in ["&", "|", "^", "<<", ">>", ">>>"]:
            return values.bitwise(op, lhs, rhs)
        else:
            raise ValueError("Not a binary operator.")


@dataclass
class Conditional(Expression):
    condition: Expression
    true_result: Expression
    false_result: Expression

    def evaluate(self, environment: Environment) -> Any:
        if values.truthy(self.condition.evaluate(environment)):
            return self.true_result.evaluate(environment)
        return self.false_result.evaluate(environment)


class Parser:
    """
    A generic token parser for matching tokens from a list.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    def cursor(self) -> Token:
        """
        Return the current token in the list.
        """
        try:
            return self.tokens[self.pos]
        except IndexError:
            raise ParseError("Unexpected end of expression.")

    def eol(self) -> bool:
        """
        Return True when the end of the list is reached.
        """
        return self.pos == len(self.tokens)

    def match_type(self, token_type: type) -> Token:
        """
        Match a token of the specified type and advance position.
        """
        if isinstance(self.cursor(), token_type):
            token = self.cursor()
            self.pos += 1
        else:
            raise ParseError(f"Unexpected token '{self.cursor()}'.")
        return token

    def match_value(self, token_type: type, token_value: Any) -> Token:
        """
        Match a token of the specified type and value, and advance
        position.
        """
        if (
            isinstance(self.cursor(), token_type)
            and self.cursor().token == token_value
        ):
            token = self.cursor()
            self.pos += 1
        else:
            raise ParseError(f"Expected '{token_value!s}'.")
        return token


_KEYWORDS = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": UNDEFINED,
    "NaN": math.nan,
    "Infinity": math.inf,
}


class ExpressionParser(Parser):
    """
    A specialized token parser for building expression trees.
    """

    # Operator precedence and associativity
    # Higher numbers = higher precedence
    OpInfo = collections.namedtuple("OpInfo", ["prec", "assoc"])
    UnaryOperators = {
        "-": OpInfo(12, "RIGHT"),
        "+": OpInfo(12, "RIGHT"),
        "!": OpInfo(12, "RIGHT"),
        "~": OpInfo(12, "RIGHT"),
    }
    BinaryOperators = {
        "?": OpInfo(1, "RIGHT"),
        "||": OpInfo(2, "LEFT"),
        "&&": OpInfo(3, "LEFT"),
        "|": OpInfo(4, "LEFT"),
        "^": OpInfo(5, "LEFT"),
        "&": OpInfo(6, "LEFT"),
        "==": OpInfo(7, "LEFT"),
        "!=": OpInfo(7, "LEFT"),
        "===": OpInfo(7, "LEFT"),
        "!==": OpInfo(7, "LEFT"),
        "<": OpInfo(8, "LEFT"),
        "<=": OpInfo(8, "LEFT"),
        ">": OpInfo(8, "LEFT"),
        ">=": OpInfo(8, "LEFT"),
        "<<": OpInfo(9, "LEFT"),
        ">>": OpInfo(9, "LEFT"),
        ">>>": OpInfo(9, "LEFT"),
        "+": OpInfo(10, "LEFT"),
        "-": OpInfo(10, "LEFT"),
        "*": OpInfo(11, "LEFT"),
        "/": OpInfo(11, "LEFT"),
        "%": OpInfo(11, "LEFT"),
    }

    def term(self) -> Expression:
        """
        Match a constant, keyword or identifier.

        <term> := [<number>|<string>|<keyword>|<identifier>]
        """
        token = self.cursor()
        if isinstance(token, NumericalConstant):
            self.pos += 1
            return Literal(token.value)
        if isinstance(token, StringConstant):
            self.pos += 1
            return Literal(token.value)
        if isinstance(token, Identifier):
            self.pos += 1
            if token.token in _KEYWORDS:
                return Literal(_KEYWORDS[token.token])
            return Variable(token.token)

        raise ParseError(
            "Expected number, string or identifier, found "
            + f"'{token}'.",
        )

    def postfix(self, expr: Expression) -> Expression:
        """
        Match any number of member accesses following an expression.

        <postfix> := ['.'<identifier>|'['<expression>']']*
        """
        while not self.eol():
            if self.cursor().token == "." and isinstance(
                self.cursor(),
                Punctuator,
            ):
                self.pos += 1
                name = typing.cast(Identifier, self.match_type(Identifier))
                expr = Member(expr, Literal(name.token))
            elif self.cursor().token == "[" and isinstance(
                self.cursor(),
                Punctuator,
            ):
                self.pos += 1
                key = self.expression()
                self.match_value(Punctuator, "]")
                expr = Member(expr, key)
            else:
                break
        return expr

    def primary(self) -> Expression:
        """
        Match a simple expression
        <primary> := [<unary-op><expression>|'('<expression>')'<postfix>|
                      <term><postfix>]
        """
        token = self.cursor()

        if isinstance(token, Operator):
            if token.token not in ExpressionParser.UnaryOperators:
                raise ParseError(f"Unexpected operator '{token}'.")
            self.pos += 1
            (prec, assoc) = ExpressionParser.UnaryOperators[token.token]
            return Unary(token.token, self.expression(prec))

        if isinstance(token, Punctuator) and token.token == "(":
            self.pos += 1
            expr = self.expression()
            self.match_value(Punctuator, ")")
            return self.postfix(expr)

        return self.postfix(self.term())

    def expression(self, min_precedence: int = 0) -> Expression:
        """
        Match an expression.
        Minimum precedence used to match operators during precedence
        climbing.

        <expression> := <primary>[<binary-op><expression>]?
        """
        expr = self.primary()

        # Recursion is terminated based on operator precedence
        while (
            not self.eol()
            and isinstance(self.cursor(), Operator)
            and (self.cursor().token in ExpressionParser.BinaryOperators)
            and (
                ExpressionParser.BinaryOperators[self.cursor().token].prec
                >= min_precedence
            )
        ):
            operator = typing.cast(Operator, self.match_type(Operator))
            (prec, assoc) = ExpressionParser.BinaryOperators[operator.token]

            # The ternary conditional operator is treated as a
            # special-case of a binary operator:
            # lhs "?"<expression>":" rhs
            if operator.token == "?":
                true_result = self.expression()
                self.match_value(Operator, ":")

            # Minimum precedence for right-hand side depends on
            # associativity
            if assoc == "LEFT":
                rhs = self.expression(prec + 1)
            else:
                rhs = self.expression(prec)

            if operator.token == "?":
                expr = Conditional(expr, true_result, rhs)
            else:
                expr = Binary(operator.token, expr, rhs)

        return expr

    def parse(self) -> Expression:
        """
        Match a complete expression; no tokens may be left over.
        """
        if self.eol():
            raise ParseError("Empty expression.")
        expr = self.expression()
        if not self.eol():
            raise ParseError(f"Unexpected token '{self.cursor()}'.")
        return expr


def parse(text: str) -> Expression:
    """
    Parse `text` into an expression tree.

    Raises
    ------
    ExpressionSyntaxError
        If `text` is not a valid expression.
    """
    try:
        tokens = Lexer(text).tokenize()
        return ExpressionParser(tokens).parse()
    except (TokenError, ParseError) as e:
        raise ExpressionSyntaxError(f"Invalid expression '{text}': {e}")


def evaluate(text: str, environment: Environment) -> Any:
    """
    Parse and evaluate `text` against `environment`.

    Raises
    ------
    ExpressionSyntaxError
        If `text` is not a valid expression.

    ExpressionRuntimeError
        If evaluation fails (e.g. reading a property of undefined).
    """
    expr = parse(text)
    log.debug(f"Evaluating {expr!r}")
    return expr.evaluate(environment)


def evaluate_condition(text: str, environment: Environment) -> bool:
    """
    Evaluate `text` and convert the result to a boolean.
    """
    return values.truthy(evaluate(text, environment))
