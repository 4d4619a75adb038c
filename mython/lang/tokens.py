"""Token model for mython. A Token is a kind from the closed TokenType set plus, for Number, Id, Char and String, a
payload. Tokens compare equal when kind and payload match; the line a token was read from is kept for error messages
only.
"""

from enum import Enum
from types import MappingProxyType


class TokenType(Enum):
    """Every kind of token the lexer can produce. Values are the names used when printing tokens."""
    NUMBER = "Number"
    ID = "Id"
    CHAR = "Char"
    STRING = "String"
    CLASS = "Class"
    RETURN = "Return"
    IF = "If"
    ELSE = "Else"
    DEF = "Def"
    NEWLINE = "Newline"
    PRINT = "Print"
    INDENT = "Indent"
    DEDENT = "Dedent"
    AND = "And"
    OR = "Or"
    NOT = "Not"
    EQ = "Eq"
    NOT_EQ = "NotEq"
    LESS_OR_EQ = "LessOrEq"
    GREATER_OR_EQ = "GreaterOrEq"
    NONE = "None"
    TRUE = "True"
    FALSE = "False"
    EOF = "Eof"

    @property
    def valued(self):
        """Whether or not tokens of this kind carry a payload."""
        return self in VALUED


VALUED = frozenset([TokenType.NUMBER, TokenType.ID, TokenType.CHAR, TokenType.STRING])


class Token:
    """Immutable lexeme: kind, payload (None for marker kinds) and source line number."""
    __slots__ = ("kind", "value", "line_num")

    def __init__(self, kind, value=None, line_num=None):
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "line_num", line_num)

    @classmethod
    def char(cls, char, line_num=None):
        return cls(TokenType.CHAR, char, line_num)

    def is_char(self, chars):
        """Whether or not this is a Char token whose character is in chars."""
        return self.kind is TokenType.CHAR and self.value in chars

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return self.kind is other.kind and self.value == other.value

    def __hash__(self):
        return hash((self.kind, self.value))

    def __repr__(self):
        if self.kind.valued:
            return f"{self.kind.value}{{{self.value}}}"
        return self.kind.value

    __str__ = __repr__


# built once for the whole process; the lexer never copies or mutates it
KEYWORDS = MappingProxyType({
    "class": TokenType.CLASS,
    "return": TokenType.RETURN,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "def": TokenType.DEF,
    "print": TokenType.PRINT,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "None": TokenType.NONE,
    "True": TokenType.TRUE,
    "False": TokenType.FALSE,
    "==": TokenType.EQ,
    "!=": TokenType.NOT_EQ,
    "<=": TokenType.LESS_OR_EQ,
    ">=": TokenType.GREATER_OR_EQ,
})
