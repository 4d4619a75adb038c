"""Lexical analysis for mython. The Lexer reads the whole source up front and keeps a queue of Tokens, of which only
the current one is visible to the parser.

Indentation is significant and must come in units of two spaces:

```
class Counter:            ; Class Id{Counter} Char{:} Newline
  def add():              ; Indent Def Id{add} Char{(} Char{)} Char{:} Newline
    self.n = self.n + 1   ; Indent Id{self} Char{.} Id{n} Char{=} ... Newline
                          ; Dedent Dedent Eof
```

Blank lines and comment-only lines (first non-space character is '#') produce no tokens at all.
"""

import io
import string
from collections import deque
from types import MappingProxyType

from mython.lang.error import LexerError
from mython.lang.tokens import KEYWORDS, Token, TokenType


class Lexer:
    """Turns source text (str or text stream) into a queue of Tokens with one-token lookahead."""
    INDENT_WIDTH = 2
    MAX_NUMBER = 2 ** 31 - 1

    DELIMITERS = frozenset(":().,@%$^&;{}[]?#")
    ARITHMETIC = frozenset("+-*/")
    RELATIONAL = frozenset("=<>!")
    QUOTES = frozenset("'\"")
    ESCAPES = MappingProxyType({"\"": "\"", "n": "\n", "r": "\r", "'": "'", "t": "\t", "\\": "\\"})

    IDENTIFIER_START = frozenset(string.ascii_letters + "_")
    IDENTIFIER_CHARS = frozenset(string.ascii_letters + string.digits + "_")
    DIGITS = frozenset(string.digits)

    def __init__(self, source):
        if isinstance(source, str):
            source = io.StringIO(source)

        self.tokens = deque()
        self.indents = 0

        for line_num, line in enumerate(source, start=1):
            self.read_line(line.rstrip("\r\n"), line_num)

        if self.indents > 0:
            self.read_indents(0, None)
        self.tokens.append(Token(TokenType.EOF))

    @staticmethod
    def is_empty_line(line):
        """Whether or not line is blank or only holds a comment."""
        content = line.strip()
        return not content or content.startswith("#")

    def current_token(self):
        """Returns the current token, or Eof if the token stream is exhausted."""
        return self.tokens[0]

    def next_token(self):
        """Advances to and returns the next token. Eof is sticky: advancing past it does nothing."""
        if len(self.tokens) > 1:
            self.tokens.popleft()
        return self.current_token()

    def expect(self, kind, value=None):
        """Returns the current token if it is of kind (and holds value, if given). Raises a LexerError otherwise."""
        token = self.current_token()
        if token.kind is not kind or (value is not None and token.value != value):
            expected = Token(kind, value) if value is not None else kind.value
            raise LexerError("Lexer expects token {}, got {}", (expected, token), line_num=token.line_num,
                             diagnosis=False)
        return token

    def expect_next(self, kind, value=None):
        """Advances, then behaves like expect."""
        self.next_token()
        return self.expect(kind, value)

    def read_line(self, line, line_num):
        """Tokenizes a single line of source, indentation included."""
        if Lexer.is_empty_line(line):
            return

        count_spaces = len(line) - len(line.lstrip(" "))
        if count_spaces % Lexer.INDENT_WIDTH != 0:
            raise LexerError("'{}' has invalid indentation: odd number of leading spaces", line, end=count_spaces,
                             line_num=line_num)

        self.read_indents(count_spaces // Lexer.INDENT_WIDTH, line_num)

        pos = count_spaces
        while pos < len(line):
            char = line[pos]

            if char == "#":
                break
            elif char.isspace():
                pos += 1
            elif char in Lexer.DELIMITERS or char in Lexer.ARITHMETIC:
                self.tokens.append(Token.char(char, line_num))
                pos += 1
            elif char in Lexer.RELATIONAL:
                pos = self.read_relational(line, pos, line_num)
            elif char in Lexer.DIGITS:
                pos = self.read_number(line, pos, line_num)
            elif char in Lexer.IDENTIFIER_START:
                pos = self.read_identifier(line, pos, line_num)
            elif char in Lexer.QUOTES:
                pos = self.read_string(line, pos, line_num)
            else:
                pos += 1  # characters outside the alphabet are skipped

        self.tokens.append(Token(TokenType.NEWLINE, line_num=line_num))

    def read_indents(self, depth, line_num):
        """Emits one Indent/Dedent per step between the current depth and depth."""
        while self.indents < depth:
            self.indents += 1
            self.tokens.append(Token(TokenType.INDENT, line_num=line_num))
        while self.indents > depth:
            self.indents -= 1
            self.tokens.append(Token(TokenType.DEDENT, line_num=line_num))

    def read_relational(self, line, pos, line_num):
        """Reads '==', '!=', '<=', '>=' or a lone relational character. Returns the position after it."""
        operator = line[pos:pos + 2]
        if operator in KEYWORDS:
            self.tokens.append(Token(KEYWORDS[operator], line_num=line_num))
            return pos + 2

        self.tokens.append(Token.char(line[pos], line_num))
        return pos + 1

    def read_number(self, line, pos, line_num):
        """Reads a run of decimal digits as a Number token. Returns the position after it."""
        end = pos
        while end < len(line) and line[end] in Lexer.DIGITS:
            end += 1

        value = int(line[pos:end])
        if value > Lexer.MAX_NUMBER:
            raise LexerError("'{}' contains a number too large to represent", line, start=pos, end=end,
                             line_num=line_num)

        self.tokens.append(Token(TokenType.NUMBER, value, line_num))
        return end

    def read_identifier(self, line, pos, line_num):
        """Reads an identifier or keyword. Returns the position after it."""
        end = pos
        while end < len(line) and line[end] in Lexer.IDENTIFIER_CHARS:
            end += 1

        word = line[pos:end]
        if word in KEYWORDS:
            self.tokens.append(Token(KEYWORDS[word], line_num=line_num))
        else:
            self.tokens.append(Token(TokenType.ID, word, line_num))
        return end

    def read_string(self, line, pos, line_num):
        """Reads a quoted string literal, decoding escape sequences. Returns the position after the closing quote."""
        quote = line[pos]
        start = pos
        chars = []

        pos += 1
        while pos < len(line) and line[pos] != quote:
            char = line[pos]
            if char == "\\":
                pos += 1
                if pos >= len(line):
                    break
                if line[pos] not in Lexer.ESCAPES:
                    raise LexerError("'{}' contains unsupported escape sequence", line, start=pos - 1, end=pos + 1,
                                     line_num=line_num)
                char = Lexer.ESCAPES[line[pos]]
            chars.append(char)
            pos += 1

        if pos >= len(line):
            raise LexerError("'{}' contains an unterminated string", line, start=start, line_num=line_num)

        self.tokens.append(Token(TokenType.STRING, "".join(chars), line_num))
        return pos + 1
