"""mython: a small indentation-sensitive scripting language with classes, methods and operator overloading.

Basic program flow:
    1. Lexer (lang/lexical.py): turns source lines into tokens, emitting Indent/Dedent for two-space indentation
    2. Parser (lang/parser.py): builds a statement tree from the token stream
    3. Evaluator (runtime/statement.py): walks the tree against a closure (dict of bindings) and a Context
        - runtime values and comparisons live in runtime/objects.py

Session (lang/session.py) glues the three together for files and for the command-line shell (lang/shell.py).
"""

__version__ = "0.1.0"
