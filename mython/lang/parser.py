"""Recursive descent parser for mython. Consumes a Lexer and builds a runtime.statement tree.

Grammar (self is implicit in method parameter lists):

```
<program>    ::= <statement>* Eof
<statement>  ::= <class_def> | <if_stmt> | <simple> Newline
<class_def>  ::= "class" Id ["(" Id ")"] ":" Newline Indent <method>+ Dedent
<method>     ::= "def" Id "(" [Id ("," Id)*] ")" ":" <suite>
<suite>      ::= Newline Indent <statement>+ Dedent
<if_stmt>    ::= "if" <test> ":" <suite> ["else" ":" <suite>]
<simple>     ::= "return" <test> | "print" [<test> ("," <test>)*] | <dotted> "=" <test> | <test>
<test>       ::= <and_test> ("or" <and_test>)*
<and_test>   ::= <not_test> ("and" <not_test>)*
<not_test>   ::= "not" <not_test> | <comparison>
<comparison> ::= <expr> [("==" | "!=" | "<" | ">" | "<=" | ">=") <expr>]
<expr>       ::= <term> (("+" | "-") <term>)*
<term>       ::= <unary> (("*" | "/") <unary>)*
<unary>      ::= "-" <unary> | <primary>
<primary>    ::= Number | String | "True" | "False" | "None" | "(" <test> ")" | "str" "(" <test> ")"
               | ClassName "(" <args> ")" | <dotted> ["(" <args> ")"] ("." Id "(" <args> ")")*
```
"""

from mython.lang.error import ParseError
from mython.lang.tokens import TokenType
from mython.runtime import objects
from mython.runtime.statement import Add, And, Assignment, ClassDefinition, Comparison, Compound, Constant, Div, \
    FieldAssignment, IfElse, MethodBody, MethodCall, Mult, NewInstance, Not, Or, Print, Return, Stringify, Sub, \
    VariableValue


class Parser:
    """Builds statement trees from a Lexer. classes maps names of declared classes to runtime.objects.Class and may
    be shared between parsers that feed the same closure.
    """
    COMPARATORS = {
        TokenType.EQ: objects.equal,
        TokenType.NOT_EQ: objects.not_equal,
        TokenType.LESS_OR_EQ: objects.less_or_equal,
        TokenType.GREATER_OR_EQ: objects.greater_or_equal,
    }
    CHAR_COMPARATORS = {"<": objects.less, ">": objects.greater}
    ARITHMETIC = {"+": Add, "-": Sub, "*": Mult, "/": Div}
    STR = "str"

    def __init__(self, lexer, classes=None):
        self.lexer = lexer
        self.classes = classes if classes is not None else {}

    def error(self, msg, *exprs):
        """Returns a ParseError located at the current token."""
        return ParseError(msg, exprs, line_num=self.current.line_num, diagnosis=False)

    @property
    def current(self):
        return self.lexer.current_token()

    def advance(self):
        return self.lexer.next_token()

    def parse_program(self):
        """Parses statements up to Eof into a single Compound."""
        program = Compound()
        while self.current.kind is not TokenType.EOF:
            program.add_statement(self.parse_statement())
        return program

    def parse_statement(self):
        if self.current.kind is TokenType.CLASS:
            return self.parse_class_definition()
        if self.current.kind is TokenType.IF:
            return self.parse_if()

        statement = self.parse_simple_statement()
        self.lexer.expect(TokenType.NEWLINE)
        self.advance()
        return statement

    def parse_class_definition(self):
        name = self.lexer.expect_next(TokenType.ID).value
        parent = None

        if self.advance().is_char("("):
            parent_name = self.lexer.expect_next(TokenType.ID).value
            if parent_name not in self.classes:
                raise self.error("base class '{}' of '{}' is not declared", parent_name, name)
            parent = self.classes[parent_name]
            self.lexer.expect_next(TokenType.CHAR, ")")
            self.advance()

        self.lexer.expect(TokenType.CHAR, ":")
        self.lexer.expect_next(TokenType.NEWLINE)
        self.lexer.expect_next(TokenType.INDENT)
        self.advance()

        if self.current.kind is not TokenType.DEF:
            raise self.error("class '{}' declares no methods", name)

        # registered first so that methods can create instances of their own class
        cls = objects.Class(name, [], parent)
        self.classes[name] = cls
        while self.current.kind is TokenType.DEF:
            cls.add_method(self.parse_method())

        self.lexer.expect(TokenType.DEDENT)
        self.advance()
        return ClassDefinition(cls)

    def parse_method(self):
        name = self.lexer.expect_next(TokenType.ID).value
        self.lexer.expect_next(TokenType.CHAR, "(")

        params = []
        if self.advance().kind is TokenType.ID:
            params.append(self.current.value)
            while self.advance().is_char(","):
                params.append(self.lexer.expect_next(TokenType.ID).value)

        self.lexer.expect(TokenType.CHAR, ")")
        self.lexer.expect_next(TokenType.CHAR, ":")
        self.advance()

        return objects.Method(name, params, MethodBody(self.parse_suite()))

    def parse_suite(self):
        self.lexer.expect(TokenType.NEWLINE)
        self.lexer.expect_next(TokenType.INDENT)
        self.advance()

        block = Compound()
        while self.current.kind not in (TokenType.DEDENT, TokenType.EOF):
            block.add_statement(self.parse_statement())

        self.lexer.expect(TokenType.DEDENT)
        self.advance()
        return block

    def parse_if(self):
        self.advance()
        condition = self.parse_test()
        self.lexer.expect(TokenType.CHAR, ":")
        self.advance()
        if_body = self.parse_suite()

        else_body = None
        if self.current.kind is TokenType.ELSE:
            self.lexer.expect_next(TokenType.CHAR, ":")
            self.advance()
            else_body = self.parse_suite()

        return IfElse(condition, if_body, else_body)

    def parse_simple_statement(self):
        if self.current.kind is TokenType.RETURN:
            self.advance()
            return Return(self.parse_test())

        if self.current.kind is TokenType.PRINT:
            self.advance()
            args = []
            if self.current.kind is not TokenType.NEWLINE:
                args = self.parse_test_list()
            return Print(args)

        target = self.parse_test()
        if not self.current.is_char("="):
            return target

        if not isinstance(target, VariableValue):
            raise self.error("cannot assign to {}", target)
        self.advance()
        rv = self.parse_test()

        *path, name = target.dotted_ids
        if not path:
            return Assignment(name, rv)
        return FieldAssignment(VariableValue(path), name, rv)

    def parse_test_list(self):
        tests = [self.parse_test()]
        while self.current.is_char(","):
            self.advance()
            tests.append(self.parse_test())
        return tests

    def parse_test(self):
        result = self.parse_and_test()
        while self.current.kind is TokenType.OR:
            self.advance()
            result = Or(result, self.parse_and_test())
        return result

    def parse_and_test(self):
        result = self.parse_not_test()
        while self.current.kind is TokenType.AND:
            self.advance()
            result = And(result, self.parse_not_test())
        return result

    def parse_not_test(self):
        if self.current.kind is TokenType.NOT:
            self.advance()
            return Not(self.parse_not_test())
        return self.parse_comparison()

    def parse_comparison(self):
        lhs = self.parse_expr()

        token = self.current
        if token.kind in Parser.COMPARATORS:
            comparator = Parser.COMPARATORS[token.kind]
        elif token.is_char(Parser.CHAR_COMPARATORS):
            comparator = Parser.CHAR_COMPARATORS[token.value]
        else:
            return lhs

        self.advance()
        return Comparison(comparator, lhs, self.parse_expr())

    def parse_expr(self):
        result = self.parse_term()
        while self.current.is_char("+-"):
            operation = Parser.ARITHMETIC[self.current.value]
            self.advance()
            result = operation(result, self.parse_term())
        return result

    def parse_term(self):
        result = self.parse_unary()
        while self.current.is_char("*/"):
            operation = Parser.ARITHMETIC[self.current.value]
            self.advance()
            result = operation(result, self.parse_unary())
        return result

    def parse_unary(self):
        if self.current.is_char("-"):
            self.advance()
            return Sub(Constant(objects.Number(0)), self.parse_unary())
        return self.parse_primary()

    def parse_primary(self):
        token = self.current

        if token.kind is TokenType.NUMBER:
            self.advance()
            return Constant(objects.Number(token.value))
        if token.kind is TokenType.STRING:
            self.advance()
            return Constant(objects.String(token.value))
        if token.kind in (TokenType.TRUE, TokenType.FALSE):
            self.advance()
            return Constant(objects.Bool(token.kind is TokenType.TRUE))
        if token.kind is TokenType.NONE:
            self.advance()
            return Constant(None)

        if token.is_char("("):
            self.advance()
            result = self.parse_test()
            self.lexer.expect(TokenType.CHAR, ")")
            self.advance()
            return result

        if token.kind is TokenType.ID:
            return self.parse_call_or_variable()

        raise self.error("unexpected token {}", token)

    def parse_dotted_ids(self):
        ids = [self.lexer.expect(TokenType.ID).value]
        while self.advance().is_char("."):
            ids.append(self.lexer.expect_next(TokenType.ID).value)
        return ids

    def parse_args(self):
        """Parses '(' [<test> ("," <test>)*] ')' starting at '('."""
        self.lexer.expect(TokenType.CHAR, "(")
        self.advance()

        args = []
        if not self.current.is_char(")"):
            args = self.parse_test_list()

        self.lexer.expect(TokenType.CHAR, ")")
        self.advance()
        return args

    def parse_call_or_variable(self):
        ids = self.parse_dotted_ids()
        if not self.current.is_char("("):
            return VariableValue(ids)

        args = self.parse_args()
        if len(ids) > 1:
            *path, method = ids
            result = MethodCall(VariableValue(path), method, args)
        elif ids[0] == Parser.STR:
            if len(args) != 1:
                raise self.error("str() takes exactly one argument, got {}", len(args))
            result = Stringify(args[0])
        elif ids[0] in self.classes:
            result = NewInstance(self.classes[ids[0]], args)
        else:
            raise self.error("'{}' is not a declared class", ids[0])

        while self.current.is_char("."):
            method = self.lexer.expect_next(TokenType.ID).value
            self.advance()
            result = MethodCall(result, method, self.parse_args())
        return result
