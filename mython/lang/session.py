"""Session control for mython. Runs a .my file, or the chunks typed into the command-line shell, against one global
closure.
"""

import sys

from mython.lang.error import GenericException
from mython.lang.lexical import Lexer
from mython.lang.parser import Parser
from mython.lang.tokens import TokenType
from mython.runtime.objects import Context, ReturnPropagation
from mython.runtime.statement import Returning


class Session:
    """Governs a mython session: the global closure, the declared classes and the execution context."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path, cmd_line, output=sys.stdout, propagation=ReturnPropagation.DIRECT):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        self.closure = {}   # global bindings, kept between chunks in command-line mode
        self.classes = {}   # classes declared so far, shared by every chunk's parser
        self.context = Context(output, propagation)
        self.to_exec = []   # parsed programs waiting for run

        if self.cmd_line:
            self.error_handler.fatal = False

        if path != Session.SH_FILE:
            try:
                with open(path, "r") as file:
                    self.add(file)
            except OSError:
                raise GenericException("'{}' could not be opened", path, diagnosis=False)

        elif not cmd_line:
            raise GenericException("'<in>' is a reserved filename", diagnosis=False)

    @staticmethod
    def opens_block(line):
        """Whether or not line starts an indented block, i.e. ends with ':' once comments are removed."""
        if "#" in line:
            line = line[:line.index("#")]
        return line.rstrip().endswith(":")

    @staticmethod
    def tokenize(source):
        """Returns the list of tokens of source, Eof included."""
        lexer = Lexer(source)
        tokens = [lexer.current_token()]
        while tokens[-1].kind is not TokenType.EOF:
            tokens.append(lexer.next_token())
        return tokens

    def add(self, source):
        """Parses source (str or text stream) and queues it. Execution is delayed until run is called."""
        program = Parser(Lexer(source), self.classes).parse_program()
        self.to_exec.append(program)

    def run(self):
        """Executes queued programs in order. Returns the result of the last one."""
        result = None
        while self.to_exec:
            program = self.to_exec.pop(0)
            result = program.execute(self.closure, self.context)

            if isinstance(result, Returning):
                self.error_handler.warn("'return' outside of a method, value ignored", diagnosis=False)
                result = result.value
        return result
