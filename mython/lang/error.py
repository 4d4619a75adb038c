"""Error handling for the mython language. Only GenericExceptions should be encountered during running: if another
type of error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Errors are never recovered where they are detected. They unwind through the lexer, parser or evaluator until an
ErrorHandler reports them. The non-local `return` of the language is a plain value (see runtime.statement.Returning)
and never passes through this module.
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error/warning message so that it can be used to throw a mython error/warning. exprs are the
    snippets substituted into msg; exprs[0] is the offending text (usually a source line) and start/end delimit the
    part of it to highlight.
    """

    def __init__(self, msg, exprs=None, start=0, end=-1, line_num=None, diagnosis=True, internal=False):
        if exprs is None:
            exprs = ""
        if isinstance(exprs, str):
            exprs = [exprs]
        exprs = [str(expr) for expr in exprs]

        super().__init__(msg.format(*exprs))

        self.msg = msg.format(*(colored(expr, attrs=["bold"]) for expr in exprs))  # color expr snippets
        self.expr = exprs[0]
        self.end = end if end != -1 else len(self.expr)  # needed for error display

        self.start = start
        self.line_num = line_num
        self.diagnosis = diagnosis
        self.internal = internal


class LexerError(GenericException):
    """Raised for malformed source text: bad indentation, literals or unmet token expectations."""


class ParseError(GenericException):
    """Raised when the token stream does not follow mython grammar."""


class ExecutionError(GenericException):
    """Superclass of every error raised while executing a statement tree."""

    def __init__(self, msg, exprs=None, **kwargs):
        kwargs.setdefault("diagnosis", False)  # statement nodes carry no source positions
        super().__init__(msg, exprs, **kwargs)


class UnknownVariableError(ExecutionError):
    pass


class MethodCallError(ExecutionError):
    pass


class BadOperationError(ExecutionError):
    pass


class DivisionByZeroError(ExecutionError):
    pass


class ComparisonError(ExecutionError):
    pass


class ErrorHandler:
    """Context manager that will silently suppress Python errors and report custom mython errors/warnings."""
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True):
        self.fatal = fatal
        self.path = None

    def register_file(self, path):
        """Registers path as the source that errors refer to."""
        self.path = path

    @staticmethod
    def diagnose(error, warning=False):
        """Returns offending part of error.expr highlighted and bolded."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR

        diagnosis = "  " + error.expr[:error.start]

        end = max(error.end, error.start + 1)
        diagnosis += colored(error.expr[error.start:end], color, attrs=["bold"])
        diagnosis += error.expr[end:] + "\n"

        diagnosis += "  " + " " * error.start
        diagnosis += colored("^" + "~" * (end - error.start - 1), color, attrs=["bold"])

        return diagnosis

    def location(self, error):
        """Returns 'file:line: ' prefix for error, or as much of it as is known."""
        if self.path is None:
            return ""
        if error.line_num is None:
            return colored(f"{self.path}: ", attrs=["bold"])
        return colored(f"{self.path}:{error.line_num}: ", attrs=["bold"])

    def warn(self, *args, **kwargs):
        """Generates and prints runtime warning message based on args."""
        error = GenericException(*args, **kwargs)

        error_msg = self.location(error)
        error_msg += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + error.msg
        print(error_msg)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error, warning=True))

    def throw(self, error):
        """Prints error, a GenericException, and exits if this handler is fatal."""
        error_msg = self.location(error)
        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        print(error_msg)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error))

        if self.fatal:
            sys.exit(1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt", diagnosis=False))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(GenericException("maximum recursion depth exceeded", diagnosis=False))
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException("unknown error: '{}'", f"{exc_type.__name__}: {exc_val}", internal=True))
            do_exit = True

        return not do_exit
