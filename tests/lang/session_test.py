import contextlib
import io
import os
import tempfile
import unittest

from mython.lang.error import DivisionByZeroError, ErrorHandler, GenericException, ParseError
from mython.lang.session import Session
from mython.lang.shell import Shell
from mython.main import main
from mython.runtime.objects import Number, ReturnPropagation

PROGRAM = """\
class Greeter:
  def __init__(name):
    self.name = name

  def greet():
    return "hello, " + self.name

print Greeter("mython").greet()
print 6 / 4
"""

EARLY_EXIT = """\
class Box:
  def value():
    return 1

Box().value()
print "after"
"""


class SourceFilesMixin:
    """Writes sources into a temporary directory that lives as long as the test."""

    def setUp(self):
        self._tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp_dir.cleanup)

    def write(self, source, name="program.my"):
        path = os.path.join(self._tmp_dir.name, name)
        with open(path, "w") as file:
            file.write(source)
        return path

    def missing(self):
        return os.path.join(self._tmp_dir.name, "missing.my")


class ErrorHandlerTestCase(unittest.TestCase):

    def test_throw(self):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            ErrorHandler(fatal=False).throw(GenericException("bad thing", diagnosis=False))
        self.assertIn("error: ", stdout.getvalue())
        self.assertIn("bad thing", stdout.getvalue())

        with contextlib.redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as context:
                ErrorHandler().throw(GenericException("bad thing"))
        self.assertEqual(1, context.exception.code)

    def test_location(self):
        handler = ErrorHandler(fatal=False)
        self.assertEqual("", handler.location(GenericException("x")))

        handler.register_file("prog.my")
        self.assertIn("prog.my:4: ", handler.location(GenericException("x", line_num=4)))
        self.assertIn("prog.my: ", handler.location(GenericException("x")))

    def test_diagnose(self):
        error = GenericException("bad token in '{}'", "x = 4 $ 2", start=6, end=7)
        diagnosis = ErrorHandler.diagnose(error)
        self.assertIn("$", diagnosis)
        self.assertTrue(diagnosis.splitlines()[1].startswith("  " + " " * 6))

        error = GenericException("bad token in '{}'", "abcdef", start=1, end=4)
        self.assertIn("^~~", ErrorHandler.diagnose(error))

    def test_message(self):
        error = ParseError("'{}' is not a declared class", "Foo")
        self.assertEqual("'Foo' is not a declared class", str(error))
        self.assertFalse(DivisionByZeroError("zero division").diagnosis)

    def test_context_manager(self):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            with ErrorHandler(fatal=False):
                raise ParseError("broken {}", "input", diagnosis=False)
            with ErrorHandler(fatal=False):
                raise RecursionError()
        self.assertIn("broken", stdout.getvalue())
        self.assertIn("maximum recursion depth exceeded", stdout.getvalue())

        # errors that are not mython's are reported, then passed on
        with contextlib.redirect_stdout(io.StringIO()) as stdout:
            with self.assertRaises(ValueError):
                with ErrorHandler(fatal=False):
                    raise ValueError("{oops}")
        self.assertIn("[internal] ", stdout.getvalue())
        self.assertIn("{oops}", stdout.getvalue())


class SessionTestCase(SourceFilesMixin, unittest.TestCase):

    def test_file_mode(self):
        output = io.StringIO()
        Session(ErrorHandler(), self.write(PROGRAM), cmd_line=False, output=output).run()
        self.assertEqual("hello, mython\n1\n", output.getvalue())

    def test_bad_files(self):
        self.assertRaises(GenericException, Session, ErrorHandler(), self.missing(), False)
        self.assertRaises(GenericException, Session, ErrorHandler(), Session.SH_FILE, False)

        self.assertRaises(ParseError, Session, ErrorHandler(), self.write("x = Foo()\n"), False)

    def test_propagation(self):
        path = self.write(EARLY_EXIT)
        cases = {ReturnPropagation.DIRECT: "", ReturnPropagation.NESTED: "after\n"}
        for propagation, expected in cases.items():
            output = io.StringIO()
            Session(ErrorHandler(), path, False, output=output, propagation=propagation).run()
            self.assertEqual(expected, output.getvalue(), propagation)

    def test_command_line_mode(self):
        output = io.StringIO()
        sess = Session(ErrorHandler(), Session.SH_FILE, cmd_line=True, output=output)
        self.assertFalse(sess.error_handler.fatal)

        sess.add("class A:\n  def f(x):\n    return x * 2\n")
        sess.add("a = A()\n")
        self.assertIsNone(sess.run())

        sess.add("print a.f(21)\n")
        sess.run()
        self.assertEqual("42\n", output.getvalue())
        self.assertIn("a", sess.closure)
        self.assertIn("A", sess.classes)

    def test_top_level_return(self):
        sess = Session(ErrorHandler(), Session.SH_FILE, cmd_line=True, output=io.StringIO())
        sess.add("return 5\n")

        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            self.assertEqual(Number(5), sess.run())
        self.assertIn("warning: ", stdout.getvalue())
        self.assertIn("'return' outside of a method", stdout.getvalue())

    def test_opens_block(self):
        should_pass = ["if x:", "class A:  ", "def f(): # comment", "  else:"]
        for case in should_pass:
            self.assertTrue(Session.opens_block(case), case)

        should_fail = ["x = 1", "print ':'", "# if x:", "x = 1 # note:"]
        for case in should_fail:
            self.assertFalse(Session.opens_block(case), case)

    def test_tokenize(self):
        cases = {
            "x = 1": "[Id{x}, Char{=}, Number{1}, Newline, Eof]",
            "": "[Eof]",
            "if x:\n  y\n": "[If, Id{x}, Char{:}, Newline, Indent, Id{y}, Newline, Dedent, Eof]"
        }
        for source, expected in cases.items():
            self.assertEqual(expected, repr(Session.tokenize(source)))
        self.assertEqual(repr(Session.tokenize("x = 1")), repr(Session.tokenize(io.StringIO("x = 1\n"))))


class ShellTestCase(unittest.TestCase):

    def setUp(self):
        self.output = io.StringIO()
        sess = Session(ErrorHandler(), Session.SH_FILE, cmd_line=True, output=self.output)
        self.shell = Shell(sess, stdin=io.StringIO(), stdout=io.StringIO())

    def feed(self, *lines):
        for line in lines:
            self.shell.onecmd(line)

    def test_statements(self):
        self.feed("x = 2", "print x * 3", "print")
        self.assertEqual("6\n\n", self.output.getvalue())

    def test_blocks(self):
        self.feed("x = 2", "if x:")
        self.assertEqual(Shell.secondary_prompt, self.shell.prompt)

        self.feed("  print x + 1", "  print x + 2")
        self.assertEqual("", self.output.getvalue())

        self.feed("")
        self.assertEqual("3\n4\n", self.output.getvalue())
        self.assertEqual(Shell._tmp_prompt, self.shell.prompt)

        self.feed("class A:", "  def f():", "    return 4", "   ", "print A().f()")
        self.assertEqual("3\n4\n4\n", self.output.getvalue())

    def test_errors_are_not_fatal(self):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            self.feed("print y", "x = (", "print 1 / 0", "print 1")
        self.assertIn("unknown variable", stdout.getvalue())
        self.assertIn("zero division", stdout.getvalue())
        self.assertEqual("1\n", self.output.getvalue())

    def test_command_names_as_code(self):
        should_run = ["exit = 1", "help = 2", "EOF = exit + help", "print exit, help, EOF"]
        for line in should_run:
            self.assertFalse(self.shell.onecmd(line), line)

        self.feed("if exit:", "  exit = 10", "  print exit", "")
        self.assertEqual("1 2 3\n10\n", self.output.getvalue())

    def test_exit(self):
        self.assertTrue(self.shell.onecmd("exit"))
        with contextlib.redirect_stdout(io.StringIO()):
            self.assertTrue(self.shell.onecmd("EOF"))
            self.assertFalse(self.shell.onecmd("help"))


class MainTestCase(SourceFilesMixin, unittest.TestCase):

    def run_main(self, *argv):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            main(list(argv))
        return stdout.getvalue()

    def test_run_file(self):
        self.assertEqual("hello, mython\n1\n", self.run_main(self.write(PROGRAM)))

    def test_nested_returns(self):
        path = self.write(EARLY_EXIT)
        self.assertEqual("", self.run_main(path))
        self.assertEqual("after\n", self.run_main("--nested-returns", path))

    def test_tokens(self):
        tokens = self.run_main("--tokens", self.write("x = 'a'\n")).splitlines()
        self.assertEqual(["Id{x}", "Char{=}", "String{a}", "Newline", "Eof"], tokens)

    def test_failures(self):
        should_fail = [
            [self.missing()],
            ["--tokens"],
            ["--tokens", self.missing()],
            [self.write("print 1 / 0\n", "zero.my")],
            [self.write("x =\n", "syntax.my")]
        ]
        for argv in should_fail:
            with self.assertRaises(SystemExit) as context:
                self.run_main(*argv)
            self.assertEqual(1, context.exception.code, argv)

    def test_error_location(self):
        path = self.write("x = 1\nif x\n  print x\n", "where.my")
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout), self.assertRaises(SystemExit):
            main([path])
        self.assertIn(f"{path}:2: ", stdout.getvalue())
        self.assertIn("Lexer expects token", stdout.getvalue())


if __name__ == '__main__':
    unittest.main()
