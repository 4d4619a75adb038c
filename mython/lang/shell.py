"""Handles interactive/command-line mode for the mython interpreter. Uses cmd as backend."""

import cmd

from mython.lang.session import Session


class Shell(cmd.Cmd):
    """mython interpreter shell."""
    intro = "mython interpreter :: Python backend\nType 'help' for more information."
    prompt = ">>> "
    secondary_prompt = "... "  # used inside indented blocks
    _tmp_prompt = ">>> "       # also used for prompt swapping in blocks
    commands = ("help", "exit", "EOF")  # everything else is mython code, e.g. 'exit = 1'

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self._tmp_lines = []

    def parseline(self, line):
        """Only the bare shell commands are dispatched to do_* methods. Any other line goes to default unstripped:
        indentation matters in mython.
        """
        if line.strip() in Shell.commands:
            return super().parseline(line.strip())
        return None, None, line

    def default(self, line):
        """Executes arbitrary mython code. Blocks are collected until an empty line."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            if self._tmp_lines or Session.opens_block(line):
                if line.strip():
                    self._tmp_lines.append(line)
                    self.prompt = self.secondary_prompt
                    return

                line = "\n".join(self._tmp_lines)
                self._tmp_lines = []
                self.prompt = self._tmp_prompt

            if not line.strip():
                return

            self.sess.add(line)
            self.sess.run()

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the mython interpreter!\n\n"
              "mython is a small Python-like language with classes, methods and two-space \n"
              "indentation. Try 'x = 2 + 3' followed by 'print x'. Lines ending with ':' \n"
              "open a block: keep typing indented lines and finish the block with an empty line.")

    def emptyline(self):
        """Finishes a pending block, otherwise does nothing (the previous command is not repeated)."""
        if self._tmp_lines:
            self.default("")
        return False

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
