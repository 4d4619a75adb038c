"""Runs mython files or the command-line shell. Also uses error handling context manager. Called from the mython
console script and from `python -m mython`.
"""

import argparse
import sys

from mython.lang.error import ErrorHandler, GenericException
from mython.lang.session import Session
from mython.lang.shell import Shell
from mython.runtime.objects import ReturnPropagation


def main(argv=None):
    """Runs mython interpreter."""
    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="mython")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("--nested-returns", action="store_true",
                            help="let 'return' leave a method from any block depth")
        parser.add_argument("--tokens", action="store_true",
                            help="print the token stream of file instead of running it")
        args = parser.parse_args(argv)

        propagation = ReturnPropagation.NESTED if args.nested_returns else ReturnPropagation.DIRECT

        if args.tokens:
            if args.file is None:
                raise GenericException("--tokens requires a file", diagnosis=False)
            error_handler.register_file(args.file)
            try:
                with open(args.file, "r") as file:
                    tokens = Session.tokenize(file)
            except OSError:
                raise GenericException("'{}' could not be opened", args.file, diagnosis=False)

            for token in tokens:
                print(token)

        elif args.file is not None:
            Session(error_handler, args.file, cmd_line=False, output=sys.stdout, propagation=propagation).run()

        else:
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True, output=sys.stdout,
                          propagation=propagation)).cmdloop()
