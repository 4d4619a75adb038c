"""Runtime objects of mython and the services statements use to work with them.

A value is either one of the classes below or Python's None, which stands for mython's `None`. Number, String and
Bool are immutable, so sharing them is indistinguishable from copying them. ClassInstances are mutable and shared
by reference: every binding or field holding the same instance sees the same fields.
"""

from dataclasses import dataclass
from enum import Enum

from mython.lang.error import ComparisonError, MethodCallError


@dataclass(frozen=True)
class Number:
    value: int


@dataclass(frozen=True)
class String:
    value: str


@dataclass(frozen=True)
class Bool:
    value: bool


class Method:
    """A method declared in a class body. body is a statement, normally a MethodBody."""

    def __init__(self, name, formal_params, body):
        self.name = name
        self.formal_params = list(formal_params)
        self.body = body

    @property
    def arity(self):
        return len(self.formal_params)

    def __repr__(self):
        return f"Method({self.name}({', '.join(self.formal_params)}))"


class Class:
    """Class descriptor: a name, a method table keyed by (name, arity) and an optional parent class."""

    def __init__(self, name, methods, parent=None):
        self.name = name
        self.parent = parent
        self._methods = {}
        for method in methods:
            self.add_method(method)

    def add_method(self, method):
        """Adds method to the table. A later method with the same name and arity replaces an earlier one."""
        self._methods[(method.name, method.arity)] = method

    def get_method(self, name, arity):
        """Returns the method called name accepting arity arguments, looking through parents. None if absent."""
        cls = self
        while cls is not None:
            method = cls._methods.get((name, arity))
            if method is not None:
                return method
            cls = cls.parent
        return None

    def __repr__(self):
        return f"Class({self.name})"


class ClassInstance:
    """An object of a user-defined class. Owns its fields."""

    def __init__(self, cls):
        self.cls = cls
        self.fields = {}

    def has_method(self, name, arity):
        return self.cls.get_method(name, arity) is not None

    def call(self, name, args, context):
        """Calls method name with args. self and the formal parameters are bound in a fresh closure."""
        method = self.cls.get_method(name, len(args))
        if method is None:
            raise MethodCallError("bad method call: '{}' has no method '{}' taking {} argument(s)",
                                  (self.cls.name, name, len(args)))

        closure = {"self": self}
        closure.update(zip(method.formal_params, args))
        return method.body.execute(closure, context)

    def __repr__(self):
        return f"<{self.cls.name} object at {hex(id(self))}>"


class ReturnPropagation(Enum):
    """How a Compound hands on results of its children.

    DIRECT is the default: a `return` is only seen by a block when it is a direct child, or when
    it comes back through a direct `if`/method call child. NESTED lets a `return` bubble from any depth up to the
    enclosing method body.
    """
    DIRECT = "direct"
    NESTED = "nested"


class Context:
    """Services available while executing: where `print` writes to, and how `return` propagates."""

    def __init__(self, output=None, propagation=ReturnPropagation.DIRECT):
        self.output = output
        self.propagation = propagation


def is_true(value):
    """mython truthiness: nonzero Numbers, nonempty Strings and True are true, everything else is false."""
    if isinstance(value, (Bool, Number)):
        return bool(value.value)
    if isinstance(value, String):
        return value.value != ""
    return False


def stringify(value, context):
    """Returns the text print would output for value."""
    if value is None:
        return "None"
    if isinstance(value, Bool):
        return "True" if value.value else "False"
    if isinstance(value, (Number, String)):
        return str(value.value)
    if isinstance(value, Class):
        return f"Class {value.name}"
    if isinstance(value, ClassInstance):
        if value.has_method("__str__", 0):
            return stringify(value.call("__str__", [], context), context)
        return repr(value)
    raise TypeError(f"not a mython value: {value!r}")


def _same_primitive(lhs, rhs):
    return type(lhs) is type(rhs) and isinstance(lhs, (Number, String, Bool))


def equal(lhs, rhs, context):
    if lhs is None and rhs is None:
        return True
    if _same_primitive(lhs, rhs):
        return lhs.value == rhs.value
    if isinstance(lhs, ClassInstance) and lhs.has_method("__eq__", 1):
        return is_true(lhs.call("__eq__", [rhs], context))
    raise ComparisonError("cannot compare {} and {} for equality", (type_name(lhs), type_name(rhs)))


def less(lhs, rhs, context):
    if _same_primitive(lhs, rhs):
        return lhs.value < rhs.value
    if isinstance(lhs, ClassInstance) and lhs.has_method("__lt__", 1):
        return is_true(lhs.call("__lt__", [rhs], context))
    raise ComparisonError("cannot compare {} and {} for less", (type_name(lhs), type_name(rhs)))


def not_equal(lhs, rhs, context):
    return not equal(lhs, rhs, context)


def greater(lhs, rhs, context):
    return not (less(lhs, rhs, context) or equal(lhs, rhs, context))


def less_or_equal(lhs, rhs, context):
    return less(lhs, rhs, context) or equal(lhs, rhs, context)


def greater_or_equal(lhs, rhs, context):
    return not less(lhs, rhs, context)


def type_name(value):
    """Type name of value for error messages."""
    if value is None:
        return "None"
    if isinstance(value, ClassInstance):
        return value.cls.name
    return type(value).__name__
