"""Statement tree of mython and its tree-walking evaluation.

Every node implements execute(closure, context), where closure is the dict of name bindings of the current scope and
context is a runtime.objects.Context. Expressions return a value (None standing for mython's `None`).

`return` is not an exception: Return.execute produces a Returning carrier which enclosing Compounds hand upwards
(see Compound for the rules) until a MethodBody unwraps it into the method's result.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from mython.lang.error import BadOperationError, DivisionByZeroError, MethodCallError, UnknownVariableError
from mython.runtime.objects import Bool, ClassInstance, Number, ReturnPropagation, String, is_true, stringify, \
    type_name

ADD_METHOD = "__add__"
SUB_METHOD = "__sub__"
MUL_METHOD = "__mul__"
DIV_METHOD = "__div__"
INIT_METHOD = "__init__"


@dataclass
class Returning:
    """Result of executing `return`: carries value up to the nearest MethodBody."""
    value: object


class Statement(ABC):
    """Superclass of all nodes of a mython statement tree."""

    @abstractmethod
    def execute(self, closure, context):
        """Executes this node against closure and context and returns its result."""

    def __repr__(self):
        return f"{type(self).__name__}()"


class Constant(Statement):
    """Literal value: Number, String, Bool or None."""

    def __init__(self, value):
        self.value = value

    def execute(self, closure, context):
        return self.value

    def __repr__(self):
        return f"Constant({self.value!r})"


class Assignment(Statement):
    """var = rv"""

    def __init__(self, var, rv):
        self.var = var
        self.rv = rv

    def execute(self, closure, context):
        closure[self.var] = value = self.rv.execute(closure, context)
        return value

    def __repr__(self):
        return f"Assignment({self.var!r}, {self.rv!r})"


class VariableValue(Statement):
    """Variable lookup, possibly through fields: x, self.x, a.b.c"""

    def __init__(self, dotted_ids):
        if isinstance(dotted_ids, str):
            dotted_ids = [dotted_ids]
        self.dotted_ids = list(dotted_ids)

    def execute(self, closure, context):
        name, *fields = self.dotted_ids
        if name not in closure:
            raise UnknownVariableError("unknown variable '{}'", name)

        value = closure[name]
        for idx, field in enumerate(fields):
            if not isinstance(value, ClassInstance) or field not in value.fields:
                raise UnknownVariableError("unknown variable '{}'", ".".join(self.dotted_ids[:idx + 2]))
            value = value.fields[field]
        return value

    def __repr__(self):
        return f"VariableValue({'.'.join(self.dotted_ids)!r})"


class Print(Statement):
    """print arg1, arg2, ..."""

    def __init__(self, args):
        if isinstance(args, Statement):
            args = [args]
        self.args = list(args)

    @classmethod
    def variable(cls, name):
        return cls(VariableValue(name))

    def execute(self, closure, context):
        if context.output is None:
            return None

        # each argument is written as soon as it is evaluated, so output of later arguments follows it
        for idx, arg in enumerate(self.args):
            if idx > 0:
                context.output.write(" ")
            context.output.write(stringify(arg.execute(closure, context), context))
        context.output.write("\n")
        return None


class MethodCall(Statement):
    """obj.method(args). Arguments are evaluated before the receiver."""

    def __init__(self, obj, method, args):
        self.obj = obj
        self.method = method
        self.args = list(args)

    def execute(self, closure, context):
        actual_args = [arg.execute(closure, context) for arg in self.args]
        receiver = self.obj.execute(closure, context)

        if isinstance(receiver, ClassInstance) and receiver.has_method(self.method, len(actual_args)):
            return receiver.call(self.method, actual_args, context)

        raise MethodCallError("bad method call: {} has no method '{}' taking {} argument(s)",
                              (type_name(receiver), self.method, len(actual_args)))

    def __repr__(self):
        return f"MethodCall({self.obj!r}, {self.method!r}, {self.args!r})"


class Stringify(Statement):
    """str(arg)"""

    def __init__(self, arg):
        self.arg = arg

    def execute(self, closure, context):
        return String(stringify(self.arg.execute(closure, context), context))


class BinaryOperation(Statement):
    """Superclass of nodes with two operands."""

    def __init__(self, lhs, rhs):
        self.lhs = lhs
        self.rhs = rhs

    def __repr__(self):
        return f"{type(self).__name__}({self.lhs!r}, {self.rhs!r})"


class Arithmetic(BinaryOperation):
    """Superclass of + - * /. Numbers are handled by compute; a ClassInstance on the left dispatches to METHOD."""
    METHOD = None
    NAME = None

    @abstractmethod
    def compute(self, lhs, rhs):
        """Returns the result for built-in operands, or None if they are not supported."""

    def execute(self, closure, context):
        lhs = self.lhs.execute(closure, context)
        rhs = self.rhs.execute(closure, context)
        self.check(lhs, rhs)

        result = self.compute(lhs, rhs)
        if result is not None:
            return result

        if isinstance(lhs, ClassInstance) and lhs.has_method(self.METHOD, 1):
            return lhs.call(self.METHOD, [rhs], context)

        raise BadOperationError("bad {}: unsupported operands {} and {}", (self.NAME, type_name(lhs), type_name(rhs)))

    def check(self, lhs, rhs):
        """Hook to reject operands before any dispatch."""


class Add(Arithmetic):
    METHOD = ADD_METHOD
    NAME = "addition"

    def compute(self, lhs, rhs):
        if isinstance(lhs, Number) and isinstance(rhs, Number):
            return Number(lhs.value + rhs.value)
        if isinstance(lhs, String) and isinstance(rhs, String):
            return String(lhs.value + rhs.value)
        return None


class Sub(Arithmetic):
    METHOD = SUB_METHOD
    NAME = "subtraction"

    def compute(self, lhs, rhs):
        if isinstance(lhs, Number) and isinstance(rhs, Number):
            return Number(lhs.value - rhs.value)
        return None


class Mult(Arithmetic):
    METHOD = MUL_METHOD
    NAME = "multiplication"

    def compute(self, lhs, rhs):
        if isinstance(lhs, Number) and isinstance(rhs, Number):
            return Number(lhs.value * rhs.value)
        return None


class Div(Arithmetic):
    """Integer division, truncating toward zero."""
    METHOD = DIV_METHOD
    NAME = "division"

    def check(self, lhs, rhs):
        if isinstance(rhs, Number) and rhs.value == 0:
            raise DivisionByZeroError("zero division")

    def compute(self, lhs, rhs):
        if isinstance(lhs, Number) and isinstance(rhs, Number):
            quotient = abs(lhs.value) // abs(rhs.value)
            return Number(quotient if (lhs.value < 0) == (rhs.value < 0) else -quotient)
        return None


class Compound(Statement):
    """Block of statements executed in order.

    With ReturnPropagation.DIRECT the block stops early when a direct child is a Return, or is an IfElse or a
    MethodCall whose result is not None; that result becomes the block's result. Results of other children are
    dropped, so a Returning coming out of e.g. a nested bare block is lost. With ReturnPropagation.NESTED the block
    stops on a Returning from any child and drops everything else.
    """

    def __init__(self, statements=None):
        self.statements = list(statements) if statements else []

    def add_statement(self, statement):
        self.statements.append(statement)

    def execute(self, closure, context):
        nested = context.propagation is ReturnPropagation.NESTED

        for statement in self.statements:
            result = statement.execute(closure, context)

            if nested:
                if isinstance(result, Returning):
                    return result
            elif isinstance(statement, Return):
                return result
            elif isinstance(statement, (IfElse, MethodCall)) and result is not None:
                return result

        return None

    def __repr__(self):
        return f"Compound({self.statements!r})"


class Return(Statement):
    """return statement"""

    def __init__(self, statement):
        self.statement = statement

    def execute(self, closure, context):
        return Returning(self.statement.execute(closure, context))

    def __repr__(self):
        return f"Return({self.statement!r})"


class ClassDefinition(Statement):
    """Binds a Class under its own name."""

    def __init__(self, cls):
        self.cls = cls

    def execute(self, closure, context):
        closure[self.cls.name] = self.cls
        return None

    def __repr__(self):
        return f"ClassDefinition({self.cls.name!r})"


class FieldAssignment(Statement):
    """object.field_name = rv"""

    def __init__(self, obj, field_name, rv):
        self.obj = obj
        self.field_name = field_name
        self.rv = rv

    def execute(self, closure, context):
        instance = self.obj.execute(closure, context)
        if not isinstance(instance, ClassInstance):
            raise BadOperationError("cannot set field '{}' of {}", (self.field_name, type_name(instance)))

        instance.fields[self.field_name] = value = self.rv.execute(closure, context)
        return value

    def __repr__(self):
        return f"FieldAssignment({self.obj!r}, {self.field_name!r}, {self.rv!r})"


class IfElse(Statement):
    """if condition: if_body else: else_body. Either body may be None."""

    def __init__(self, condition, if_body, else_body=None):
        self.condition = condition
        self.if_body = if_body
        self.else_body = else_body

    def execute(self, closure, context):
        body = self.if_body if is_true(self.condition.execute(closure, context)) else self.else_body
        if body is None:
            return None
        return body.execute(closure, context)


class Or(BinaryOperation):
    """Both operands are always evaluated."""

    def execute(self, closure, context):
        lhs = self.lhs.execute(closure, context)
        rhs = self.rhs.execute(closure, context)
        return Bool(is_true(lhs) or is_true(rhs))


class And(BinaryOperation):
    """Both operands are always evaluated."""

    def execute(self, closure, context):
        lhs = self.lhs.execute(closure, context)
        rhs = self.rhs.execute(closure, context)
        return Bool(is_true(lhs) and is_true(rhs))


class Not(Statement):

    def __init__(self, arg):
        self.arg = arg

    def execute(self, closure, context):
        return Bool(not is_true(self.arg.execute(closure, context)))


class Comparison(BinaryOperation):
    """Applies comparator(lhs, rhs, context), one of the comparison functions in runtime.objects."""

    def __init__(self, comparator, lhs, rhs):
        super().__init__(lhs, rhs)
        self.comparator = comparator

    def execute(self, closure, context):
        lhs = self.lhs.execute(closure, context)
        rhs = self.rhs.execute(closure, context)
        return Bool(self.comparator(lhs, rhs, context))

    def __repr__(self):
        return f"Comparison({self.comparator.__name__}, {self.lhs!r}, {self.rhs!r})"


class NewInstance(Statement):
    """ClassName(args). __init__ is only called if the class has one taking len(args) arguments."""

    def __init__(self, cls, args=None):
        self.cls = cls
        self.args = list(args) if args else []

    def execute(self, closure, context):
        instance = ClassInstance(self.cls)
        if instance.has_method(INIT_METHOD, len(self.args)):
            actual_args = [arg.execute(closure, context) for arg in self.args]
            instance.call(INIT_METHOD, actual_args, context)
        return instance

    def __repr__(self):
        return f"NewInstance({self.cls.name!r}, {self.args!r})"


class MethodBody(Statement):
    """Body of a method: the only node that turns a Returning back into an ordinary value. A method that does not
    execute `return` results in None, even if its block ended early on a call or `if` result.
    """

    def __init__(self, body):
        self.body = body

    def execute(self, closure, context):
        result = self.body.execute(closure, context)
        if isinstance(result, Returning):
            return result.value
        return None

    def __repr__(self):
        return f"MethodBody({self.body!r})"
