from mathinterp.parser import (
    Assignment,
    BinaryOperation,
    FunctionCall,
    Node,
    NumberLiteral,
    UnaryOperation,
    VariableReference,
)
from mathinterp.utils import format_number

INDENT_STEP = "  "


def visualize(tree: Node, indent: str = "") -> str:
    """Renders the parse tree one node per line, children indented under their parent.

    Each line shows the node kind, its detail in parenthesis, and the value computed for that subtree:

        Assign(y): 14
          BinaryOp(*, implied): 14
            Number: 2
            BinaryOp(+): 7
              Number: 3
              Variable(x): 4
    """
    lines = [indent + _label(tree)]
    for child in _children(tree):
        lines.append(visualize(child, indent + INDENT_STEP))
    return "\n".join(lines)


def _label(node: Node) -> str:
    value = format_number(node.value)
    if isinstance(node, NumberLiteral):
        return f"Number: {value}"
    elif isinstance(node, VariableReference):
        return f"Variable({node.name}): {value}"
    elif isinstance(node, Assignment):
        return f"Assign({node.name}): {value}"
    elif isinstance(node, UnaryOperation):
        return f"Negate: {value}"
    elif isinstance(node, BinaryOperation):
        detail = f"{node.operator.value}, implied" if node.implied else node.operator.value
        return f"BinaryOp({detail}): {value}"
    elif isinstance(node, FunctionCall):
        return f"Call({node.name}): {value}"
    else:
        raise TypeError(f"Unexpected parse tree node: {node!r}")


def _children(node: Node) -> list[Node]:
    if isinstance(node, Assignment):
        return [node.expression]
    elif isinstance(node, UnaryOperation):
        return [node.operand]
    elif isinstance(node, BinaryOperation):
        return [node.left, node.right]
    elif isinstance(node, FunctionCall):
        return [node.argument]
    return []
