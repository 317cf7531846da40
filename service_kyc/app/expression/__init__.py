"""
Tag expression package.

Parses boolean assertions such as ``acme.kyc1@`passed` && (a.b@`x` || c.d@`y`)``
into an ``Or | And | Assert`` tree and evaluates them against the tag store.

Modules of interest:
- nodes: The syntax tree node types.
- parser: Tokenizer and recursive descent parser.
- evaluator: Short-circuiting evaluation against a consistent store view.
"""

from .nodes import And, Assert, Node, Or
from .parser import ExpressionParser, parse_expression, tokenize
from .evaluator import DEFAULT_MAX_EXPRESSION_LENGTH, ExpressionEvaluator, eval_user_tag_expression

__all__ = [
    "And",
    "Assert",
    "Node",
    "Or",
    "ExpressionParser",
    "parse_expression",
    "tokenize",
    "DEFAULT_MAX_EXPRESSION_LENGTH",
    "ExpressionEvaluator",
    "eval_user_tag_expression",
]
