"""
Evaluation of tag assertion expressions against the tag store.
"""

import time

from shared.logging import get_logger
from ..errors import ExpressionParseError
from ..store import TagStore, TagStoreNotFound
from .nodes import And, Assert, Node, Or
from .parser import parse_expression

DEFAULT_MAX_EXPRESSION_LENGTH = 1024


class ExpressionEvaluator:
    """Evaluates parsed expressions for a user.

    Evaluation is total: an assertion naming an unknown or unapproved
    organization, a tag outside the organization's current schema, or a
    user without the value is simply false.
    """

    def __init__(self, store: TagStore):
        self.store = store
        self.logger = get_logger("kyc.expression")

    def evaluate(self, node: Node, user: str) -> bool:
        """Evaluate ``node`` for ``user`` against one consistent view of the store."""
        with self.store.transaction():
            return self._evaluate(node, user)

    def _evaluate(self, node: Node, user: str) -> bool:
        if isinstance(node, Or):
            return self._evaluate(node.left, user) or self._evaluate(node.right, user)
        if isinstance(node, And):
            return self._evaluate(node.left, user) and self._evaluate(node.right, user)
        if isinstance(node, Assert):
            return self._evaluate_assert(node, user)
        raise TypeError(f"Unsupported expression node: {type(node).__name__}")

    def _evaluate_assert(self, node: Assert, user: str) -> bool:
        try:
            org = self.store.get_org(node.org)
            if not org.approved or node.tag not in org.supported_tags:
                return False
            return node.value in self.store.get(node.org, user, node.tag)
        except TagStoreNotFound:
            return False


def eval_user_tag_expression(
    store: TagStore,
    user: str,
    expression: str,
    max_length: int = DEFAULT_MAX_EXPRESSION_LENGTH
) -> bool:
    """Parse then evaluate an expression; only parse failures raise."""
    logger = get_logger("kyc.expression")
    start_time = time.time()

    if len(expression) > max_length:
        raise ExpressionParseError(
            f"Expression exceeds {max_length} characters", max_length
        )

    try:
        node = parse_expression(expression)
        result = ExpressionEvaluator(store).evaluate(node, user)
    except RecursionError:
        # Long flat chains build a left-deep tree.
        logger.warning("Expression too deep to evaluate", user=user, length=len(expression))
        raise ExpressionParseError("Expression nested too deeply", 0) from None

    logger.debug(
        "Expression evaluated",
        user=user,
        expression=expression,
        result=result,
        evaluation_time_ms=(time.time() - start_time) * 1000
    )
    return result
