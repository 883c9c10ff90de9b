"""
Depth-first AST walker with enter/leave callbacks.

Callbacks may skip, remove or replace the node they are called for. Mutations
are written into the parent immediately, and the traversal continues with the
tree as it looks after the mutation: a replaced node's children are walked
instead of the original's, and removing an element of a list does not cause its
next sibling to be skipped.
"""

import logging
from typing import TYPE_CHECKING, Any, List, Optional

from .types import (
    Node, FieldKey, FieldIndex, WalkerEnter, WalkerLeave,
    WalkerCallbackContext, WalkerEnterContext,
)
from .utils import is_node, iter_fields

if TYPE_CHECKING:
    from .scope_tracker import ScopeTracker

logger = logging.getLogger(__name__)


class WalkerBase:
    """Holds the callbacks and the slot-level write helpers used by concrete walkers."""

    def __init__(
        self,
        enter: Optional[WalkerEnter] = None,
        leave: Optional[WalkerLeave] = None,
        scope_tracker: Optional["ScopeTracker"] = None,
    ):
        self.enter = enter
        self.leave = leave
        self.scope_tracker = scope_tracker

    def _replace(self, parent: Optional[Node], key: FieldKey, index: FieldIndex, node: Node) -> None:
        """Overwrite the slot ``parent[key]`` (or ``parent[key][index]``) with node."""
        if parent is None or key is None:
            return
        if index is not None:
            container = parent.get(key)
            if isinstance(container, list) and 0 <= index < len(container):
                container[index] = node
        else:
            parent[key] = node

    def _insert(self, parent: Optional[Node], key: FieldKey, index: FieldIndex, node: Node) -> None:
        """Insert node at ``parent[key][index]``, shifting later siblings right."""
        if parent is None or key is None:
            return
        if index is not None:
            container = parent.get(key)
            if isinstance(container, list):
                container.insert(index, node)
        else:
            parent[key] = node

    def _remove(self, parent: Optional[Node], key: FieldKey, index: FieldIndex) -> None:
        """Delete the slot, splicing the list when the node lives in one."""
        if parent is None or key is None:
            return
        if index is not None:
            container = parent.get(key)
            if isinstance(container, list) and 0 <= index < len(container):
                del container[index]
        else:
            parent.pop(key, None)

    def _warn_scope_mutation(self, node: Node, action: str) -> None:
        # The tracker pushes and pops for the original node, so frame depth stays
        # balanced, but declarations recorded for it may no longer match the tree.
        if self.scope_tracker is not None and self.scope_tracker.is_scope_node(node):
            logger.warning(
                f"{action} of scope-introducing node {node['type']} "
                f"at {node.get('start')}:{node.get('end')} is not supported by the scope tracker"
            )


class WalkerSync(WalkerBase):
    """Synchronous walker."""

    def traverse(self, input: Node) -> Optional[Node]:
        """
        Walk the tree rooted at input.

        Args:
            input: The root node

        Returns:
            The root after all mutations: the replacement if the root was replaced,
            None if it was removed
        """
        ast = input

        def _walk(node: Any, parent: Optional[Node], key: FieldKey, index: FieldIndex) -> Optional[Node]:
            if not is_node(node):
                return None

            if self.scope_tracker is not None:
                self.scope_tracker.process_node_enter(node)

            current: Optional[Node] = node
            removed_in_enter = False
            skip_children = False

            if self.enter is not None:
                ctx = WalkerEnterContext(key, index, ast)
                ctx._accept(self.enter(node, parent, ctx))

                if ctx.replacement is not None and not ctx.removed:
                    current = ctx.replacement
                    self._replace(parent, key, index, current)
                    self._warn_scope_mutation(node, "Replacement")

                if ctx.removed:
                    removed_in_enter = True
                    current = None
                    self._remove(parent, key, index)
                    self._warn_scope_mutation(node, "Removal")

                if ctx.skipped:
                    skip_children = True

            # walk the children of the current node, or of its replacement
            if not skip_children and current is not None:
                for field_key, value in iter_fields(current):
                    if isinstance(value, list):
                        children: List[Any] = value
                        i = 0
                        while i < len(children):
                            child = children[i]
                            if is_node(child) and _walk(child, current, field_key, i) is None:
                                # the child left its slot, the next one moved into it
                                i -= 1
                            i += 1
                    elif is_node(value):
                        _walk(value, current, field_key, None)

            if self.scope_tracker is not None:
                self.scope_tracker.process_node_leave(node)

            if self.leave is not None:
                ctx = WalkerCallbackContext(key, index, ast)
                ctx._accept(self.leave(node, parent, ctx))

                if ctx.replacement is not None and not ctx.removed:
                    if removed_in_enter:
                        self._insert(parent, key, index, ctx.replacement)
                    else:
                        self._replace(parent, key, index, ctx.replacement)
                    self._warn_scope_mutation(node, "Replacement")
                    current = ctx.replacement
                    removed_in_enter = False

                if ctx.removed:
                    # already out of the tree when removed on enter
                    if not removed_in_enter:
                        self._remove(parent, key, index)
                        self._warn_scope_mutation(node, "Removal")
                    current = None

            return current

        return _walk(input, None, None, None)
