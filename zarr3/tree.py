from __future__ import annotations

from asciitree import BoxStyle, LeftAligned
from asciitree.traversal import Traversal


class TreeNode:
    def __init__(self, obj, depth=0, level=None):
        self.obj = obj
        self.depth = depth
        self.level = level

    def get_children(self):
        if hasattr(self.obj, "members"):
            if self.level is None or self.depth < self.level:
                depth = self.depth + 1
                return [
                    TreeNode(o, depth=depth, level=self.level) for _, o in self.obj.members()
                ]
        return []

    def get_text(self):
        name = self.obj.name.split("/")[-1] or "/"
        if hasattr(self.obj, "shape"):
            name += " {} {}".format(self.obj.shape, self.obj.dtype)
        return name


class TreeTraversal(Traversal):
    def get_children(self, node):
        return node.get_children()

    def get_root(self, tree):
        return tree

    def get_text(self, node):
        return node.get_text()


class TreeViewer:
    """Text rendering of a group hierarchy, one line per node.

    ``str()`` draws the tree with box-drawing characters, ``bytes()`` with plain ASCII.
    """

    def __init__(self, group, level=None):
        self.group = group
        self.level = level

        self.text_kwargs = dict(horiz_len=2, label_space=1, indent=1)

        self.bytes_kwargs = dict(
            UP_AND_RIGHT="+", HORIZONTAL="-", VERTICAL="|", VERTICAL_AND_RIGHT="+"
        )

        self.unicode_kwargs = dict(
            UP_AND_RIGHT="└",
            HORIZONTAL="─",
            VERTICAL="│",
            VERTICAL_AND_RIGHT="├",
        )

    def _draw(self, gfx):
        drawer = LeftAligned(
            traverse=TreeTraversal(), draw=BoxStyle(gfx=gfx, **self.text_kwargs)
        )
        root = TreeNode(self.group, level=self.level)
        return drawer(root)

    def __bytes__(self):
        return self._draw(self.bytes_kwargs).encode()

    def __str__(self):
        return self._draw(self.unicode_kwargs)

    def __repr__(self):
        return self.__str__()
