#!/usr/bin/env python

class PartitionRefinement:

    """Partition of a set of items into numbered blocks that can only be split.
       Loosely follows D. Eppstein's PartitionRefinement, but splits by a key
       function instead of by membership in a splitter set, so the same
       structure serves Moore-style minimization of weighted automata."""

    def __init__(self, blocks):
        """Create a partition from an iterable of disjoint iterables of items."""
        self.blocks = [list(b) for b in blocks if len(b) > 0]
        self.partition = {x: i for i, b in enumerate(self.blocks) for x in b}

    def block_of(self, x) -> int:
        return self.partition[x]

    def refine(self, key) -> int:
        """Split every block into sub-blocks of items with equal key(x).
        The first sub-block keeps the number of the old block, the others are
        appended. Keys of all items are computed before any block is changed,
        so key may look at the current block numbers. Returns the number of
        new blocks created."""
        keys = {x: key(x) for b in self.blocks for x in b}
        created = 0
        for i in range(len(self.blocks)):
            groups = {}
            for x in self.blocks[i]:
                groups.setdefault(keys[x], []).append(x)
            if len(groups) == 1:
                continue
            first, *rest = groups.values()
            self.blocks[i] = first
            for group in rest:
                self.blocks.append(group)
                for x in group:
                    self.partition[x] = len(self.blocks) - 1
                created += 1
        return created

    def refine_until_stable(self, key):
        while self.refine(key):
            pass
        return self

    def astuples(self):
        """Get current partitioning as a list of tuples."""
        return [tuple(b) for b in self.blocks]
