"""
Blend weights and bone slot packing.

A skinning shader can only address a small fixed palette of bone matrices
per draw call. Every mesh part therefore gets one or more BoneSlotSets: fixed
size palettes holding the bones its polygons use. A polygon is drawn with a
single palette, so all bones of all its corners must be in the same set.
"""

EMPTY = -1


class BlendWeight:
    """Influence of one bone (skin cluster index) on a control point."""

    __slots__ = ("bone", "weight")

    def __init__(self, bone, weight):
        self.bone = bone
        self.weight = weight

    def __eq__(self, other):
        return isinstance(other, BlendWeight) and self.bone == other.bone and self.weight == other.weight

    def __repr__(self):
        return f"BlendWeight(bone={self.bone}, weight={self.weight:.4f})"


# ============================================================
# Per control point weights
# ============================================================

def compute_point_blend_weights(clusters, point_count, max_weights):
    """Gather, sort, truncate and normalize the weights of every control point.

    Returns (weights, zero_weight_points) where weights[point] is a list of
    BlendWeight sorted by weight descending, at most max_weights long and
    summing to 1, and zero_weight_points lists the control points left
    without any influence.
    """
    weights = [[] for _ in range(point_count)]
    for bone, cluster in enumerate(clusters):
        for point, w in zip(cluster.indices, cluster.weights):
            if point < 0 or point >= point_count or w <= 0.0:
                continue
            weights[point].append(BlendWeight(bone, float(w)))

    zero_weight_points = []
    for point in range(point_count):
        # Stable: equal weights keep cluster order
        bones = sorted(weights[point], key=lambda bw: -bw.weight)[:max_weights]
        total = sum(bw.weight for bw in bones)
        if total == 0.0:
            zero_weight_points.append(point)
            bones = []
        else:
            for bw in bones:
                bw.weight /= total
        weights[point] = bones
    return weights, zero_weight_points


def blend_weight_count(point_weights, max_weights, force_max):
    count = 0
    for bones in point_weights:
        if len(bones) > count:
            count = len(bones)
    if count > 0 and force_max:
        count = max_weights
    return count


def _bone_id(item):
    return item.bone if isinstance(item, BlendWeight) else item


def distinct_bones(demand):
    """Distinct bone ids of a polygon demand, in encounter order.

    demand is an iterable (one entry per corner) of iterables of bone ids or
    BlendWeights.
    """
    seen = {}
    for corner in demand:
        for item in corner:
            seen.setdefault(_bone_id(item), None)
    return list(seen)


# ============================================================
# Bone slots
# ============================================================

class BoneSlotSet:
    """Fixed capacity palette of bone ids. A bone never changes slot."""

    def __init__(self, capacity):
        self.capacity = capacity
        self._slots = [EMPTY] * capacity
        self._lookup = {}

    def size(self):
        return len(self._lookup)

    def available(self):
        return self.capacity - len(self._lookup)

    def has(self, bone):
        return bone in self._lookup

    def index_of(self, bone):
        """Slot of `bone`, or None if it is not in this set."""
        return self._lookup.get(bone)

    def bones(self):
        return self._slots[:len(self._lookup)]

    def missing(self, demand):
        return [b for b in distinct_bones(demand) if b not in self._lookup]

    def cost(self, demand):
        """Number of new slots `demand` would take, or None if it does not fit."""
        n = len(self.missing(demand))
        if n > self.available():
            return None
        return n

    def _insert(self, bone):
        slot = len(self._lookup)
        self._slots[slot] = bone
        self._lookup[bone] = slot
        return slot

    def add(self, demand):
        """Insert all bones of `demand`; all or nothing."""
        missing = self.missing(demand)
        if len(missing) > self.available():
            return False
        for bone in missing:
            self._insert(bone)
        return True

    def fill(self, demand):
        """Insert as many bones of `demand` as still fit, returns the count added."""
        added = 0
        for bone in self.missing(demand):
            if self.available() == 0:
                break
            self._insert(bone)
            added += 1
        return added

    def __getitem__(self, slot):
        return self._slots[slot] if 0 <= slot < self.capacity else EMPTY

    def __len__(self):
        return self.size()

    def __repr__(self):
        return f"BoneSlotSet({self.bones()}, capacity={self.capacity})"


class BoneSlotAllocator:
    """Ordered, growable list of BoneSlotSets for one mesh part.

    Each polygon goes to the existing set that needs the fewest new slots
    (first one on ties); a new set is opened when none can take it. Greedy
    in polygon order, earlier placements are never revisited.
    """

    def __init__(self, capacity):
        self.capacity = capacity
        self.slot_sets = []
        self.bones_overflow = False
        self.last_overflow = False

    def place(self, demand):
        """Assign a polygon's bone demand to a slot set, returns its index."""
        self.last_overflow = False
        best, best_cost = None, None
        for i, slot_set in enumerate(self.slot_sets):
            c = slot_set.cost(demand)
            if c is not None and (best_cost is None or c < best_cost):
                best, best_cost = i, c
                if c == 0:
                    break
        if best is None:
            self.slot_sets.append(BoneSlotSet(self.capacity))
            best = len(self.slot_sets) - 1
        if not self.slot_sets[best].add(demand):
            # More distinct bones than one set can hold: keep what fits
            self.slot_sets[best].fill(demand)
            self.last_overflow = True
            self.bones_overflow = True
        return best

    def __len__(self):
        return len(self.slot_sets)

    def __getitem__(self, index):
        return self.slot_sets[index]

    def __iter__(self):
        return iter(self.slot_sets)

    def __repr__(self):
        return f"BoneSlotAllocator(capacity={self.capacity}, sets={len(self.slot_sets)})"
