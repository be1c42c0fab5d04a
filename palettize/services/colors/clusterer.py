"""
Colors Clusterer

Groups perceptually similar colors into clusters led by their heaviest
member. This is the core of palette extraction:

1. single pass over the colors (heaviest first when fed by the limiter),
   joining each color to the first similar leader or starting a new cluster
2. leadership moves to a member whose own weight beats the leader's
3. fixed-point merge of clusters whose leaders became similar after a
   leadership change
4. optional top-N selection by cluster weight

Clusters live in an arena of records addressed by integer id; a separate
leader -> id index is rebuilt whenever leadership changes, so no mapping
is ever keyed by a color whose role is changing.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from loguru import logger

from palettize.config import PaletteSettings
from palettize.services.colors.color import Color, WeightedColor, weighted
from palettize.services.colors.color_space import get_distance_function

SimilarityTest = Callable[[Color, Color], bool]


@dataclass
class Cluster:
    """A leader color and the members it represents (leader included)."""
    leader: Color
    members: List[Color] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        return self.leader.percentage

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[Color]:
        return iter(self.members)

    def __contains__(self, color: object) -> bool:
        return any(member is color for member in self.members)


class ClusterSet(Mapping):
    """Read-only mapping of leader color to its Cluster."""

    def __init__(self, clusters: Iterable[Cluster] = ()):
        self._clusters: Dict[Color, Cluster] = {}
        for cluster in clusters:
            self._clusters[cluster.leader] = cluster

    def __getitem__(self, leader: Color) -> Cluster:
        return self._clusters[leader]

    def __iter__(self) -> Iterator[Color]:
        return iter(self._clusters)

    def __len__(self) -> int:
        return len(self._clusters)

    @property
    def leaders(self) -> List[Color]:
        return list(self._clusters)

    @property
    def total_percentage(self) -> float:
        return sum(leader.percentage for leader in self._clusters)

    def as_dict(self) -> Dict[Color, List[Color]]:
        """Plain ``{leader: [members]}`` view."""
        return {leader: list(cluster.members) for leader, cluster in self._clusters.items()}

    def __repr__(self) -> str:
        body = ", ".join(f"{leader!r}: {len(cluster)}" for leader, cluster in self._clusters.items())
        return f"ClusterSet({{{body}}})"


class _ClusterRecord:
    """Mutable arena entry; ``weights`` holds each member's own percentage."""

    __slots__ = ("cluster_id", "leader", "members", "weights", "total", "alive")

    def __init__(self, cluster_id: int, leader: Color):
        self.cluster_id = cluster_id
        self.leader = leader
        self.members: List[Color] = [leader]
        self.weights: Dict[Color, float] = {leader: leader.percentage}
        self.total = leader.percentage
        self.alive = True

    @property
    def leader_weight(self) -> float:
        return self.weights[self.leader]


class _ClusterArena:
    """Cluster records plus the leader -> record id index."""

    def __init__(self, similar: SimilarityTest):
        self._similar = similar
        self._records: List[_ClusterRecord] = []
        self._leader_index: Dict[Color, int] = {}

    def live_records(self) -> List[_ClusterRecord]:
        return [record for record in self._records if record.alive]

    def _rebuild_index(self) -> None:
        self._leader_index = {record.leader: record.cluster_id for record in self.live_records()}

    def find_similar(self, color: Color) -> Optional[_ClusterRecord]:
        """First live cluster, in creation order, whose leader is similar."""
        for leader, cluster_id in self._leader_index.items():
            if leader.transparency is not color.transparency:
                continue
            if self._similar(leader, color):
                return self._records[cluster_id]
        return None

    def create(self, color: Color) -> _ClusterRecord:
        record = _ClusterRecord(len(self._records), color)
        self._records.append(record)
        self._leader_index[color] = record.cluster_id
        return record

    def join(self, record: _ClusterRecord, color: Color) -> None:
        """Add a member; promote it when its own weight beats the leader's."""
        own = color.percentage
        record.members.append(color)
        record.weights[color] = own
        record.total += own

        if own > record.leader_weight:
            previous = record.leader
            previous.percentage = record.leader_weight
            record.leader = color
            self._rebuild_index()
            logger.debug(f"Cluster {record.cluster_id}: {color.hex} replaces {previous.hex} as leader")

        record.leader.percentage = record.total

    def merge_convergent(self) -> int:
        """
        Merge clusters whose leaders are similar until nothing changes.

        Returns:
            Number of merges performed
        """
        merges = 0
        changed = True
        while changed:
            changed = False
            live = self.live_records()
            for i, first in enumerate(live):
                for second in live[i + 1:]:
                    if first.leader.transparency is not second.leader.transparency:
                        continue
                    if self._similar(first.leader, second.leader):
                        self._merge(first, second)
                        merges += 1
                        changed = True
                        break
                if changed:
                    break
        return merges

    def _merge(self, first: _ClusterRecord, second: _ClusterRecord) -> None:
        # first was created earlier and wins ties
        if second.leader.percentage > first.leader.percentage:
            survivor, loser = second, first
        else:
            survivor, loser = first, second

        loser.leader.percentage = loser.leader_weight
        survivor.members.extend(loser.members)
        survivor.weights.update(loser.weights)
        survivor.total += loser.total
        survivor.leader.percentage = survivor.total
        loser.alive = False
        self._rebuild_index()

        logger.debug(f"Merged cluster {loser.cluster_id} ({loser.leader.hex}) "
                     f"into cluster {survivor.cluster_id} ({survivor.leader.hex})")

    def to_cluster_set(self) -> ClusterSet:
        clusters = []
        for record in self.live_records():
            # Leader carries the total, so it always sorts first
            members = sorted(record.members, key=lambda c: -c.percentage)
            clusters.append(Cluster(record.leader, members))
        return ClusterSet(clusters)


class ColorsClusterer:
    """Groups weighted colors into perceptual clusters."""

    def __init__(self, settings: Optional[PaletteSettings] = None):
        self.settings = settings if settings is not None else PaletteSettings()

    def _similarity_test(self, settings: PaletteSettings) -> SimilarityTest:
        distance = get_distance_function(settings.color_similarity_method)
        threshold = settings.color_similarity_threshold

        def similar(leader: Color, color: Color) -> bool:
            return leader.similar_to(color, threshold, distance)

        return similar

    def group(self, colors: Iterable[WeightedColor],
              settings: Optional[PaletteSettings] = None) -> ClusterSet:
        """
        Group colors into clusters.

        Colors are processed in the order supplied. Leader percentages are
        updated in place to the total weight of their cluster; no Color is
        created.

        Args:
            colors: Colors, or ``(Color, percentage)`` pairs
            settings: Overrides the clusterer's settings for this call

        Returns:
            ClusterSet in discovery order, members heaviest first
        """
        settings = settings if settings is not None else self.settings
        arena = _ClusterArena(self._similarity_test(settings))

        count = 0
        for color in weighted(colors):
            count += 1
            record = arena.find_similar(color)
            if record is None:
                arena.create(color)
            else:
                arena.join(record, color)

        merges = arena.merge_convergent()
        cluster_set = arena.to_cluster_set()

        logger.debug(f"Grouped {count} colors into {len(cluster_set)} clusters "
                     f"({merges} merges, method={settings.color_similarity_method}, "
                     f"threshold={settings.color_similarity_threshold})")
        return cluster_set

    __call__ = group

    def clusters(self, colors: Iterable[WeightedColor],
                 settings: Optional[PaletteSettings] = None) -> ClusterSet:
        """
        Group colors and keep the ``max_colors_count`` heaviest clusters.

        Dropped clusters are discarded outright; their members are not
        redistributed. The result is ordered by descending cluster weight,
        ties in discovery order.
        """
        settings = settings if settings is not None else self.settings
        cluster_set = self.group(colors, settings)

        ranked = sorted(cluster_set.values(), key=lambda cluster: -cluster.percentage)
        kept = ranked[:settings.max_colors_count]
        if len(kept) < len(ranked):
            logger.debug(f"Kept {len(kept)} of {len(ranked)} clusters "
                         f"(max_colors_count={settings.max_colors_count})")
        return ClusterSet(kept)

    @staticmethod
    def reversed_clusters(cluster_set: Mapping) -> Dict[Color, Color]:
        """Map every member color, leaders included, to its cluster's leader."""
        reverse_index: Dict[Color, Color] = {}
        for leader, members in cluster_set.items():
            for member in members:
                reverse_index[member] = leader
            reverse_index[leader] = leader
        return reverse_index
