# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Iterable, List
from unittest import TestCase

from ..storage import StorageConfig
from .conditions import parse_opening_hours
from .containers import ExtractionContainers, ExtractionResult
from .edges import Edge, EdgeAttributes
from .features import Feature, Node, Relation, RelationMember, Way
from .nodes import QueryNode
from .profile import SkeletonProfile, TravelMode
from .restriction import NodeRestriction, TurnRestriction, WayRestriction

CAR = EdgeAttributes(TravelMode.DRIVING, 50.0, bidirectional=True)
CAR_ONEWAY = EdgeAttributes(TravelMode.DRIVING, 50.0)


def node_restriction(
    relation_id: int,
    from_way: int,
    via_node: int,
    to_way: int,
    restriction: str = "no_left_turn",
) -> Relation:
    return Relation(
        relation_id,
        [
            RelationMember("way", from_way, "from"),
            RelationMember("node", via_node, "via"),
            RelationMember("way", to_way, "to"),
        ],
        {"type": "restriction", "restriction": restriction},
    )


# 500 ──(way 1)── 17 ──(way 2)── 900000
SIMPLE_NODES: List[Feature] = [
    Node(500, (52.0, 21.0)),
    Node(17, (52.1, 21.0)),
    Node(900000, (52.2, 21.0), {"barrier": "gate"}),
]
SIMPLE_WAYS: List[Feature] = [Way(1, [500, 17]), Way(2, [17, 900000])]


class TestExtractionContainers(TestCase):
    storage = StorageConfig()

    def extract(self, features: Iterable[Feature], workers: int = 1) -> ExtractionResult:
        c = ExtractionContainers.from_features(SkeletonProfile(), features, self.storage)
        self.addCleanup(c.close)
        result = c.prepare(workers)
        self.addCleanup(result.close)
        return result

    def test_node_restriction(self) -> None:
        result = self.extract(
            SIMPLE_NODES + SIMPLE_WAYS + [node_restriction(10, from_way=1, via_node=17, to_way=2)]
        )

        self.assertListEqual(
            list(result.nodes),
            [
                QueryNode(500, (52.0, 21.0)),
                QueryNode(17, (52.1, 21.0)),
                QueryNode(900000, (52.2, 21.0), barrier=True),
            ],
        )
        self.assertListEqual(
            list(result.edges),
            [Edge(0, 1, 0, CAR), Edge(1, 0, 0, CAR), Edge(1, 2, 1, CAR), Edge(2, 1, 1, CAR)],
        )
        self.assertListEqual(list(result.restrictions), [TurnRestriction(NodeRestriction(0, 1, 2))])

        self.assertEqual(result.stats.nodes, 3)
        self.assertEqual(result.stats.edges, 4)
        self.assertEqual(result.stats.restrictions, 1)
        self.assertEqual(result.stats.conditional_restrictions, 0)
        self.assertFalse(any(result.stats.drop_counts().values()))

    def test_node_restriction_via_mismatch(self) -> None:
        with self.assertLogs("pyroutextract.extractor.resolver", "WARNING"):
            result = self.extract(
                SIMPLE_NODES
                + SIMPLE_WAYS
                + [Node(999, (52.3, 21.0)), node_restriction(10, 1, 999, 2)]
            )

        self.assertEqual(len(result.restrictions), 0)
        self.assertEqual(result.stats.restrictions, 0)
        self.assertEqual(result.stats.malformed_restrictions, 1)

    def test_node_restriction_unknown_way(self) -> None:
        result = self.extract(SIMPLE_NODES + SIMPLE_WAYS + [node_restriction(10, 1, 17, 3)])

        self.assertEqual(len(result.restrictions), 0)
        self.assertEqual(result.stats.dangling_restrictions, 1)
        self.assertEqual(result.stats.malformed_restrictions, 0)

    def test_conditional_restriction(self) -> None:
        result = self.extract(
            SIMPLE_NODES
            + SIMPLE_WAYS
            + [
                Relation(
                    10,
                    [
                        RelationMember("way", 1, "from"),
                        RelationMember("node", 17, "via"),
                        RelationMember("way", 2, "to"),
                    ],
                    {
                        "type": "restriction",
                        "restriction:conditional": "only_straight_on @ (Mo-Fr 07:00-09:00)",
                    },
                ),
            ]
        )

        self.assertListEqual(
            list(result.restrictions),
            [
                TurnRestriction(
                    NodeRestriction(0, 1, 2),
                    is_only=True,
                    conditions=parse_opening_hours("Mo-Fr 07:00-09:00"),
                ),
            ],
        )
        self.assertEqual(result.stats.conditional_restrictions, 1)

    def test_way_restriction(self) -> None:
        # 10 ──(way 1)── 5 ──(way 2)── 9 ──(way 3)── 20
        result = self.extract(
            [
                Node(10, (0.0, 0.0)),
                Node(5, (0.0, 0.1)),
                Node(9, (0.0, 0.2)),
                Node(20, (0.0, 0.3)),
                Way(1, [10, 5]),
                Way(2, [5, 9]),
                Way(3, [9, 20]),
                Relation(
                    100,
                    [
                        RelationMember("way", 1, "from"),
                        RelationMember("way", 2, "via"),
                        RelationMember("way", 3, "to"),
                    ],
                    {"type": "restriction", "restriction": "no_straight_on"},
                ),
            ]
        )

        self.assertListEqual(
            list(result.restrictions),
            [
                TurnRestriction(
                    WayRestriction(
                        in_restriction=NodeRestriction(0, 1, 2),
                        out_restriction=NodeRestriction(1, 2, 3),
                    )
                ),
            ],
        )

    def test_dangling_edge(self) -> None:
        result = self.extract(
            SIMPLE_NODES + SIMPLE_WAYS + [Way(3, [900000, 42], {"oneway": "yes"})],
        )

        self.assertListEqual([n.external_id for n in result.nodes], [500, 17, 900000])
        self.assertListEqual(
            list(result.edges),
            [Edge(0, 1, 0, CAR), Edge(1, 0, 0, CAR), Edge(1, 2, 1, CAR), Edge(2, 1, 1, CAR)],
        )
        self.assertEqual(result.stats.missing_nodes, 1)
        self.assertEqual(result.stats.dangling_edges, 1)

    def test_edge_to_missing_node(self) -> None:
        result = self.extract(
            [
                Node(500, (52.0, 21.0)),
                Node(17, (52.1, 21.0)),
                Node(900, (52.2, 21.0)),
                Way(1, [500, 42]),
                Way(2, [17, 900]),
            ]
        )

        self.assertListEqual([n.external_id for n in result.nodes], [17, 900])
        self.assertListEqual(list(result.edges), [Edge(0, 1, 1, CAR), Edge(1, 0, 1, CAR)])
        self.assertEqual(result.stats.missing_nodes, 1)
        self.assertEqual(result.stats.dangling_edges, 2)

    def test_missing_node_inside_way(self) -> None:
        result = self.extract(SIMPLE_NODES + [Way(1, [500, 42, 17]), Way(2, [17, 900000])])

        self.assertListEqual([n.external_id for n in result.nodes], [17, 900000])
        self.assertListEqual(list(result.edges), [Edge(0, 1, 1, CAR), Edge(1, 0, 1, CAR)])
        self.assertEqual(result.stats.missing_nodes, 1)
        self.assertEqual(result.stats.dangling_edges, 4)

    def test_every_node_has_an_edge(self) -> None:
        result = self.extract(
            SIMPLE_NODES
            + SIMPLE_WAYS
            + [Node(1, (0.0, 0.0)), Way(3, [1, 42], {"oneway": "yes"}), Way(4, [43, 500])]
        )

        endpoints = {e.source for e in result.edges} | {e.target for e in result.edges}
        self.assertSetEqual(endpoints, set(range(len(result.nodes))))
        self.assertListEqual([n.external_id for n in result.nodes], [500, 17, 900000])
        self.assertEqual(result.stats.missing_nodes, 2)

    def test_remapper_matches_nodes(self) -> None:
        c = ExtractionContainers.from_features(
            SkeletonProfile(),
            SIMPLE_NODES + SIMPLE_WAYS,
            self.storage,
        )
        self.addCleanup(c.close)
        result = c.prepare()
        self.addCleanup(result.close)

        self.assertListEqual(
            list(c.remapper.items()),
            [(node.external_id, idx) for idx, node in enumerate(result.nodes)],
        )
        self.assertEqual(c.remapper.external_id(2), 900000)

    def test_duplicate_edges(self) -> None:
        result = self.extract(
            SIMPLE_NODES
            + [
                Way(1, [500, 17], {"oneway": "yes"}),
                Way(2, [500, 17], {"oneway": "yes"}),
                Way(3, [500, 17], {"oneway": "yes", "name": "Parallel Street"}),
            ]
        )

        self.assertEqual(len(result.edges), 2)
        self.assertEqual(result.stats.duplicate_edges, 1)
        first, second = result.edges
        self.assertEqual(first, Edge(0, 1, 0, CAR_ONEWAY))
        self.assertEqual(result.names.get(second.attributes.name), "Parallel Street")

    def test_duplicate_node_records(self) -> None:
        result = self.extract(
            [
                Node(1, (10.0, 10.0)),
                Node(2, (20.0, 20.0)),
                Node(1, (30.0, 30.0)),
                Way(1, [1, 2]),
            ]
        )

        self.assertListEqual(
            list(result.nodes),
            [QueryNode(1, (10.0, 10.0)), QueryNode(2, (20.0, 20.0))],
        )

    def test_unused_nodes(self) -> None:
        result = self.extract(SIMPLE_NODES + [Node(1, (0.0, 0.0)), Way(1, [500, 17])])

        self.assertListEqual([n.external_id for n in result.nodes], [500, 17])
        self.assertEqual(result.stats.missing_nodes, 0)

    def test_order_independence(self) -> None:
        restrictions: List[Feature] = [
            node_restriction(10, 1, 17, 2),
            node_restriction(11, 2, 17, 1, "no_u_turn"),
            node_restriction(12, 1, 17, 1, "no_u_turn"),
        ]
        expected = self.extract(SIMPLE_NODES + SIMPLE_WAYS + restrictions)

        for workers in (1, 4):
            with self.subTest(workers=workers):
                got = self.extract(
                    list(reversed(restrictions))
                    + list(reversed(SIMPLE_NODES))
                    + SIMPLE_WAYS,
                    workers,
                )

                self.assertListEqual(list(got.nodes), list(expected.nodes))
                self.assertListEqual(list(got.edges), list(expected.edges))
                self.assertListEqual(list(got.restrictions), list(expected.restrictions))

        self.assertListEqual(
            list(expected.restrictions),
            [
                TurnRestriction(NodeRestriction(0, 1, 0)),
                TurnRestriction(NodeRestriction(0, 1, 2)),
                TurnRestriction(NodeRestriction(2, 1, 0)),
            ],
        )


class TestExtractionContainersSpilling(TestExtractionContainers):
    storage = StorageConfig(backend="spill", spill_threshold=2)
