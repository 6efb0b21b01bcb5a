# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Dict, Tuple
from unittest import TestCase

from .conditions import ConditionError
from .profile import NodeDecision, RestrictionDecision, SkeletonProfile, TravelMode, WayDecision


class TestSkeletonProfile(TestCase):
    def test_process_node(self) -> None:
        p = SkeletonProfile()
        self.assertEqual(p.process_node({}), NodeDecision())
        self.assertEqual(p.process_node({"barrier": "gate"}), NodeDecision(barrier=True))
        self.assertEqual(p.process_node({"barrier": "no"}), NodeDecision())
        self.assertEqual(
            p.process_node({"highway": "traffic_signals"}),
            NodeDecision(traffic_light=True),
        )

    def test_process_way(self) -> None:
        p = SkeletonProfile()
        self.assertEqual(
            p.process_way({"name": "Main Street", "turn:lanes": "left|through"}),
            WayDecision(
                forward_mode=TravelMode.DRIVING,
                backward_mode=TravelMode.DRIVING,
                forward_speed=50.0,
                backward_speed=50.0,
                name="Main Street",
                forward_turn_lanes="left|through",
            ),
        )

    def test_process_way_direction(self) -> None:
        p = SkeletonProfile(mode=TravelMode.WALKING, speed=5.0)

        def direction(tags: Dict[str, str]) -> Tuple[bool, bool]:
            d = p.process_way(tags)
            assert d is not None
            return d.forward, d.backward

        self.assertEqual(direction({}), (True, True))
        self.assertEqual(direction({"oneway": "yes"}), (True, False))
        self.assertEqual(direction({"oneway": "-1"}), (False, True))
        self.assertEqual(direction({"oneway": "no"}), (True, True))
        self.assertEqual(direction({"junction": "roundabout"}), (True, False))

    def test_process_way_lanes(self) -> None:
        d = SkeletonProfile().process_way(
            {"turn:lanes:forward": "left|right", "turn:lanes:backward": "through"}
        )
        assert d is not None
        self.assertEqual(d.forward_turn_lanes, "left|right")
        self.assertEqual(d.backward_turn_lanes, "through")

    def test_process_turn_restriction(self) -> None:
        p = SkeletonProfile()
        self.assertEqual(
            p.process_turn_restriction({"type": "restriction", "restriction": "no_left_turn"}),
            RestrictionDecision(is_only=False),
        )
        self.assertEqual(
            p.process_turn_restriction({"type": "restriction", "restriction": "only_right_turn"}),
            RestrictionDecision(is_only=True),
        )
        self.assertEqual(
            p.process_turn_restriction(
                {
                    "type": "restriction",
                    "restriction:conditional": "no_u_turn @ (Mo-Fr 07:00-09:00)",
                }
            ),
            RestrictionDecision(is_only=False, conditions="Mo-Fr 07:00-09:00"),
        )
        self.assertIsNone(p.process_turn_restriction({"restriction": "no_left_turn"}))
        self.assertIsNone(p.process_turn_restriction({"type": "restriction"}))
        self.assertIsNone(p.process_turn_restriction({}))

    def test_process_turn_restriction_invalid_conditional(self) -> None:
        with self.assertRaises(ConditionError):
            SkeletonProfile().process_turn_restriction(
                {"type": "restriction", "restriction:conditional": "no_u_turn"}
            )
