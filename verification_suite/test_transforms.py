"""Affine transform composition and the identity-body case."""
from __future__ import annotations

import math
import sys
from pathlib import Path

REPLAY_ROOT = Path(__file__).resolve().parents[1]
if str(REPLAY_ROOT) not in sys.path:
    sys.path.insert(0, str(REPLAY_ROOT))

import pytest

from scene_mechanics.entities import make_ball
from scene_mechanics.resolver import resolve
from scene_mechanics.scene import Scene
from scene_mechanics.transform import AffineTransform, Pose2D, append, make_transform


def test_unparented_body_resolves_to_its_own_pose() -> None:
    scene = Scene(name="identity")
    body = make_ball(1, 0.5, pose=Pose2D(2.0, -1.0, 0.7))
    scene.add_body(body)
    resolved = resolve(scene, body)
    assert resolved.is_close(make_transform(2.0, -1.0, 0.7))
    assert resolved.apply_to_point((1.0, 0.0)) == pytest.approx((2.0 + math.cos(0.7), -1.0 + math.sin(0.7)))


def test_append_applies_current_then_new() -> None:
    t1 = make_transform(1.0, 0.0, math.pi / 2)
    t2 = make_transform(0.0, 2.0, 0.0)
    combined = append(t1, t2)
    # Rotate (1, 0) to (0, 1), shift by (1, 0), then by (0, 2).
    assert combined.apply_to_point((1.0, 0.0)) == pytest.approx((1.0, 3.0))
    reversed_order = append(t2, t1)
    assert not combined.is_close(reversed_order)


def test_three_term_composition_matches_direct_application() -> None:
    t1 = make_transform(0.3, -0.2, 0.4)
    t2 = make_transform(-1.1, 0.5, -1.3)
    t3 = make_transform(2.0, 2.0, 2.2)
    chained = AffineTransform.identity().append(t1).append(t2).append(t3)
    point = (0.75, -1.25)
    direct = t3.apply_to_point(t2.apply_to_point(t1.apply_to_point(point)))
    assert chained.apply_to_point(point) == pytest.approx(direct, abs=1e-12)
    assert chained.angle == pytest.approx(0.4 - 1.3 + 2.2)


def test_as_pose_recovers_translation_and_angle() -> None:
    pose = make_transform(4.0, 5.0, -0.25).as_pose()
    assert pose.as_tuple() == pytest.approx((4.0, 5.0, -0.25))
    assert AffineTransform.from_pose(pose).is_close(make_transform(4.0, 5.0, -0.25))


def test_apply_to_vector_ignores_offset() -> None:
    transform = make_transform(10.0, 10.0, math.pi)
    assert transform.apply_to_vector((1.0, 0.0)) == pytest.approx((-1.0, 0.0), abs=1e-12)


def run() -> bool:
    checks = [
        test_unparented_body_resolves_to_its_own_pose,
        test_append_applies_current_then_new,
        test_three_term_composition_matches_direct_application,
        test_as_pose_recovers_translation_and_angle,
        test_apply_to_vector_ignores_offset,
    ]
    passed = True
    for check in checks:
        try:
            check()
        except AssertionError as exc:
            passed = False
            print(f"{check.__name__}: FAIL {exc}")
    print(f"Transform composition -> {'PASS' if passed else 'FAIL'}")
    return passed


if __name__ == "__main__":
    success = run()
    sys.exit(0 if success else 1)
