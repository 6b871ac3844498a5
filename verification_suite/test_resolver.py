"""Resolution through the independent xy and theta parent chains."""
from __future__ import annotations

import math
import sys
from pathlib import Path

REPLAY_ROOT = Path(__file__).resolve().parents[1]
if str(REPLAY_ROOT) not in sys.path:
    sys.path.insert(0, str(REPLAY_ROOT))

import pytest

from replay_core.persistence import build_scene, scene_config_from_string
from scene_mechanics.entities import make_ball, make_block
from scene_mechanics.errors import ConfigParseError, CycleError
from scene_mechanics.resolver import body_to_ground, resolve_scene, shape_to_ground, theta_to_ground
from scene_mechanics.scene import Scene
from scene_mechanics.transform import Pose2D


def _world(scene: Scene, body_id: int):
    return scene.get_body(body_id).shape_to_ground.as_pose()


def test_child_inherits_parent_translation() -> None:
    scene = Scene(name="parented")
    scene.add_body(make_ball(1, 0.1, pose=Pose2D(1.0, 0.0, 0.0)))
    scene.add_body(make_ball(2, 0.1, pose=Pose2D(0.0, 1.0, 0.0), xy_parent_id=1))
    scene.validate()
    resolve_scene(scene)
    pose = _world(scene, 2)
    assert (pose.x, pose.y) == pytest.approx((1.0, 1.0))


def test_xy_parent_rotation_moves_child_without_turning_it() -> None:
    scene = Scene(name="diverging")
    scene.add_body(make_ball(1, 0.1, pose=Pose2D(0.0, 0.0, math.pi / 2)))
    scene.add_body(make_ball(2, 0.1, pose=Pose2D(1.0, 0.0, 0.0), xy_parent_id=1))
    resolve_scene(scene)
    pose = _world(scene, 2)
    assert (pose.x, pose.y) == pytest.approx((0.0, 1.0), abs=1e-12)
    assert pose.theta == pytest.approx(0.0, abs=1e-12)


def test_theta_parent_only_adds_rotation() -> None:
    scene = Scene(name="theta_only")
    scene.add_body(make_ball(1, 0.1, pose=Pose2D(5.0, 5.0, 0.5)))
    scene.add_body(make_ball(2, 0.1, pose=Pose2D(3.0, 4.0, 0.25), theta_parent_id=1))
    resolve_scene(scene)
    pose = _world(scene, 2)
    assert pose.as_tuple() == pytest.approx((3.0, 4.0, 0.75))
    assert theta_to_ground(scene, scene.get_body(2)) == pytest.approx(0.75)


def test_shared_parent_for_both_chains_composes_rigidly() -> None:
    scene = Scene(name="rigid")
    scene.add_body(make_ball(1, 0.1, pose=Pose2D(1.0, 2.0, math.pi / 2)))
    scene.add_body(make_ball(2, 0.1, pose=Pose2D(2.0, 0.0, 0.3), xy_parent_id=1, theta_parent_id=1))
    resolve_scene(scene)
    pose = _world(scene, 2)
    assert pose.as_tuple() == pytest.approx((1.0, 4.0, math.pi / 2 + 0.3), abs=1e-12)


def test_shape_offset_applies_before_body_pose() -> None:
    scene = Scene(name="offset")
    arm = make_block(
        1,
        2.0,
        0.2,
        pose=Pose2D(0.0, 0.0, math.pi / 2),
        shape_offset=Pose2D(1.0, 0.0, 0.0),
    )
    scene.add_body(arm)
    shape_pose = shape_to_ground(scene, arm).as_pose()
    frame_pose = body_to_ground(scene, arm).as_pose()
    assert (shape_pose.x, shape_pose.y) == pytest.approx((0.0, 1.0), abs=1e-12)
    assert (frame_pose.x, frame_pose.y) == pytest.approx((0.0, 0.0), abs=1e-12)


def test_resolve_scene_reports_every_body() -> None:
    scene = Scene(name="all")
    for body_id in (1, 2, 3):
        scene.add_body(make_ball(body_id, 0.1, pose=Pose2D(float(body_id), 0.0, 0.0)))
    resolved = resolve_scene(scene)
    assert sorted(resolved) == [1, 2, 3]
    assert resolved[3].offset == pytest.approx((3.0, 0.0))


def test_validate_rejects_xy_cycle() -> None:
    scene = Scene(name="cycle")
    scene.add_body(make_ball(1, 0.1, xy_parent_id=2))
    scene.add_body(make_ball(2, 0.1, xy_parent_id=1))
    with pytest.raises(CycleError) as info:
        scene.validate()
    assert info.value.relation == "xy_parent"
    assert set(info.value.cycle) == {1, 2}


def test_validate_rejects_theta_cycle() -> None:
    scene = Scene(name="theta_cycle")
    scene.add_body(make_ball(1, 0.1, theta_parent_id=3))
    scene.add_body(make_ball(2, 0.1, theta_parent_id=1))
    scene.add_body(make_ball(3, 0.1, theta_parent_id=2))
    with pytest.raises(CycleError) as info:
        scene.validate()
    assert info.value.relation == "theta_parent"


def test_resolver_stops_on_unvalidated_cycle() -> None:
    scene = Scene(name="unchecked")
    scene.add_body(make_ball(1, 0.1, xy_parent_id=2))
    scene.add_body(make_ball(2, 0.1, xy_parent_id=1))
    with pytest.raises(CycleError):
        resolve_scene(scene)


def test_validate_rejects_unknown_parent() -> None:
    scene = Scene(name="dangling")
    scene.add_body(make_ball(1, 0.1, theta_parent_id=9))
    with pytest.raises(ConfigParseError):
        scene.validate()


def test_self_parent_in_document_is_a_cycle() -> None:
    config = scene_config_from_string('<scene><ball id="1" radius="1" xy_parent_id="1"/></scene>')
    with pytest.raises(CycleError) as info:
        build_scene(config)
    assert info.value.cycle == (1, 1)
