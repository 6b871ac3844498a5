"""Resolve body poses through the independent position and rotation chains.

Every body carries two parent links. Following ``xy_parent`` decides where a
body's origin sits; following ``theta_parent`` decides how much rotation it
inherits. The two chains may diverge, so each translational link contributes
its own angle plus what its rotation chain adds, minus what its position
chain already applied:

    theta_link(b) = b.theta + theta_to_ground(b.theta_parent)
                            - theta_to_ground(b.xy_parent)

The shape-to-ground transform starts from the body's constant shape offset and
appends one link per body on the ``xy_parent`` chain, innermost first.
"""
from __future__ import annotations

from typing import Dict, Optional

from .entities import Body
from .errors import CycleError
from .scene import Scene
from .transform import AffineTransform, make_transform


def theta_to_ground(scene: Scene, body: Optional[Body]) -> float:
    """Sum of ``theta`` along the ``theta_parent`` chain, starting at ``body``."""
    total = 0.0
    seen: list = []
    while body is not None:
        if body.id in seen:
            raise CycleError("theta_parent", seen[seen.index(body.id):] + [body.id])
        seen.append(body.id)
        total += body.theta
        body = scene.parent_of(body, "theta_parent")
    return total


def link_transform(scene: Scene, body: Body) -> AffineTransform:
    theta = (
        body.theta
        + theta_to_ground(scene, scene.parent_of(body, "theta_parent"))
        - theta_to_ground(scene, scene.parent_of(body, "xy_parent"))
    )
    return make_transform(body.x, body.y, theta)


def _walk_xy_chain(scene: Scene, body: Body, transform: AffineTransform) -> AffineTransform:
    seen: list = []
    current: Optional[Body] = body
    while current is not None:
        if current.id in seen:
            raise CycleError("xy_parent", seen[seen.index(current.id):] + [current.id])
        seen.append(current.id)
        transform = transform.append(link_transform(scene, current))
        current = scene.parent_of(current, "xy_parent")
    return transform


def body_to_ground(scene: Scene, body: Body) -> AffineTransform:
    """Transform from the body frame (its own x, y, theta) to the ground."""
    return _walk_xy_chain(scene, body, AffineTransform.identity())


def shape_to_ground(scene: Scene, body: Body) -> AffineTransform:
    """Transform from the shape frame, where geometry is defined, to the ground."""
    return _walk_xy_chain(scene, body, body.shape_offset)


def resolve(scene: Scene, body: Body) -> AffineTransform:
    body.shape_to_ground = shape_to_ground(scene, body)
    return body.shape_to_ground


def resolve_scene(scene: Scene) -> Dict[int, AffineTransform]:
    """Refresh ``shape_to_ground`` on every body and return them by id."""
    return {body.id: resolve(scene, body) for body in scene.iter_bodies()}


__all__ = [
    "theta_to_ground",
    "link_transform",
    "body_to_ground",
    "shape_to_ground",
    "resolve",
    "resolve_scene",
]
