"""Scene container: body table, connectors, grounds, and the global clock."""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Dict, Iterator, List, Optional

from .entities import GROUND_ID, Body, Connector, Ground
from .errors import ConfigParseError, CycleError, ResourceLimitError

logger = logging.getLogger(__name__)

PARENT_RELATIONS = ("xy_parent", "theta_parent")


@dataclass(frozen=True)
class SceneBounds:
    """User-space rectangle that the viewer keeps in view."""

    x_min: float = -10.0
    x_max: float = 10.0
    y_min: float = -10.0
    y_max: float = 10.0

    def __post_init__(self) -> None:
        if not (self.x_max > self.x_min and self.y_max > self.y_min):
            raise ValueError(
                f"Viewport bounds must be non-empty, got x=[{self.x_min}, {self.x_max}] "
                f"y=[{self.y_min}, {self.y_max}]"
            )

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def center(self):
        return (0.5 * (self.x_min + self.x_max), 0.5 * (self.y_min + self.y_max))


@dataclass(frozen=True)
class SceneLimits:
    max_bodies: int = 1024
    max_connectors: int = 1024
    max_grounds: int = 1024
    max_input_entries: int = 1024


class Scene:
    """Owns the bodies of one replay plus the clock the data drives."""

    def __init__(
        self,
        *,
        name: str = "scene",
        bounds: Optional[SceneBounds] = None,
        limits: Optional[SceneLimits] = None,
    ) -> None:
        self.name = name
        self.bounds = bounds or SceneBounds()
        self.limits = limits or SceneLimits()
        self.time: float = 0.0
        self._bodies: Dict[int, Body] = {}
        self.connectors: List[Connector] = []
        self.grounds: List[Ground] = []

    # --- Bodies ----------------------------------------------------------
    def add_body(self, body: Body) -> None:
        if body.id == GROUND_ID:
            raise ConfigParseError("Body id 0 is reserved for the ground")
        if body.id in self._bodies:
            raise ConfigParseError(f"Duplicate body id {body.id} in scene {self.name}")
        if len(self._bodies) >= self.limits.max_bodies:
            raise ResourceLimitError(f"Scene {self.name} exceeds {self.limits.max_bodies} bodies")
        self._bodies[body.id] = body

    def get_body(self, body_id: int) -> Body:
        return self._bodies[body_id]

    def has_body(self, body_id: int) -> bool:
        return body_id in self._bodies

    def parent_of(self, body: Body, relation: str) -> Optional[Body]:
        parent_id = body.xy_parent_id if relation == "xy_parent" else body.theta_parent_id
        if parent_id == GROUND_ID:
            return None
        parent = self._bodies.get(parent_id)
        assert parent is not None, f"body {body.id} has dangling {relation} {parent_id}"
        return parent

    def iter_bodies(self) -> Iterator[Body]:
        return iter(self._bodies.values())

    @property
    def bodies(self) -> List[Body]:
        return list(self._bodies.values())

    # --- Connectors and grounds ------------------------------------------
    def add_connector(self, connector: Connector) -> None:
        if len(self.connectors) >= self.limits.max_connectors:
            raise ResourceLimitError(
                f"Scene {self.name} exceeds {self.limits.max_connectors} connectors"
            )
        for attach in (connector.first, connector.second):
            if attach.body_id != GROUND_ID and attach.body_id not in self._bodies:
                raise ConfigParseError(f"Connector attaches to unknown body id {attach.body_id}")
        self.connectors.append(connector)

    def add_ground(self, ground: Ground) -> None:
        if len(self.grounds) >= self.limits.max_grounds:
            raise ResourceLimitError(f"Scene {self.name} exceeds {self.limits.max_grounds} grounds")
        self.grounds.append(ground)

    # --- Validation -------------------------------------------------------
    def validate(self) -> None:
        """Check that every parent link resolves and neither relation loops."""
        for body in self._bodies.values():
            for relation in PARENT_RELATIONS:
                parent_id = body.xy_parent_id if relation == "xy_parent" else body.theta_parent_id
                if parent_id != GROUND_ID and parent_id not in self._bodies:
                    raise ConfigParseError(
                        f"Body {body.id} names unknown {relation} id {parent_id}"
                    )
        for relation in PARENT_RELATIONS:
            self._check_acyclic(relation)
        logger.debug("Scene %s validated: %d bodies", self.name, len(self._bodies))

    def _check_acyclic(self, relation: str) -> None:
        done: set = set()
        for start in self._bodies.values():
            if start.id in done:
                continue
            path: List[int] = []
            on_path: Dict[int, int] = {}
            body: Optional[Body] = start
            while body is not None and body.id not in done:
                if body.id in on_path:
                    cycle = path[on_path[body.id]:] + [body.id]
                    raise CycleError(relation, cycle)
                on_path[body.id] = len(path)
                path.append(body.id)
                body = self.parent_of(body, relation)
            done.update(path)

    # --- Reporting --------------------------------------------------------
    def summary(self) -> str:
        return (
            f"Scene(name={self.name}, time={self.time:.3f}, bodies={len(self._bodies)}, "
            f"connectors={len(self.connectors)}, grounds={len(self.grounds)})"
        )

    def snapshot_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "time": self.time,
            "bodies": [body.as_dict() for body in self._bodies.values()],
        }

    def __len__(self) -> int:
        return len(self._bodies)

    def __iter__(self) -> Iterator[Body]:
        return self.iter_bodies()


__all__ = ["Scene", "SceneBounds", "SceneLimits", "PARENT_RELATIONS"]
