"""Route evaluation: turn a candidate destination into a measured route."""

from __future__ import annotations

from typing import Optional

from goalroute.domain.constants import LATERAL_WAYPOINT_KM, OVERLAP_REROUTE_THRESHOLD
from goalroute.domain.exceptions import CandidateRejected, ProviderRateLimited, RouteNotFound
from goalroute.domain.models import Candidate, Coordinates, GoalPlan, RouteEvaluation, RouteLeg
from goalroute.planner.geo import bearing, project
from goalroute.planner.overlap import path_overlap
from goalroute.planner.routing_provider import RoutingProvider
from goalroute.shared.exceptions import ProviderUnavailable
from goalroute.tools.interfaces import Found, NotFound, RateLimited


class RouteEvaluator:
    """Evaluates candidates against one plan.

    Instances are callable so they can be handed straight to ``search``.
    """

    def __init__(self, provider: RoutingProvider, plan: GoalPlan):
        self.provider = provider
        self.plan = plan

    def __call__(self, candidate: Candidate) -> RouteEvaluation:
        return self.evaluate(candidate)

    def evaluate(self, candidate: Candidate) -> RouteEvaluation:
        outbound = self._routes(candidate.origin, candidate.destination)[0]
        if not self.plan.goal.is_round_trip:
            return self._build(candidate, outbound)

        returns = self._routes(candidate.destination, candidate.origin, alternatives=True)
        overlaps = [path_overlap(leg.geometry, outbound.geometry) for leg in returns]
        if all(o > OVERLAP_REROUTE_THRESHOLD for o in overlaps):
            forced = self._waypoint_return(candidate)
            if forced is not None:
                returns.append(forced)
                overlaps.append(path_overlap(forced.geometry, outbound.geometry))

        # min() keeps the first of equal overlaps, i.e. provider order.
        best = min(range(len(returns)), key=lambda i: overlaps[i])
        return self._build(
            candidate,
            outbound,
            return_leg=returns[best],
            overlap=overlaps[best],
            considered=len(returns),
        )

    def _routes(self, origin: Coordinates, destination: Coordinates, *, alternatives: bool = False) -> list[RouteLeg]:
        response = self.provider.get_route(origin, destination, alternatives=alternatives)
        if isinstance(response, Found):
            return list(response.routes)
        if isinstance(response, NotFound):
            raise RouteNotFound(response.reason or "no route between points")
        if isinstance(response, RateLimited):
            raise ProviderRateLimited(f"rate limited (retry_after={response.retry_after_s})")
        raise ProviderUnavailable(response.detail or "routing provider error")

    def _waypoint_return(self, candidate: Candidate) -> Optional[RouteLeg]:
        """Route destination -> lateral waypoint -> origin, trying the right side first."""
        heading = bearing(candidate.origin, candidate.destination)
        for offset in (90.0, -90.0):
            waypoint = project(candidate.destination, LATERAL_WAYPOINT_KM, heading + offset)
            try:
                first = self._routes(candidate.destination, waypoint)[0]
                second = self._routes(waypoint, candidate.origin)[0]
            except CandidateRejected:
                continue
            return RouteLeg(
                distance_km=first.distance_km + second.distance_km,
                duration_sec=first.duration_sec + second.duration_sec,
                geometry=list(first.geometry) + list(second.geometry[1:]),
                waypoint=waypoint,
            )
        return None

    def _build(
        self,
        candidate: Candidate,
        outbound: RouteLeg,
        *,
        return_leg: Optional[RouteLeg] = None,
        overlap: Optional[float] = None,
        considered: int = 0,
    ) -> RouteEvaluation:
        total = outbound.distance_km + (return_leg.distance_km if return_leg else 0.0)
        return RouteEvaluation(
            candidate=candidate,
            outbound_leg=outbound,
            return_leg=return_leg,
            total_distance_km=total,
            abs_difference_km=abs(total - self.plan.target_distance_km),
            within_strict=self.plan.tolerance_band.contains(total),
            within_relaxed=self.plan.relaxed_band.contains(total),
            return_overlap=overlap,
            return_alternatives_considered=considered,
        )


__all__ = ["RouteEvaluator"]
