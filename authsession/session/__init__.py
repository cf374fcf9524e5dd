"""Session state and navigation guarding."""

from .route_guard import NavigationDecision, RouteGuard, RouteMeta
from .state_machine import SessionStateMachine

__all__ = ["NavigationDecision", "RouteGuard", "RouteMeta", "SessionStateMachine"]
