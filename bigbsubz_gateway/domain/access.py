"""Role-based route gating shared by the API guards and front-end session code"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from bigbsubz_gateway.domain.models import UserProfile, UserRole

ALL_ROLES = (UserRole.CUSTOMER, UserRole.ADMIN)
LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"
ADMIN_HOME = "/admin"
CUSTOMER_HOME = "/dashboard"


class RouteOutcome(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    ALLOW = "allow"


@dataclass(frozen=True)
class RouteDecision:
    outcome: RouteOutcome
    path: Optional[str] = None


def is_role_allowed(role: UserRole, allowed_roles: Iterable[UserRole] = ALL_ROLES) -> bool:
    return UserRole(role) in {UserRole(r) for r in allowed_roles}


def resolve_route(
    user: Optional[UserProfile],
    is_loading: bool,
    is_authenticated: bool,
    allowed_roles: Iterable[UserRole] = ALL_ROLES,
    redirect_path: str = LOGIN_PATH,
) -> RouteDecision:
    """
    Decide what a protected route renders.

    Loading wins over everything, an anonymous visitor goes to redirect_path,
    and a signed-in user whose role is not allowed goes to /unauthorized.
    """
    if is_loading:
        return RouteDecision(RouteOutcome.LOADING)

    if not is_authenticated:
        return RouteDecision(RouteOutcome.REDIRECT, redirect_path)

    if user is not None and not is_role_allowed(user.role, allowed_roles):
        return RouteDecision(RouteOutcome.REDIRECT, UNAUTHORIZED_PATH)

    return RouteDecision(RouteOutcome.ALLOW)


def landing_path(user: UserProfile) -> str:
    """Where the login page sends an already authenticated user"""
    return ADMIN_HOME if user.role == UserRole.ADMIN else CUSTOMER_HOME
