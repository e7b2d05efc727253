"""Unit tests for route gating"""

from decimal import Decimal
from bigbsubz_gateway.domain.access import (
    RouteDecision,
    RouteOutcome,
    landing_path,
    resolve_route,
)
from bigbsubz_gateway.domain.models import UserProfile, UserRole


def make_user(role: UserRole) -> UserProfile:
    return UserProfile(id="u1", name="Test", role=role, balance=Decimal("0"))


def test_loading_takes_precedence():
    decision = resolve_route(None, is_loading=True, is_authenticated=False)
    assert decision == RouteDecision(RouteOutcome.LOADING)


def test_anonymous_redirects_to_login():
    decision = resolve_route(None, is_loading=False, is_authenticated=False)
    assert decision == RouteDecision(RouteOutcome.REDIRECT, "/login")


def test_custom_redirect_path():
    decision = resolve_route(None, is_loading=False, is_authenticated=False, redirect_path="/signin")
    assert decision.path == "/signin"


def test_default_roles_admit_everyone():
    for role in UserRole:
        decision = resolve_route(make_user(role), is_loading=False, is_authenticated=True)
        assert decision.outcome == RouteOutcome.ALLOW


def test_customer_blocked_from_admin_route():
    decision = resolve_route(
        make_user(UserRole.CUSTOMER),
        is_loading=False,
        is_authenticated=True,
        allowed_roles=[UserRole.ADMIN],
    )
    assert decision == RouteDecision(RouteOutcome.REDIRECT, "/unauthorized")


def test_roles_accept_plain_strings():
    decision = resolve_route(
        make_user(UserRole.ADMIN),
        is_loading=False,
        is_authenticated=True,
        allowed_roles=["admin"],
    )
    assert decision.outcome == RouteOutcome.ALLOW


def test_landing_path_by_role():
    assert landing_path(make_user(UserRole.ADMIN)) == "/admin"
    assert landing_path(make_user(UserRole.CUSTOMER)) == "/dashboard"
