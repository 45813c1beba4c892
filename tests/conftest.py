"""Shared test fixtures."""

import pytest

from command_binder.core.identity import Claim, Principal


@pytest.fixture
def anonymous():
    """A caller with no identity."""
    return Principal.anonymous()


@pytest.fixture
def administrator():
    """An authenticated caller in the Administrator role with a test claim."""
    return Principal.authenticated(
        "OnlyTestAndSetIsAuthenticatedToTrue",
        name="alice",
        roles=["Administrator"],
        claims=[Claim("Test.Claim", "")],
    )


@pytest.fixture
def reporter():
    """An authenticated caller carrying the reporting department claim."""
    return Principal.authenticated(
        "OnlyTestAndSetIsAuthenticatedToTrue",
        name="bob",
        claims=[Claim("department", "reporting")],
    )
