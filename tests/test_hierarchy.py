"""
Unit tests for the issuance hierarchy policy.
"""

import pytest

from nkjwt import IssuancePolicy, Tier, config, default_policy
from nkjwt.errors import IssuerHierarchyViolation


class TestStrictPolicy:
    """The default three-tier chain."""

    @pytest.mark.parametrize(
        "subject,issuer",
        [(Tier.TOP, Tier.TOP), (Tier.ORG, Tier.TOP), (Tier.USER, Tier.ORG)],
    )
    def test_allowed(self, subject, issuer):
        IssuancePolicy.strict().validate(subject, issuer)

    @pytest.mark.parametrize(
        "subject,issuer",
        [
            (Tier.TOP, Tier.ORG),
            (Tier.TOP, Tier.USER),
            (Tier.ORG, Tier.ORG),
            (Tier.ORG, Tier.USER),
            (Tier.USER, Tier.USER),
            (Tier.USER, Tier.TOP),
            (Tier.UNKNOWN, Tier.TOP),
            (Tier.ORG, Tier.UNKNOWN),
        ],
    )
    def test_rejected(self, subject, issuer):
        with pytest.raises(IssuerHierarchyViolation) as exc_info:
            IssuancePolicy.strict().validate(subject, issuer)
        assert exc_info.value.subject_tier == subject
        assert exc_info.value.issuer_tier == issuer
        assert exc_info.value.field == "iss"

    def test_message_names_both_tiers(self):
        with pytest.raises(IssuerHierarchyViolation, match="user issuer cannot issue account claims"):
            IssuancePolicy.strict().validate(Tier.ORG, Tier.USER)


class TestOperatorIssuedUsers:
    """
    Whether an operator may sign user claims directly differs between
    deployments. Strict is the default; the exception must be opted into.
    """

    def test_strict_rejects(self):
        assert not IssuancePolicy.strict().permits(Tier.USER, Tier.TOP)

    def test_permissive_allows(self):
        policy = IssuancePolicy.permissive()
        policy.validate(Tier.USER, Tier.TOP)
        policy.validate(Tier.USER, Tier.ORG)

    def test_allow_returns_new_policy(self):
        strict = IssuancePolicy.strict()
        extended = strict.allow(Tier.USER, Tier.TOP)
        assert extended == IssuancePolicy.permissive()
        assert not strict.permits(Tier.USER, Tier.TOP)

    def test_default_policy_strict(self):
        assert default_policy() == IssuancePolicy.strict()

    def test_default_policy_from_config(self, monkeypatch):
        monkeypatch.setattr(config, "ALLOW_TOP_USER_ISSUANCE", True)
        assert default_policy() == IssuancePolicy.permissive()


def test_rules_are_copies():
    policy = IssuancePolicy.strict()
    rules = policy.rules
    rules[Tier.USER] = frozenset({Tier.USER})
    assert not policy.permits(Tier.USER, Tier.USER)
