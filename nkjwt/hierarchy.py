"""
nkjwt Hierarchy Validator - Which issuer tiers may sign for which subjects.

The default policy is the strict three-tier chain:

    | Subject | Issuer |
    |---------|--------|
    | TOP     | TOP    |
    | ORG     | TOP    |
    | USER    | ORG    |

Some deployments also let an operator sign user claims directly. That rule
is not assumed; it is enabled with IssuancePolicy.permissive() or the
NKJWT_ALLOW_TOP_USER_ISSUANCE environment variable.
"""

import logging
from typing import FrozenSet, Mapping

from nkjwt import config
from nkjwt.errors import IssuerHierarchyViolation
from nkjwt.seeds import Tier


logger = logging.getLogger(__name__)


STRICT_RULES: Mapping[Tier, FrozenSet[Tier]] = {
    Tier.TOP: frozenset({Tier.TOP}),
    Tier.ORG: frozenset({Tier.TOP}),
    Tier.USER: frozenset({Tier.ORG}),
}


class IssuancePolicy:
    """
    Immutable rule table mapping a subject tier to its allowed issuer tiers.

    Example:
        >>> policy = IssuancePolicy.strict()
        >>> policy.validate(Tier.ORG, Tier.TOP)   # ok
        >>> policy.validate(Tier.USER, Tier.TOP)  # raises IssuerHierarchyViolation
        >>> policy.allow(Tier.USER, Tier.TOP).validate(Tier.USER, Tier.TOP)  # ok
    """

    def __init__(self, rules: Mapping[Tier, FrozenSet[Tier]]):
        self._rules = {Tier(s): frozenset(Tier(i) for i in issuers) for s, issuers in rules.items()}

    @classmethod
    def strict(cls) -> "IssuancePolicy":
        return cls(STRICT_RULES)

    @classmethod
    def permissive(cls) -> "IssuancePolicy":
        """Strict chain plus operator-issued user claims."""
        return cls.strict().allow(Tier.USER, Tier.TOP)

    @property
    def rules(self) -> Mapping[Tier, FrozenSet[Tier]]:
        return dict(self._rules)

    def allow(self, subject: Tier, issuer: Tier) -> "IssuancePolicy":
        """Return a new policy that also lets issuer sign for subject."""
        rules = dict(self._rules)
        rules[subject] = rules.get(subject, frozenset()) | {issuer}
        return IssuancePolicy(rules)

    def permits(self, subject: Tier, issuer: Tier) -> bool:
        return issuer in self._rules.get(subject, frozenset())

    def validate(self, subject: Tier, issuer: Tier) -> None:
        """
        Raises:
            IssuerHierarchyViolation: If issuer may not sign claims for subject.
        """
        if not self.permits(subject, issuer):
            raise IssuerHierarchyViolation(subject, issuer)

    def __eq__(self, other) -> bool:
        if not isinstance(other, IssuancePolicy):
            return NotImplemented
        return self._rules == other._rules

    def __repr__(self) -> str:
        pairs = ", ".join(
            f"{s}<-{'|'.join(sorted(str(i) for i in issuers))}"
            for s, issuers in sorted(self._rules.items())
        )
        return f"IssuancePolicy({pairs})"


def default_policy() -> IssuancePolicy:
    """Policy selected by configuration."""
    if config.ALLOW_TOP_USER_ISSUANCE:
        logger.warning("Operator keys may issue user claims directly (NKJWT_ALLOW_TOP_USER_ISSUANCE)")
        return IssuancePolicy.permissive()
    return IssuancePolicy.strict()
