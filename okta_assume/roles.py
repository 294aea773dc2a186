"""Role selection strategies for the roles listed in a SAML assertion."""

from __future__ import annotations

from typing import Callable, Sequence

from okta_assume.errors import NoEligibleRolesError
from okta_assume.models import RoleCandidate

RoleSelector = Callable[[Sequence[RoleCandidate]], RoleCandidate]


def first_role(roles: Sequence[RoleCandidate]) -> RoleCandidate:
    """Default policy: the first role listed in the assertion wins."""
    return roles[0]


class RoleMatcher:
    """Pick the first role matching the configured account and role name.

    Any criterion left as None matches everything.
    """

    def __init__(
        self,
        account: str | None = None,
        role: str | None = None,
        role_arn: str | None = None,
        username: str = "",
    ) -> None:
        self.account = account
        self.role = role
        self.role_arn = role_arn
        self.username = username

    def matches(self, candidate: RoleCandidate) -> bool:
        return (
            (not self.account or candidate.account_id == self.account)
            and (not self.role or candidate.role_name == self.role)
            and (not self.role_arn or candidate.role_arn == self.role_arn)
        )

    def __call__(self, roles: Sequence[RoleCandidate]) -> RoleCandidate:
        for candidate in roles:
            if self.matches(candidate):
                return candidate
        raise NoEligibleRolesError(self.username)


def _group_roles_by_account(roles):
    """Return {account_id: [role, …], …} dict preserving insertion order."""
    groups = {}
    for role in roles:
        groups.setdefault(role.account_id, []).append(role)
    return groups


def prompt_for_role(roles: Sequence[RoleCandidate], input_fn=input) -> RoleCandidate:
    """Interactive account and role selection."""
    if len(roles) == 1:
        return roles[0]

    groups = _group_roles_by_account(roles)
    account_ids = sorted(groups.keys())

    if len(account_ids) == 1:
        chosen_account = account_ids[0]
    else:
        print("\nAvailable AWS accounts:")
        for i, acct in enumerate(account_ids):
            count = len(groups[acct])
            print(f"  [{i + 1}] {acct}  ({count} role{'s' if count != 1 else ''})")
        chosen_account = account_ids[_read_index(input_fn, "Select account: ", len(account_ids))]

    account_roles = groups[chosen_account]
    if len(account_roles) == 1:
        return account_roles[0]

    print(f"\nAvailable roles for account {chosen_account}:")
    for i, role in enumerate(account_roles):
        print(f"  [{i + 1}] {role.role_name}")
        print(f"       {role.role_arn}")
    return account_roles[_read_index(input_fn, "Select role: ", len(account_roles))]


def _read_index(input_fn, prompt, count):
    while True:
        try:
            idx = int(input_fn(f"\n{prompt}").strip()) - 1
            if 0 <= idx < count:
                return idx
        except ValueError:
            pass
        print("Invalid selection, please try again.")
