"""
Ownership‑aware authorization rules for service request transitions.

The role gate in ``core.security`` only knows who the caller is.
Whether that caller may move a particular request to a particular
status depends on the request itself, so those rules are kept here as
data: each ``TransitionRule`` names the operation, the caller role, the
relation the caller must have to the request and the target statuses it
unlocks.  ``TransitionPolicy.allows`` evaluates the rules once per call;
anything no rule permits is denied.
"""

from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Iterable, Mapping, Optional

from .errors import Forbidden


Actor = Mapping[str, Any]
Resource = Mapping[str, Any]
Relation = Callable[[Actor, Resource], bool]


def is_provider_of(actor: Actor, resource: Resource) -> bool:
    return resource["provider_id"] == actor.get("user_id")


def is_customer_of(actor: Actor, resource: Resource) -> bool:
    return resource["customer_id"] == actor.get("user_id")


@dataclass(frozen=True)
class TransitionRule:
    operation: str
    role: str
    relation: Relation
    targets: FrozenSet[str]
    # ``None`` means the rule does not restrict the current status.
    from_statuses: Optional[FrozenSet[str]] = None

    def permits(self, operation: str, actor: Actor, resource: Resource, target: str) -> bool:
        if operation != self.operation or actor.get("role") != self.role:
            return False
        if target not in self.targets:
            return False
        if self.from_statuses is not None and resource["status"] not in self.from_statuses:
            return False
        return self.relation(actor, resource)


class TransitionPolicy:
    """A set of rules; a transition is allowed if any rule permits it."""

    def __init__(self, rules: Iterable[TransitionRule]) -> None:
        self.rules = tuple(rules)

    def allows(self, operation: str, actor: Actor, resource: Resource, target: str) -> bool:
        return any(rule.permits(operation, actor, resource, target) for rule in self.rules)

    def enforce(self, operation: str, actor: Actor, resource: Resource, target: str) -> None:
        if not self.allows(operation, actor, resource, target):
            raise Forbidden("You do not have permission to update this request", "Access denied")


UPDATE_REQUEST_STATUS = "request.update_status"

# Terminal states are not guarded against each other: a provider may move a
# declined request to completed.  Kept as observed; see DESIGN.md.
REQUEST_TRANSITIONS = TransitionPolicy(
    [
        TransitionRule(
            operation=UPDATE_REQUEST_STATUS,
            role="provider",
            relation=is_provider_of,
            targets=frozenset({"accepted", "declined", "completed"}),
        ),
        TransitionRule(
            operation=UPDATE_REQUEST_STATUS,
            role="customer",
            relation=is_customer_of,
            targets=frozenset({"cancelled"}),
            from_statuses=frozenset({"pending"}),
        ),
    ]
)
