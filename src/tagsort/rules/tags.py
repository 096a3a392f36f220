"""Tags and signed tag conjunctions used to select items."""

from __future__ import annotations

from typing import Iterable, List

from pydantic import BaseModel, ConfigDict, Field

from tagsort.ingestion import ItemSnapshot

from .basis import Basis, NameBasis
from .errors import PredicateError


class Tag(BaseModel):
    """A named, described predicate.

    Tags compare structurally (name, description and basis), which is how a tag is
    located inside a :class:`TagExpression`.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    basis: Basis

    @property
    def label(self) -> str:
        """Tag name without its leading emoji, if it has one."""
        head, _, tail = self.name.partition(" ")
        if tail and not head.isascii():
            return tail
        return self.name

    def matches(self, item: ItemSnapshot) -> bool:
        """Evaluate the tag's basis against ``item``.

        Raises:
            PredicateError: Propagated from the basis.
        """
        return self.basis.matches(item)


PLACEHOLDER_TAG = Tag(
    name="🧱 Dummy",
    description=(
        "An object with the name 'dummy.test'. Used as the placeholder inside an event; "
        "usually you would want to replace it with a more useful tag."
    ),
    basis=NameBasis(name="dummy.test"),
)


class TagTerm(BaseModel):
    """One signed literal of a tag expression."""

    tag: Tag
    included: bool = True

    @property
    def label(self) -> str:
        return self.tag.name if self.included else f"not {self.tag.name}"


class TagExpression(BaseModel):
    """Conjunction of signed tags with at least one term.

    An item is selected when every included tag matches and no excluded tag does.
    A fresh expression holds the placeholder tag only, and removing the last
    remaining term puts the placeholder back, so the term list is never empty.
    """

    head: TagTerm = Field(default_factory=lambda: TagTerm(tag=PLACEHOLDER_TAG))
    rest: List[TagTerm] = Field(default_factory=list)

    @classmethod
    def of(cls, tag: Tag, included: bool = True) -> "TagExpression":
        """Build a single-term expression."""
        return cls(head=TagTerm(tag=tag, included=included))

    @classmethod
    def from_terms(cls, terms: Iterable[tuple[Tag, bool]]) -> "TagExpression":
        """Build an expression from ``(tag, included)`` pairs, keeping their order.

        Raises:
            ValueError: If ``terms`` is empty.
        """
        built = [TagTerm(tag=tag, included=included) for tag, included in terms]
        if not built:
            raise ValueError("A tag expression needs at least one term.")
        return cls(head=built[0], rest=built[1:])

    def terms(self) -> list[TagTerm]:
        """Return every term, head first."""
        return [self.head, *self.rest]

    @property
    def name(self) -> str:
        return " & ".join(term.label for term in self.terms())

    @property
    def description(self) -> str:
        lines = []
        for term in self.terms():
            prefix = "" if term.included else "NOT "
            lines.append(f"{prefix}{term.tag.name}: {term.tag.description}")
        return "\n".join(lines)

    def evaluate(self, item: ItemSnapshot) -> bool:
        """Return whether ``item`` satisfies every signed term.

        All terms are evaluated; an item whose size is needed is measured once up
        front and the sized snapshot is shared by the terms.

        Raises:
            PredicateError: If any term cannot be evaluated for ``item``.
        """
        terms = self.terms()
        if any(term.tag.basis.needs_size for term in terms):
            try:
                item = item.with_size()
            except OSError as exc:
                raise PredicateError(f"{item.path}: {exc}") from exc

        selected = True
        for term in terms:
            if term.tag.matches(item) != term.included:
                selected = False
        return selected

    def has(self, tag: Tag) -> bool:
        """Return whether ``tag`` is one of the expression's terms (either sign)."""
        return any(term.tag == tag for term in self.terms())

    def push(self, tag: Tag, included: bool = True) -> None:
        """Append a signed term; duplicates only make the selection stricter."""
        self.rest.append(TagTerm(tag=tag, included=included))

    def remove(self, tag: Tag) -> bool:
        """Remove the first term holding ``tag``.

        Removing the head promotes the next term; removing the only term replaces it
        with the placeholder.

        Returns:
            bool: ``True`` if a term was removed.
        """
        if self.head.tag == tag:
            if self.rest:
                self.head = self.rest.pop(0)
            else:
                self.head = TagTerm(tag=PLACEHOLDER_TAG)
            return True
        for index, term in enumerate(self.rest):
            if term.tag == tag:
                del self.rest[index]
                return True
        return False


__all__ = ["PLACEHOLDER_TAG", "Tag", "TagExpression", "TagTerm"]
