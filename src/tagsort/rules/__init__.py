"""Tag predicates, events and rules."""

from .basis import (
    AgeGreaterThanBasis,
    AgeLessThanBasis,
    Basis,
    ChildCountBasis,
    ConstantBasis,
    ContentBasis,
    ExtensionBasis,
    NameBasis,
    SizeGreaterThanBasis,
    SizeLessThanBasis,
    TypeBasis,
)
from .catalog import all_tags, find_tag, matching_tags
from .errors import PredicateError, RuleError
from .events import (
    CopyAction,
    Event,
    EventReport,
    ItemFailure,
    LogEntry,
    MoveAction,
    Selection,
    TrashAction,
    display_path,
)
from .models import Rule, RuleMap, clone_rule_map
from .tags import PLACEHOLDER_TAG, Tag, TagExpression, TagTerm

__all__ = [
    "AgeGreaterThanBasis",
    "AgeLessThanBasis",
    "Basis",
    "ChildCountBasis",
    "ConstantBasis",
    "ContentBasis",
    "CopyAction",
    "Event",
    "EventReport",
    "ExtensionBasis",
    "ItemFailure",
    "LogEntry",
    "MoveAction",
    "NameBasis",
    "PLACEHOLDER_TAG",
    "PredicateError",
    "Rule",
    "RuleError",
    "RuleMap",
    "Selection",
    "SizeGreaterThanBasis",
    "SizeLessThanBasis",
    "Tag",
    "TagExpression",
    "TagTerm",
    "TrashAction",
    "TypeBasis",
    "all_tags",
    "clone_rule_map",
    "display_path",
    "find_tag",
    "matching_tags",
]
