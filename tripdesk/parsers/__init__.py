# parsers/__init__.py
"""
Natural-language parsers
Rule-table parsers for search phrases and edit instructions, plus the
query safety validator.
"""

from .patterns import MatchPolicy, RuleGroup, Trigger, evaluate_groups
from .query_parser import FilterQueryParser, filter_query_parser, parse_filter_query
from .safety import validate_query_safety
from .edit_parser import EditCommandParser, edit_command_parser, parse_edit, propose_edit

__all__ = [
    "MatchPolicy", "RuleGroup", "Trigger", "evaluate_groups",
    "FilterQueryParser", "filter_query_parser", "parse_filter_query",
    "validate_query_safety",
    "EditCommandParser", "edit_command_parser", "parse_edit", "propose_edit",
]
