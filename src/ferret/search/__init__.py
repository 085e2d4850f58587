"""Filter and traversal engine."""

from ferret.search.pattern import Matcher, compile_pattern
from ferret.search.predicates import PredicateSet, evaluate
from ferret.search.walker import walk

__all__ = ["Matcher", "PredicateSet", "compile_pattern", "evaluate", "walk"]
