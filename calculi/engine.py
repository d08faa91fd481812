"""
Rule Sets and DSL Loader for CALCULI

CALCULI - Counting-board Arithmetic on Latin Characters Using Literal Inscriptions

This module holds the ordered rewrite tables the calculator is built from,
and the facilities for loading them from text, exporting them, and tracing
which rules fire.

DSL Format (.rules files):
    # Comment
    [group]
    @rule-name: PATTERN => REPLACEMENT
    @rule-name "Description text": PATTERN => REPLACEMENT
    PATTERN => REPLACEMENT

    Examples:
    @five-ones "Five I make a V": IIIII => V
    VV => X

JSON Format:
    {
        "name": "bundle",
        "description": "Carry rules",
        "rules": [
            {"name": "five-ones", "pattern": "IIIII", "replacement": "V"},
            or just [pattern, replacement]
        ]
    }

Tracing:
    Use RuleSet.apply(text, trace=True) to see which rules fired.
"""

import json
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .rewriter import RuleType, applied_rules, replace_all_rules


# ============================================================
# Rule Metadata
# ============================================================

class RuleMetadata:
    """Metadata for a rule: name, description and group tags."""

    def __init__(self, name: Optional[str] = None, description: Optional[str] = None,
                 tags: Optional[List[str]] = None):
        self.name = name
        self.description = description
        self.tags = tags or []

    def __repr__(self) -> str:
        if not self.name:
            return "<anonymous>"
        base = f"@{self.name}"
        if self.description:
            base += f" \"{self.description}\""
        return base


def parse_rule_line(line: str) -> Optional[Tuple[RuleMetadata, RuleType]]:
    """
    Parse a single rule line.

    Formats:
        @name: PATTERN => REPLACEMENT
        @name "description": PATTERN => REPLACEMENT
        PATTERN => REPLACEMENT

    Returns: (metadata, (pattern, replacement)) or None if not a rule
    """
    line = line.strip()

    # Skip empty lines and comments
    if not line or line.startswith('#'):
        return None

    metadata = RuleMetadata()
    if line.startswith('@'):
        # Try format: @name "description": ...
        match_obj = re.match(r'@([\w-]+)\s+"([^"]+)":\s*(.+)', line)
        if match_obj:
            metadata.name = match_obj.group(1)
            metadata.description = match_obj.group(2)
            line = match_obj.group(3)
        else:
            # Try format: @name: ...
            match_obj = re.match(r'@([\w-]+):\s*(.+)', line)
            if match_obj:
                metadata.name = match_obj.group(1)
                line = match_obj.group(2)

    # Must have =>
    if '=>' not in line:
        return None

    pattern, replacement = (part.strip() for part in line.split('=>', 1))
    if not pattern or not replacement:
        return None

    return (metadata, (pattern, replacement))


def load_rules_from_dsl(text: str) -> List[Tuple[RuleMetadata, RuleType]]:
    """
    Load rules from DSL text.

    A [groupname] line tags every following rule until the next group.

    Example:
        [fives]
        @five-ones: IIIII => V
        @five-tens: XXXXX => L

    Returns:
        List of (metadata, (pattern, replacement)) tuples
    """
    rules = []
    current_group = None

    for line in text.split('\n'):
        line_stripped = line.strip()

        # Check for group declaration: [groupname]
        if line_stripped.startswith('[') and line_stripped.endswith(']'):
            current_group = line_stripped[1:-1].strip()
            continue

        result = parse_rule_line(line)
        if result:
            metadata, rule = result
            if current_group and current_group not in metadata.tags:
                metadata.tags.append(current_group)
            rules.append((metadata, rule))
    return rules


def load_rules_from_json(text: str) -> List[Tuple[RuleMetadata, RuleType]]:
    """
    Load rules from JSON text.

    Expected format:
        {
            "name": "ruleset-name",
            "description": "optional ruleset description",
            "rules": [
                {
                    "name": "rule-name",
                    "description": "...",
                    "pattern": "IIIII",
                    "replacement": "V",
                    "tags": ["group1"]  # optional
                },
                or just [pattern, replacement]
            ]
        }
    """
    data = json.loads(text)
    rules = []

    for rule in data.get('rules', []):
        if isinstance(rule, dict):
            metadata = RuleMetadata(
                name=rule.get('name'),
                description=rule.get('description'),
                tags=rule.get('tags'),
            )
            pattern = rule['pattern']
            replacement = rule['replacement']
        else:
            metadata = RuleMetadata()
            pattern, replacement = rule[0], rule[1]
        rules.append((metadata, (pattern, replacement)))

    return rules


def load_rules_from_file(path: Union[str, Path]) -> List[Tuple[RuleMetadata, RuleType]]:
    """
    Load rules from a .rules or .json file.

    Returns:
        List of (metadata, (pattern, replacement)) tuples
    """
    path = Path(path)
    text = path.read_text()

    if path.suffix == '.json':
        return load_rules_from_json(text)
    return load_rules_from_dsl(text)


# ============================================================
# Tracing
# ============================================================

class RewriteStep:
    """A single rule application in a rewriting trace."""

    def __init__(self, rule_index: int, metadata: RuleMetadata,
                 before: str, after: str):
        self.rule_index = rule_index
        self.metadata = metadata
        self.before = before
        self.after = after

    @property
    def rule_name(self) -> str:
        return self.metadata.name or f"rule[{self.rule_index}]"

    def __repr__(self) -> str:
        return f"{self.rule_name}: {self.before} -> {self.after}"

    def to_dict(self) -> Dict:
        """Convert step to dictionary for serialization."""
        return {
            "rule_index": self.rule_index,
            "rule_name": self.metadata.name,
            "description": self.metadata.description,
            "before": self.before,
            "after": self.after,
        }


class RewriteTrace:
    """
    A trace of the rules that changed a string.

    Provides multiple formatting options:
        - Default repr: verbose multi-line format
        - format("compact"): single line showing rule chain
        - format("rules"): just the rule names applied
        - format("chain"): the string after each step
        - to_dict(): JSON-serializable dictionary
    """

    def __init__(self, initial: str = ""):
        self.steps: List[RewriteStep] = []
        self.initial: str = initial
        self.final: str = initial

    def add_step(self, step: RewriteStep):
        self.steps.append(step)
        self.final = step.after

    def format(self, style: str = "verbose") -> str:
        """
        Format the trace in different styles.

        Args:
            style: One of "verbose", "compact", "rules", "chain"

        Returns:
            Formatted string representation of the trace.
        """
        if style == "compact":
            return f"{self.initial} --[{', '.join(self.rules_applied())}]--> {self.final}"

        elif style == "rules":
            rules = self.rules_applied()
            return " -> ".join(rules) if rules else "(no rules applied)"

        elif style == "chain":
            parts = [self.initial]
            for step in self.steps:
                parts.append(f"  --({step.rule_name})-->")
                parts.append(step.after)
            return "\n".join(parts)

        else:  # verbose (default)
            return repr(self)

    def __repr__(self) -> str:
        lines = [f"Initial: {self.initial}"]
        for i, step in enumerate(self.steps, 1):
            if step.metadata.description:
                lines.append(f"  {i}. {step} ({step.metadata.description})")
            else:
                lines.append(f"  {i}. {step}")
        lines.append(f"Final: {self.final}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        """Iterate over rewrite steps."""
        return iter(self.steps)

    def __bool__(self) -> bool:
        """True if any rewriting was done."""
        return len(self.steps) > 0

    def to_dict(self) -> Dict:
        """Convert trace to dictionary for JSON serialization."""
        return {
            "initial": self.initial,
            "final": self.final,
            "steps": [step.to_dict() for step in self.steps],
            "step_count": len(self.steps),
        }

    def rule_counts(self) -> Dict[str, int]:
        """Count how many times each rule was applied."""
        counts: Dict[str, int] = {}
        for step in self.steps:
            counts[step.rule_name] = counts.get(step.rule_name, 0) + 1
        return counts

    def rules_applied(self) -> List[str]:
        """Get list of rule names in order of application."""
        return [step.rule_name for step in self.steps]

    def summary(self) -> str:
        """Get a brief summary of the rewriting."""
        if not self.steps:
            return "No rewriting performed"
        return f"{len(self.steps)} rules fired: {', '.join(self.rules_applied())}"


# ============================================================
# Rule Sets
# ============================================================

class RuleSet:
    """
    An ordered table of string rewrite rules.

    Rules are applied once each, in table order, every rule's replace-all
    completing before the next starts. Order is part of the semantics: a
    bundling table must carry I's before V's, an expansion table must expand
    IV before IX.

    Example:
        from calculi import RuleSet

        carry = RuleSet.from_dsl('''
            @five-ones "Five I make a V": IIIII => V
            @two-fives: VV => X
        ''')
        carry("VIIIII")  # => "X"

        result, trace = carry.apply("VIIIII", trace=True)
        print(trace.format("rules"))  # five-ones -> two-fives
    """

    def __init__(self, name: Optional[str] = None):
        """
        Initialize an empty RuleSet.

        Args:
            name: Optional table name used in exports and repr
        """
        self.name = name
        self._rules: List[RuleType] = []
        self._metadata: List[RuleMetadata] = []
        self._rule_names: Dict[str, int] = {}  # Maps name -> index
        self._frozen = False

    def _append(self, metadata: RuleMetadata, rule: RuleType) -> None:
        if self._frozen:
            raise TypeError(f"{self!r} is frozen; copy() it to add rules")
        pattern, replacement = rule
        self._rules.append((pattern, replacement))
        self._metadata.append(metadata)
        if metadata.name:
            self._rule_names[metadata.name] = len(self._rules) - 1

    def load_dsl(self, text: str) -> 'RuleSet':
        """Load rules from DSL text."""
        for metadata, rule in load_rules_from_dsl(text):
            self._append(metadata, rule)
        return self

    def load_file(self, path: Union[str, Path]) -> 'RuleSet':
        """Load rules from a file (.rules or .json)."""
        for metadata, rule in load_rules_from_file(path):
            self._append(metadata, rule)
        return self

    def load_rules(self, rules: Iterable[RuleType]) -> 'RuleSet':
        """Load rules from (pattern, replacement) pairs (without metadata)."""
        for rule in rules:
            self._append(RuleMetadata(), rule)
        return self

    def add_rule(self, pattern: str, replacement: str,
                 name: Optional[str] = None,
                 description: Optional[str] = None,
                 tags: Optional[List[str]] = None) -> 'RuleSet':
        """Add a single rule with optional metadata."""
        self._append(RuleMetadata(name=name, description=description, tags=tags),
                     (pattern, replacement))
        return self

    def get_rule(self, name: str) -> Optional[Tuple[RuleType, RuleMetadata]]:
        """Get a rule and its metadata by name."""
        if name in self._rule_names:
            idx = self._rule_names[name]
            return self._rules[idx], self._metadata[idx]
        return None

    def groups(self) -> set:
        """Return all group names used by rules."""
        all_groups = set()
        for meta in self._metadata:
            all_groups.update(meta.tags)
        return all_groups

    @property
    def rules(self) -> List[RuleType]:
        """Get all loaded rules."""
        return self._rules.copy()

    # ============================================================
    # Application
    # ============================================================

    def apply(self, text: str, skip: Iterable[str] = (), trace: bool = False):
        """
        Rewrite text with every rule, in table order.

        Args:
            text: Numeral to rewrite
            skip: Replacement values whose rules must not fire
            trace: If True, return (result, trace) tuple

        Returns:
            Rewritten string, or (string, RewriteTrace) if trace=True
        """
        if not trace:
            return replace_all_rules(text, self._rules, skip=skip)

        trace_obj = RewriteTrace(text)
        for rule_idx, before, after in applied_rules(text, self._rules, skip=skip):
            trace_obj.add_step(RewriteStep(
                rule_index=rule_idx,
                metadata=self._metadata[rule_idx],
                before=before,
                after=after,
            ))
        return trace_obj.final, trace_obj

    def __call__(self, text: str, **kwargs):
        """Make the table callable: rules(text) is shorthand for rules.apply(text)."""
        return self.apply(text, **kwargs)

    # ============================================================
    # Table algebra
    # ============================================================

    def inverted(self, skip: Iterable[str] = (), name: Optional[str] = None) -> 'RuleSet':
        """
        Build the inverse table: replacements become patterns, order reversed.

        Args:
            skip: New replacement values (old patterns) to leave out
            name: Name for the new table

        Example:
            expand = RuleSet.from_rules([("IV", "IIII"), ("IX", "VIIII")])
            contract = expand.inverted()
            contract.rules  # => [("VIIII", "IX"), ("IIII", "IV")]
        """
        skipped = frozenset(skip)
        result = RuleSet(name=name)
        for rule, meta in reversed(list(zip(self._rules, self._metadata))):
            pattern, replacement = rule
            if pattern in skipped:
                continue
            result._append(RuleMetadata(meta.name, meta.description, list(meta.tags)),
                           (replacement, pattern))
        return result

    def copy(self) -> 'RuleSet':
        """Create an unfrozen copy of this table."""
        new_set = RuleSet(name=self.name)
        new_set._rules = self._rules.copy()
        new_set._metadata = self._metadata.copy()
        new_set._rule_names = self._rule_names.copy()
        return new_set

    def freeze(self) -> 'RuleSet':
        """
        Refuse any further rules.

        Shared tables such as the ones held by a NumeralSystem are frozen
        so no caller can change the arithmetic of another.
        """
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __rshift__(self, other: 'RuleSet') -> 'SequencedRuleSet':
        """
        Sequence two tables: table1 >> table2.

        Example:
            expand = RuleSet.from_rules([("IV", "IIII")])
            carry = RuleSet.from_rules([("IIIII", "V")])
            (expand >> carry)("IVI")  # => "V"
        """
        return SequencedRuleSet([self, other])

    # ============================================================
    # Introspection and export
    # ============================================================

    def _format_rule(self, rule: RuleType, meta: RuleMetadata) -> str:
        pattern, replacement = rule
        name_part = ""
        if meta.name:
            name_part = f"@{meta.name}"
            if meta.description:
                name_part += f" \"{meta.description}\""
            name_part += ": "
        return f"{name_part}{pattern} => {replacement}"

    def list_rules(self) -> List[str]:
        """List all rules with their metadata in DSL format."""
        return [self._format_rule(rule, meta)
                for rule, meta in zip(self._rules, self._metadata)]

    def to_dsl(self, name: Optional[str] = None) -> str:
        """
        Export rules to DSL format string.

        Args:
            name: Optional name to include as a comment header

        Returns:
            DSL-formatted string with all rules, organized by groups.
        """
        lines = []
        header = name or self.name
        if header:
            lines.append(f"# {header}")
            lines.append("")

        # Group rules by their first tag (group)
        current_group = None
        for rule, meta in zip(self._rules, self._metadata):
            rule_group = meta.tags[0] if meta.tags else None
            if rule_group != current_group:
                if rule_group:
                    if lines and lines[-1] != "":
                        lines.append("")
                    lines.append(f"[{rule_group}]")
                current_group = rule_group
            lines.append(self._format_rule(rule, meta))

        return "\n".join(lines)

    def to_dict(self) -> Dict:
        """
        Export rules to a dictionary.

        Returns:
            Dictionary compatible with load_rules_from_json().
        """
        rules_list = []
        for rule, meta in zip(self._rules, self._metadata):
            pattern, replacement = rule
            rule_dict = {
                "pattern": pattern,
                "replacement": replacement,
            }
            if meta.name:
                rule_dict["name"] = meta.name
            if meta.description:
                rule_dict["description"] = meta.description
            if meta.tags:
                rule_dict["tags"] = meta.tags
            rules_list.append(rule_dict)

        result = {"rules": rules_list}
        if self.name:
            result["name"] = self.name
        return result

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Export rules to JSON format string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        if self.name:
            return f"RuleSet({self.name!r}, {len(self._rules)} rules)"
        return f"RuleSet({len(self._rules)} rules)"

    def __iter__(self):
        """Iterate over (rule, metadata) pairs."""
        return iter(zip(self._rules, self._metadata))

    def __contains__(self, name: str) -> bool:
        """Check if a named rule exists: 'iv' in rules."""
        return name in self._rule_names

    def __getitem__(self, name: str) -> Tuple[RuleType, RuleMetadata]:
        """Get rule by name: rules['iv']."""
        if name not in self._rule_names:
            raise KeyError(f"No rule named '{name}'")
        idx = self._rule_names[name]
        return self._rules[idx], self._metadata[idx]

    # Class method constructors for fluent creation
    @classmethod
    def from_dsl(cls, text: str, name: Optional[str] = None) -> 'RuleSet':
        """Create a table from DSL text."""
        return cls(name=name).load_dsl(text)

    @classmethod
    def from_file(cls, path: Union[str, Path], name: Optional[str] = None) -> 'RuleSet':
        """Create a table from a file."""
        return cls(name=name).load_file(path)

    @classmethod
    def from_rules(cls, rules: Iterable[RuleType], name: Optional[str] = None) -> 'RuleSet':
        """Create a table from (pattern, replacement) pairs."""
        return cls(name=name).load_rules(rules)


class SequencedRuleSet:
    """
    Tables applied one after another.

    Created via the >> operator on RuleSet.

    Example:
        phased = expansions >> bundling
        result = phased(numeral)
    """

    def __init__(self, tables: List[RuleSet]):
        """Initialize with a list of tables to apply in sequence."""
        self._tables = tables

    def __call__(self, text: str) -> str:
        """Apply all tables in sequence."""
        for table in self._tables:
            text = table(text)
        return text

    def __rshift__(self, other) -> 'SequencedRuleSet':
        """Chain another table: (a >> b) >> c."""
        if isinstance(other, SequencedRuleSet):
            return SequencedRuleSet(self._tables + other._tables)
        return SequencedRuleSet(self._tables + [other])

    def __repr__(self) -> str:
        return f"SequencedRuleSet({len(self._tables)} phases)"

    def __len__(self) -> int:
        """Number of phases."""
        return len(self._tables)

    def __iter__(self):
        """Iterate over tables."""
        return iter(self._tables)
