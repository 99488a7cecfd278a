"""
Program Analyzer: static diagnostics for parsed programs.

This module provides lightweight analysis of Program objects:
    - Function and parameter inventory
    - Call graph, tail-call sites and external references
    - Unresolved calls and unreachable functions
    - Recursion cycles, and whether they recurse in tail position

IMPORTANT: This module does NOT modify or run the program.
It only produces read-only reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from mdlang.model import (
    CallStatement,
    ConditionalStatement,
    InputStatement,
    Program,
    Statement,
)


@dataclass(frozen=True)
class CallSite:
    """One call statement, located by its caller."""
    caller: str
    callee: str
    external_file: Optional[str]
    tail: bool


def _walk(statements, tail: bool, depth: int = 0) -> Iterator[Tuple[Statement, bool, int]]:
    """Yield (statement, in_tail_position, nesting_depth) for a block and its sub-blocks."""
    last = len(statements) - 1
    for index, statement in enumerate(statements):
        in_tail = tail and index == last
        yield statement, in_tail, depth
        if isinstance(statement, ConditionalStatement):
            yield from _walk(statement.body, in_tail, depth + 1)


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


@dataclass
class ProgramReport:
    """Analysis report for one program."""

    program_name: str
    entry: str = "main"
    total_functions: int = 0
    total_statements: int = 0
    parameters: Dict[str, List[str]] = field(default_factory=dict)

    # Calls
    call_sites: List[CallSite] = field(default_factory=list)
    call_graph: Dict[str, List[str]] = field(default_factory=dict)
    external_references: Set[str] = field(default_factory=set)
    unresolved_calls: Set[str] = field(default_factory=set)

    # Graph properties
    entry_found: bool = False
    unreachable_functions: Set[str] = field(default_factory=set)
    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None
    non_tail_recursion: Set[str] = field(default_factory=set)

    # Structure
    max_nesting_depth: int = 0
    input_reads: int = 0

    warnings: List[str] = field(default_factory=list)

    @property
    def tail_calls(self) -> List[CallSite]:
        return [site for site in self.call_sites if site.tail]

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_program(program: Program, entry: str = "main") -> ProgramReport:
    """
    Analyze a Program without running it.

    Args:
        program: Parsed program
        entry: Function a run would start in

    Returns:
        ProgramReport with metrics and warnings
    """
    report = ProgramReport(program_name=program.source_path or "<program>", entry=entry)
    report.total_functions = len(program.functions)
    report.entry_found = entry in program.functions

    graph: Dict[str, List[str]] = {}

    for function in program.functions.values():
        report.parameters[function.name] = list(function.parameters)
        graph.setdefault(function.name, [])

        for statement, in_tail, depth in _walk(function.body, tail=True):
            report.total_statements += 1
            report.max_nesting_depth = max(report.max_nesting_depth, depth)

            if isinstance(statement, InputStatement):
                report.input_reads += 1

            if isinstance(statement, CallStatement):
                site = CallSite(
                    caller=function.name,
                    callee=statement.function_name,
                    external_file=statement.external_file,
                    tail=in_tail,
                )
                report.call_sites.append(site)
                if statement.external_file:
                    report.external_references.add(f"{statement.external_file}#{statement.function_name}")
                elif statement.function_name in program.functions:
                    if statement.function_name not in graph[function.name]:
                        graph[function.name].append(statement.function_name)
                else:
                    report.unresolved_calls.add(statement.function_name)

    report.call_graph = dict(graph)

    # Reachability from the entry function
    reachable: Set[str] = set()
    stack = [entry] if report.entry_found else []
    while stack:
        node = stack.pop()
        if node in reachable:
            continue
        reachable.add(node)
        stack.extend(n for n in graph.get(node, []) if n not in reachable)
    if report.entry_found:
        report.unreachable_functions = set(program.functions) - reachable

    # Cycle detection
    visited: Set[str] = set()
    for name in graph:
        if name not in visited:
            cycle = _find_cycles_dfs(graph, name, visited, set(), [])
            if cycle:
                report.has_cycles = True
                report.cycle_example = cycle
                break

    # Recursion through a non-tail call grows the call stack
    for site in report.call_sites:
        if site.tail or site.external_file or site.callee not in program.functions:
            continue
        if site.caller in _reachable_from(graph, site.callee):
            report.non_tail_recursion.add(site.caller)

    # Warnings
    if not report.entry_found:
        report.add_warning(f"Entry function '{entry}' not found")

    if report.unresolved_calls:
        report.add_warning(
            f"Calls to undeclared functions: {', '.join(sorted(report.unresolved_calls))}"
        )

    if report.unreachable_functions:
        report.add_warning(
            f"Unreachable functions: {', '.join(sorted(report.unreachable_functions))}"
        )

    if report.non_tail_recursion:
        report.add_warning(
            "Recursion outside tail position (bounded by max_call_depth): "
            f"{', '.join(sorted(report.non_tail_recursion))}"
        )

    return report


def _reachable_from(graph: Dict[str, List[str]], start: str) -> Set[str]:
    seen: Set[str] = set()
    stack = [start]
    while stack:
        node = stack.pop()
        if node in seen:
            continue
        seen.add(node)
        stack.extend(graph.get(node, []))
    return seen
