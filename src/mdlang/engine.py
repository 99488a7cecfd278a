"""
Execution engine.

Statements run on a trampoline: a call in tail position is not executed
where it stands but handed back up as a TailCall, and the loop in
`_run_function` swaps the finished frame for the callee's. Tail-recursive
programs therefore run in constant host stack however deep they recurse.
Calls anywhere else run the same trampoline to completion before the
block continues.

Block execution is a generator. The only thing it ever yields is an
InputRequest; whoever drives it answers with `send(value)`. `Execution`
wraps that protocol as explicit Suspended/Finished steps so the same
engine serves the buffered `run` (answers from a pre-supplied list) and
the interactive `run_async` (awaits a provider for each answer).
"""

from __future__ import annotations

import inspect
import logging
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from itertools import zip_longest
from typing import Any, Callable, Dict, Generator, Iterable, List, Optional, Sequence, Tuple, Union

from mdlang.config import InterpreterConfig
from mdlang.errors import ExecutionError, MarkdownLangError, ProgramLookupError
from mdlang.evaluator import evaluate
from mdlang.model import (
    AssignmentStatement,
    BreakStatement,
    CallStatement,
    ConditionalStatement,
    FunctionDeclaration,
    InputStatement,
    PrintStatement,
    Program,
    Statement,
)
from mdlang.runtime import Runtime
from mdlang import values
from mdlang.transform import parse_program_file

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """How a block finished when it did not end in a tail call."""
    COMPLETED = "completed"
    BROKE = "broke"


@dataclass(frozen=True)
class TailCall:
    """A call left for the trampoline: what to run once the current frame is gone."""

    program: Program
    function: FunctionDeclaration
    arguments: Tuple[Any, ...]


BlockResult = Union[Outcome, TailCall]


@dataclass(frozen=True)
class InputRequest:
    """Yielded by an input statement; answered with the value read."""

    variable: str
    function_name: str


@dataclass(frozen=True)
class Suspended:
    """The run is waiting for the answer to `request`."""

    request: InputRequest


@dataclass(frozen=True)
class Finished:
    """The run is over; `output` is every printed value in order."""

    output: List[Any]


Step = Union[Suspended, Finished]

# Host frames one nested call can hold, allowing for a few levels of
# nested conditionals.
_FRAMES_PER_CALL = 5


@contextmanager
def _recursion_headroom(limit: Optional[int]):
    """Raise the interpreter recursion limit to `limit` while running a step."""
    previous = sys.getrecursionlimit()
    raised = limit is not None and limit > previous
    if raised:
        sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        if raised:
            sys.setrecursionlimit(previous)


class ProgramCache:
    """
    Parsed external programs keyed by canonical absolute path.

    First load wins: there is no invalidation, so a file edited after
    its first load keeps its original program for the cache's lifetime.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._programs: Dict[str, Program] = {}

    def load(self, path: str, base_dir: str) -> Program:
        """
        Program for `path` resolved against `base_dir`, parsing it on first use.

        Raises:
            ProgramLookupError: If the file does not exist
        """
        full_path = os.path.realpath(os.path.join(base_dir, path))
        program = self._programs.get(full_path)
        if program is not None:
            logger.debug("Using cached program %s", full_path)
            return program

        logger.debug("Loading external program %s", full_path)
        program = parse_program_file(full_path, encoding=self.encoding)
        self._programs[full_path] = program
        return program

    def __contains__(self, full_path: str) -> bool:
        return os.path.realpath(full_path) in self._programs

    def __len__(self) -> int:
        return len(self._programs)


class Execution:
    """
    One run, advanced step by step.

    `start()` runs until the first input read or the end; each
    `resume(value)` feeds the pending read and runs to the next one.
    Output printed so far is on `runtime.output` at every point,
    including after a failure.
    """

    def __init__(
        self,
        steps: Generator[InputRequest, Any, None],
        runtime: Runtime,
        recursion_limit: Optional[int] = None,
    ):
        self.runtime = runtime
        self._steps = steps
        self._recursion_limit = recursion_limit
        self._started = False
        self.finished = False

    def start(self) -> Step:
        if self._started:
            raise RuntimeError("Execution already started")
        self._started = True
        return self._advance(None)

    def resume(self, value: Any) -> Step:
        if not self._started or self.finished:
            raise RuntimeError("Execution is not waiting for input")
        return self._advance(value)

    def _advance(self, value: Any) -> Step:
        with _recursion_headroom(self._recursion_limit):
            try:
                request = self._steps.send(value)
            except StopIteration:
                self.finished = True
                return Finished(self.runtime.get_output())
            except MarkdownLangError as e:
                self.finished = True
                e.output = self.runtime.get_output()
                raise
            except RecursionError:
                self.finished = True
                error = ExecutionError("Host recursion limit reached; lower max_call_depth")
                error.output = self.runtime.get_output()
                raise error
        return Suspended(request)


class Interpreter:
    """
    Runs programs.

    Args:
        config: Interpreter settings (entry, tail calls, call depth)
        cache: External program cache; pass one in to share it across
            interpreters, otherwise each interpreter owns its own
    """

    def __init__(self, config: Optional[InterpreterConfig] = None, cache: Optional[ProgramCache] = None):
        self.config = config or InterpreterConfig()
        self.cache = cache if cache is not None else ProgramCache(encoding=self.config.encoding)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def start(
        self,
        program: Program,
        entry: Optional[str] = None,
        arguments: Sequence[Any] = (),
        base_dir: Optional[str] = None,
        runtime: Optional[Runtime] = None,
    ) -> Execution:
        """
        Prepare a run of `entry` without executing anything yet.

        Raises:
            ProgramLookupError: If the entry function is not declared
        """
        entry = entry or self.config.entry
        resolved_dir = base_dir or program.base_dir or os.getcwd()
        if resolved_dir != program.base_dir:
            # the caller's program keeps its own base directory
            program = replace(program, base_dir=resolved_dir)

        function = program.get_function(entry)
        if function is None:
            raise ProgramLookupError(f"Entry function '{entry}' not found")

        runtime = runtime if runtime is not None else Runtime()
        steps = self._run_function(program, function, tuple(arguments), runtime)
        return Execution(steps, runtime, recursion_limit=self.config.max_call_depth * _FRAMES_PER_CALL + 1000)

    def run(
        self,
        program: Program,
        entry: Optional[str] = None,
        arguments: Sequence[Any] = (),
        base_dir: Optional[str] = None,
        inputs: Optional[Iterable[Any]] = None,
        output_sink: Optional[Callable[[Any], None]] = None,
    ) -> List[Any]:
        """
        Buffered run: input reads take the next of `inputs` (None once
        they run out).

        Returns:
            Printed values, in order
        """
        runtime = Runtime(inputs=inputs, output_sink=output_sink)
        execution = self.start(program, entry, arguments, base_dir, runtime)
        step = execution.start()
        while isinstance(step, Suspended):
            step = execution.resume(runtime.read_input())
        return step.output

    async def run_async(
        self,
        program: Program,
        entry: Optional[str] = None,
        arguments: Sequence[Any] = (),
        base_dir: Optional[str] = None,
        input_provider: Optional[Callable[[], Any]] = None,
        output_sink: Optional[Callable[[Any], None]] = None,
    ) -> List[Any]:
        """
        Interactive run: each input read calls `input_provider()` and,
        if it returns an awaitable, waits for it. Prints reach
        `output_sink` as they happen.

        Returns:
            Printed values, in order
        """
        runtime = Runtime(output_sink=output_sink)
        execution = self.start(program, entry, arguments, base_dir, runtime)
        step = execution.start()
        while isinstance(step, Suspended):
            if input_provider is None:
                value = runtime.read_input()
            else:
                value = input_provider()
                if inspect.isawaitable(value):
                    value = await value
            step = execution.resume(value)
        return step.output

    # ------------------------------------------------------------------
    # Trampoline
    # ------------------------------------------------------------------

    def _run_function(self, program: Program, function: FunctionDeclaration, arguments, runtime: Runtime):
        while True:
            if runtime.depth >= self.config.max_call_depth:
                raise ExecutionError(
                    f"Maximum call depth of {self.config.max_call_depth} exceeded calling '{function.name}'"
                )
            bindings = {
                name: value
                for name, value in zip_longest(function.parameters, arguments[:len(function.parameters)], fillvalue=values.UNDEFINED)
            }
            runtime.push_frame(function.name, bindings)

            result = yield from self._execute_block(program, function.body, runtime, self.config.tail_calls)

            runtime.pop_frame()
            # A break only ends the activation it happened in.
            runtime.clear_break()

            if not isinstance(result, TailCall):
                return
            logger.debug("Tail call from '%s' to '%s'", function.name, result.function.name)
            program, function, arguments = result.program, result.function, result.arguments

    def _execute_block(self, program: Program, statements: Sequence[Statement], runtime: Runtime, tail: bool):
        last = len(statements) - 1
        for index, statement in enumerate(statements):
            if runtime.break_flag:
                return Outcome.BROKE
            in_tail = tail and index == last

            if isinstance(statement, PrintStatement):
                runtime.print(evaluate(statement.expression, runtime))

            elif isinstance(statement, AssignmentStatement):
                self._execute_assignment(statement, runtime)

            elif isinstance(statement, CallStatement):
                call = self._prepare_call(program, statement, runtime)
                if in_tail:
                    return call
                yield from self._run_function(call.program, call.function, call.arguments, runtime)

            elif isinstance(statement, ConditionalStatement):
                if values.truthy(evaluate(statement.condition, runtime)):
                    result = yield from self._execute_block(program, statement.body, runtime, in_tail)
                    if result is not Outcome.COMPLETED:
                        return result

            elif isinstance(statement, BreakStatement):
                runtime.set_break()
                return Outcome.BROKE

            elif isinstance(statement, InputStatement):
                frame = runtime.current_frame()
                value = yield InputRequest(statement.variable, frame.function_name)
                runtime.set_variable(statement.variable, value)

            else:
                raise ExecutionError(f"Unknown statement type: {type(statement).__name__}")

        return Outcome.COMPLETED

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _execute_assignment(self, statement: AssignmentStatement, runtime: Runtime) -> None:
        new_value = evaluate(statement.value, runtime)

        if statement.operator is None:
            runtime.set_variable(statement.variable, new_value)
            return

        current = runtime.get_variable(statement.variable)
        if current is values.UNDEFINED or current is None:
            current = values.default_for(new_value)

        if statement.operator.value == "+":
            result = values.add(current, new_value)
        else:
            result = values.arithmetic(statement.operator.value, current, new_value)
        runtime.set_variable(statement.variable, result)

    def _prepare_call(self, program: Program, statement: CallStatement, runtime: Runtime) -> TailCall:
        """Resolve the callee and evaluate arguments in the caller's frame."""
        if statement.external_file:
            base_dir = program.base_dir or os.getcwd()
            target = self.cache.load(statement.external_file, base_dir)
            function = target.get_function(statement.function_name)
            if function is None:
                raise ProgramLookupError(
                    f"Function '{statement.function_name}' not found in '{statement.external_file}'"
                )
        else:
            target = program
            function = program.get_function(statement.function_name)
            if function is None:
                raise ProgramLookupError(f"Function '{statement.function_name}' not found")

        arguments = tuple(evaluate(arg, runtime) for arg in statement.arguments)
        return TailCall(target, function, arguments)


def run(
    program: Program,
    entry: Optional[str] = None,
    arguments: Sequence[Any] = (),
    base_dir: Optional[str] = None,
    inputs: Optional[Iterable[Any]] = None,
    output_sink: Optional[Callable[[Any], None]] = None,
    config: Optional[InterpreterConfig] = None,
    cache: Optional[ProgramCache] = None,
) -> List[Any]:
    """Buffered run with a fresh Interpreter. See `Interpreter.run`."""
    return Interpreter(config, cache).run(program, entry, arguments, base_dir, inputs, output_sink)


async def run_async(
    program: Program,
    entry: Optional[str] = None,
    arguments: Sequence[Any] = (),
    base_dir: Optional[str] = None,
    input_provider: Optional[Callable[[], Any]] = None,
    output_sink: Optional[Callable[[Any], None]] = None,
    config: Optional[InterpreterConfig] = None,
    cache: Optional[ProgramCache] = None,
) -> List[Any]:
    """Interactive run with a fresh Interpreter. See `Interpreter.run_async`."""
    return await Interpreter(config, cache).run_async(
        program, entry, arguments, base_dir, input_provider, output_sink
    )
