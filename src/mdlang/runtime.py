"""
Execution state for one run.

Holds the call stack, the printed output, the break flag and the
buffered input queue. Variables live only in the current (top) frame:
there is no global scope and no frame can see another's bindings.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from mdlang.values import UNDEFINED


@dataclass
class Frame:
    """One function activation."""

    function_name: str
    variables: Dict[str, Any] = field(default_factory=dict)


class Runtime:
    """
    Mutable state owned by exactly one in-flight run.

    Args:
        inputs: Pre-supplied input values, consumed front to back
        output_sink: Called with each printed value as it is produced
    """

    def __init__(
        self,
        inputs: Optional[Iterable[Any]] = None,
        output_sink: Optional[Callable[[Any], None]] = None,
    ):
        self.call_stack: List[Frame] = []
        self.output: List[Any] = []
        self.break_flag = False
        self.output_sink = output_sink
        self._inputs = deque(inputs or ())

    # Frames

    def push_frame(self, function_name: str, bindings: Optional[Dict[str, Any]] = None) -> Frame:
        frame = Frame(function_name=function_name, variables=dict(bindings or {}))
        self.call_stack.append(frame)
        return frame

    def pop_frame(self) -> Frame:
        return self.call_stack.pop()

    def current_frame(self) -> Optional[Frame]:
        if self.call_stack:
            return self.call_stack[-1]
        return None

    @property
    def depth(self) -> int:
        return len(self.call_stack)

    # Variables

    def get_variable(self, name: str) -> Any:
        """Value bound in the current frame, or UNDEFINED."""
        frame = self.current_frame()
        if frame is None:
            return UNDEFINED
        return frame.variables.get(name, UNDEFINED)

    def set_variable(self, name: str, value: Any) -> None:
        frame = self.current_frame()
        if frame is not None:
            frame.variables[name] = value

    # Output

    def print(self, value: Any) -> None:
        self.output.append(value)
        if self.output_sink is not None:
            self.output_sink(value)

    def get_output(self) -> List[Any]:
        return list(self.output)

    # Break flag

    def set_break(self) -> None:
        self.break_flag = True

    def should_break(self) -> bool:
        """Test and clear the break flag."""
        if self.break_flag:
            self.break_flag = False
            return True
        return False

    def clear_break(self) -> None:
        self.break_flag = False

    # Input

    def read_input(self) -> Any:
        """Next buffered input value, or None once the queue is exhausted."""
        if self._inputs:
            return self._inputs.popleft()
        return None
