import sys
from typing import Any, Callable, Optional

from sortlines.models import RenderRequest


class PresetSurface:
    """Answers every confirmation with a fixed decision (--yes, MCP calls)."""

    def __init__(self, answer: bool):
        self.answer = answer
        self.on_message: Optional[Callable[[Any], None]] = None
        self.requests = []
        self.closed = False

    def show(self, request: RenderRequest):
        self.requests.append(request)
        if self.on_message is not None:
            self.on_message({"confirm": self.answer})

    def resize(self, width: int, height: int):
        pass

    def close(self):
        self.closed = True


class TerminalSurface:
    """Asks the confirmation question on the terminal."""

    def __init__(self, input_fn: Callable[[str], str] = input, stream=sys.stderr):
        self.input_fn = input_fn
        self.stream = stream
        self.on_message: Optional[Callable[[Any], None]] = None
        self.closed = False

    def show(self, request: RenderRequest):
        print(f"This will sort {request.amount:,} text components.", file=self.stream)
        try:
            answer = self.input_fn("Are you sure you want to do that? [y/N] ")
        except EOFError:
            answer = ""
        if self.on_message is not None:
            self.on_message({"confirm": answer.strip().lower() in ("y", "yes")})

    def resize(self, width: int, height: int):
        pass

    def close(self):
        self.closed = True
