"""
Single-line prompts used to fill in script variables.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .context import RunContext
from .errors import PromptAborted


class PromptInput:
    """Asks a question on the context's output stream and reads one line back."""

    def __init__(self, context: Optional[RunContext] = None):
        self.context = context or RunContext()

    def ask(self, question: str) -> str:
        out = self.context.out_stream
        out.write(f"{question} ")
        out.flush()

        line = self.context.in_stream.readline()
        if not line:
            raise PromptAborted(question)
        return line.rstrip("\r\n")


@dataclass
class FakePromptInput:
    """Answers questions from ``mock_answer``; raises from ``mock_error``."""
    mock_answer: Dict[str, str] = field(default_factory=dict)
    mock_error: Dict[str, Exception] = field(default_factory=dict)
    called_ask: bool = False
    questions: List[str] = field(default_factory=list)

    def ask(self, question: str) -> str:
        self.called_ask = True
        self.questions.append(question)
        if question in self.mock_error:
            raise self.mock_error[question]
        return self.mock_answer.get(question, "")
