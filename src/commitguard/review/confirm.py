"""Bounded, cancellable confirmation prompts.

Every question resolves to exactly one ``ReviewDecision``. A prompt runs on a
daemon thread and races a queue read bounded by the configured timeout; the
first result wins and a prompt that loses is simply abandoned. When no answer
arrives (timeout, closed stdin, Ctrl-C, or no terminal at all) the configured
``CancelPolicy`` decides:

* ``auto-apply``: accept
* ``skip``: reject, the commit may proceed
* ``cancel``: reject and abort the commit

Once one prompt has timed out, later questions in the same run resolve by
policy straight away so that the abandoned prompt thread is the only reader
left on the terminal.
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
import time
from typing import Callable, TextIO

from rich.console import Console
from rich.prompt import Confirm, Prompt

from commitguard.core import output
from commitguard.core.config import ReviewConfig
from commitguard.core.models import (
    CancelPolicy,
    DecisionSource,
    Fix,
    ReviewDecision,
    ReviewState,
)

logger = logging.getLogger("commitguard.review")

ACCEPT_VALUES = frozenset({"accept", "accepted", "yes", "y", "1", "true", "apply"})
REJECT_VALUES = frozenset({"reject", "rejected", "no", "n", "0", "false", "skip"})
ABORT_VALUES = frozenset({"cancel", "abort", "c"})

_POLL_SECONDS = 0.25
_NO_ANSWER = object()

PromptFn = Callable[[str, bool], bool]
# may also return "y", "n" or "c" when cancelling is offered
ChoicePromptFn = Callable[[str, bool], object]
TextPromptFn = Callable[[str, str], str]


class ConfirmationController:
    """Asks yes/no questions under a timeout and fallback policy."""

    def __init__(
        self,
        config: ReviewConfig | None = None,
        prompt: PromptFn | None = None,
        text_prompt: TextPromptFn | None = None,
        choice_prompt: ChoicePromptFn | None = None,
        interactive: bool | None = None,
        console: Console | None = None,
    ):
        self.config = config or ReviewConfig()
        self.console = console or output.console
        self._prompt = prompt or self._rich_confirm
        self._text_prompt = text_prompt or self._rich_text
        self._choice_prompt = choice_prompt or prompt or self._rich_choice
        self._interactive = interactive
        self._tty: TextIO | None = None
        self.timed_out = False

    @property
    def interactive(self) -> bool:
        if self._interactive is None:
            self._interactive = _is_tty(sys.stdin) and _is_tty(sys.stdout)
        return self._interactive

    @property
    def can_prompt(self) -> bool:
        return self.interactive or self.config.force_prompt

    def decide(
        self,
        unit: str,
        question: str,
        fixes: tuple[Fix, ...] | list[Fix] = (),
        default: bool | None = None,
        allow_cancel: bool = False,
    ) -> ReviewDecision:
        """Resolve ``question`` for review unit ``unit``.

        ``default`` replaces the cancel policy for questions that are not about
        applying fixes: it is the prompt default and the unanswered result.
        With ``allow_cancel`` the user may also answer "c" to cancel the commit.
        """
        fixes = tuple(fixes)

        if self.config.simulate:
            return self._simulated(unit, fixes)

        if not self.can_prompt:
            logger.info("Non-interactive session; applying %s policy to %s",
                        self.config.default_on_cancel.value, unit)
            return self._by_policy(unit, fixes, DecisionSource.NON_INTERACTIVE_DEFAULT, default)

        if self.timed_out:
            return self._by_policy(unit, fixes, DecisionSource.TIMEOUT_DEFAULT, default)

        prompt_default = default
        if prompt_default is None:
            prompt_default = self.config.default_on_cancel is CancelPolicy.AUTO_APPLY
        ask = self._choice_prompt if allow_cancel else self._prompt
        answer = self._race(lambda: ask(question, prompt_default))
        if answer is _NO_ANSWER:
            self.timed_out = True
            logger.warning("No answer for %s; applying %s policy",
                           unit, self.config.default_on_cancel.value)
            return self._by_policy(unit, fixes, DecisionSource.TIMEOUT_DEFAULT, default)

        accepted, aborts = _interpret(answer)
        if aborts:
            logger.info("Commit cancelled at %s", unit)
        return ReviewDecision(
            unit=unit,
            accepted=accepted,
            source=DecisionSource.USER,
            state=ReviewState.ACCEPTED if accepted else ReviewState.REJECTED,
            fixes=fixes,
            aborts=aborts,
        )

    def ask_text(self, question: str, default: str) -> str:
        """Free-text question; ``default`` on timeout or without a terminal."""
        if self.config.simulate or not self.can_prompt or self.timed_out:
            return default
        answer = self._race(lambda: self._text_prompt(question, default))
        if answer is _NO_ANSWER:
            self.timed_out = True
            return default
        return str(answer).strip() or default

    def _simulated(self, unit: str, fixes: tuple[Fix, ...]) -> ReviewDecision:
        value = self.config.simulate.strip().lower()
        if value in ACCEPT_VALUES:
            accepted, aborts = True, False
        elif value in REJECT_VALUES:
            accepted, aborts = False, False
        elif value in ABORT_VALUES:
            accepted, aborts = False, True
        else:
            logger.warning("Unrecognised simulated choice %r; applying %s policy",
                           self.config.simulate, self.config.default_on_cancel.value)
            return self._by_policy(unit, fixes, DecisionSource.NON_INTERACTIVE_DEFAULT)

        return ReviewDecision(
            unit=unit,
            accepted=accepted,
            source=DecisionSource.SIMULATED,
            state=ReviewState.ACCEPTED if accepted else ReviewState.REJECTED,
            fixes=fixes,
            aborts=aborts,
        )

    def _by_policy(
        self,
        unit: str,
        fixes: tuple[Fix, ...],
        source: DecisionSource,
        default: bool | None = None,
    ) -> ReviewDecision:
        if default is not None:
            return ReviewDecision(unit=unit, accepted=default, source=source,
                                  state=ReviewState.TIMED_OUT, fixes=fixes)
        policy = self.config.default_on_cancel
        return ReviewDecision(
            unit=unit,
            accepted=policy is CancelPolicy.AUTO_APPLY,
            source=source,
            state=ReviewState.TIMED_OUT,
            fixes=fixes,
            aborts=policy is CancelPolicy.CANCEL,
        )

    def _race(self, ask: Callable[[], object]) -> object:
        """Run ``ask`` on a daemon thread; return its answer or ``_NO_ANSWER``."""
        answers: queue.Queue = queue.Queue(maxsize=1)

        def worker() -> None:
            try:
                answers.put(("answer", ask()))
            except (EOFError, KeyboardInterrupt, OSError) as exc:
                answers.put(("closed", exc))

        thread = threading.Thread(target=worker, name="commitguard-prompt", daemon=True)
        thread.start()

        timeout_ms = self.config.prompt_timeout_ms
        deadline = time.monotonic() + timeout_ms / 1000 if timeout_ms > 0 else None
        try:
            while True:
                wait = _POLL_SECONDS
                if deadline is not None:
                    wait = min(wait, deadline - time.monotonic())
                    if wait <= 0:
                        logger.debug("Prompt timed out after %d ms", timeout_ms)
                        return _NO_ANSWER
                try:
                    kind, value = answers.get(timeout=wait)
                except queue.Empty:
                    continue
                if kind == "closed":
                    logger.debug("Prompt closed: %r", value)
                    return _NO_ANSWER
                return value
        except KeyboardInterrupt:
            logger.debug("Prompt interrupted")
            return _NO_ANSWER

    def _rich_confirm(self, question: str, default: bool) -> bool:
        return Confirm.ask(question, default=default, console=self.console, stream=self._input_stream())

    def _rich_choice(self, question: str, default: bool) -> str:
        return Prompt.ask(
            f"{question} (y = apply, n = skip, c = cancel commit)",
            choices=["y", "n", "c"],
            default="y" if default else "n",
            console=self.console,
            stream=self._input_stream(),
        )

    def _rich_text(self, question: str, default: str) -> str:
        return Prompt.ask(question, default=default, console=self.console, stream=self._input_stream())

    def _input_stream(self) -> TextIO | None:
        """``/dev/tty`` when prompting is forced without a terminal on stdin."""
        if _is_tty(sys.stdin) or not self.config.force_prompt:
            return None
        if self._tty is None:
            try:
                self._tty = open("/dev/tty", encoding="utf-8")
            except OSError as exc:
                logger.debug("No controlling terminal: %s", exc)
                return None
        return self._tty

    def close(self) -> None:
        if self._tty is not None:
            self._tty.close()
            self._tty = None


def _interpret(answer: object) -> tuple[bool, bool]:
    """Map a prompt answer to ``(accepted, aborts)``."""
    if isinstance(answer, str):
        value = answer.strip().lower()
        if value in ABORT_VALUES:
            return False, True
        return value in ACCEPT_VALUES, False
    return bool(answer), False


def _is_tty(stream) -> bool:
    try:
        return stream is not None and stream.isatty()
    except (AttributeError, ValueError):
        return False
