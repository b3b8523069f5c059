"""Interactive selection prompts."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Generic, Protocol, Sequence, TypeVar

import questionary

from aws_simple_sso.errors import SelectionCancelledError

T = TypeVar("T")


@dataclass(frozen=True)
class Choice(Generic[T]):
    title: str
    value: T


class Chooser(Protocol):
    async def select(self, message: str, choices: Sequence[Choice[Any]]) -> Any: ...

    async def text(self, message: str, default: str = "") -> str: ...


class QuestionaryChooser:
    """Terminal chooser backed by questionary.

    questionary returns ``None`` when the prompt is dismissed (Ctrl-C); that is
    surfaced as ``SelectionCancelledError``.
    """

    async def select(self, message: str, choices: Sequence[Choice[Any]]) -> Any:
        question = questionary.select(
            message,
            choices=[
                questionary.Choice(choice.title, value=index)
                for index, choice in enumerate(choices)
            ],
        )
        index = await asyncio.to_thread(question.ask)
        if index is None:
            raise SelectionCancelledError()
        return choices[index].value

    async def text(self, message: str, default: str = "") -> str:
        answer = await asyncio.to_thread(questionary.text(message, default=default).ask)
        if answer is None:
            raise SelectionCancelledError()
        return answer.strip()
