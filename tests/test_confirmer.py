"""
Confirmer adapters and factory.
"""

import builtins

import pytest

from roombook.communication.console_confirmer import ConsoleConfirmer
from roombook.communication.factory import create_confirmer
from roombook.communication.ports import ConfirmationRequest
from roombook.communication.scripted_confirmer import ScriptedConfirmer

REQUEST = ConfirmationRequest(title="Confirm deletion", description="Delete it?")


@pytest.mark.asyncio
@pytest.mark.parametrize("answer, expected", [
    ("y", True), ("YES", True), (" yes ", True),
    ("", False), ("n", False), ("sure", False),
])
async def test_console_accepts_only_yes(monkeypatch, capsys, answer, expected):
    monkeypatch.setattr(builtins, "input", lambda prompt: answer)
    assert await ConsoleConfirmer().confirm(REQUEST) is expected
    assert "Delete it?" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_scripted_answers_then_default():
    confirmer = ScriptedConfirmer([False], default=True)
    assert await confirmer.confirm(REQUEST) is False
    assert await confirmer.confirm(REQUEST) is True
    assert confirmer.asked == [REQUEST, REQUEST]


def test_factory_reads_env(monkeypatch):
    monkeypatch.setenv("ROOMBOOK_CONFIRM_CHANNEL", "yes")
    assert isinstance(create_confirmer(), ScriptedConfirmer)
    assert isinstance(create_confirmer("console"), ConsoleConfirmer)


def test_factory_rejects_unknown_channel():
    with pytest.raises(ValueError):
        create_confirmer("carrier-pigeon")
