from .ports import ConfirmationRequest, Confirmer


class ScriptedConfirmer(Confirmer):
    """
    Adapter: answer from a script. For tests and non-interactive runs.

    Answers are consumed in order; once exhausted, `default` is used.
    Every request is recorded in `asked`.
    """

    def __init__(self, answers: list[bool] | None = None, default: bool = True):
        self._answers = list(answers or [])
        self._default = default
        self.asked: list[ConfirmationRequest] = []

    async def confirm(self, request: ConfirmationRequest) -> bool:
        self.asked.append(request)
        if self._answers:
            return self._answers.pop(0)
        return self._default
