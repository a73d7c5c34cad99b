import asyncio

from .ports import ConfirmationRequest, Confirmer


class ConsoleConfirmer(Confirmer):
    """Adapter: ask on the terminal. Anything but y/yes counts as no."""

    async def confirm(self, request: ConfirmationRequest) -> bool:
        print(f"\n{'=' * 60}")
        print(f"  {request.title}")
        print(f"{'=' * 60}")
        print(request.description)
        answer = await asyncio.to_thread(input, f"{request.confirm_label}? [y/N] ")
        return answer.strip().lower() in ("y", "yes")
