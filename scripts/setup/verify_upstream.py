from __future__ import annotations

import asyncio

from ollachat.app.conversation.contracts import Role, Transcript, Turn
from ollachat.app.relay.contracts import RelayFailure, RelayRequest
from ollachat.app.relay.service import forward
from ollachat.core.config import load_app_config, relay_config_for


def _print_result(name: str, ok: bool, detail: str) -> bool:
    status = "OK" if ok else "FAIL"
    print(f"[{status}] {name}: {detail}")
    return ok


async def _verify_chat_round_trip() -> bool:
    relay_config = relay_config_for(load_app_config())
    transcript = Transcript()
    transcript.append(Turn(role=Role.USER, content="hi"))
    result = await forward(
        RelayRequest(model=relay_config.model, transcript=transcript),
        relay_config,
    )
    if isinstance(result, RelayFailure):
        return _print_result("ollama chat", False, result.message)
    return _print_result(
        "ollama chat",
        True,
        f"{relay_config.chat_endpoint} ({relay_config.model}) replied "
        f"{len(result.response.content)} chars",
    )


def main() -> int:
    print("Upstream connectivity verification")
    print("-" * 34)

    if asyncio.run(_verify_chat_round_trip()):
        print("Upstream check passed.")
        return 0

    print("Upstream check failed. Set OLLAMA_URL / OLLAMA_MODEL and rerun.")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
