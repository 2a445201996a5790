import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from fiat_chat_agent.app_config import load_json_config, parse_app_config, resolve_runtime_env
from fiat_chat_agent.bootstrap import bootstrap_runtime
from fiat_chat_agent.chat_agent import ChatAgent


async def main() -> None:
    load_dotenv()

    app = parse_app_config(load_json_config())
    env = resolve_runtime_env(app.provider_name)
    if not env.provider_api_key:
        print(f"{env.provider_env_var} environment variable is required.", file=sys.stderr)
        sys.exit(1)

    runtime = bootstrap_runtime(app, env)
    agent = ChatAgent(runtime.conversation, runtime.history, wallet_address=runtime.wallet_address)

    print("fiat-chat-agent: USDT to fiat conversions (type 'exit' to quit, '/help' for commands)")
    print(f"Model: {app.provider_name} / {app.model}")
    if runtime.wallet_address:
        print(f"Wallet: {runtime.wallet_address}")
    if runtime.history_store is not None:
        print(f"History: {len(runtime.history.list_sessions(limit=1000))} saved session(s)")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()

    try:
        while True:
            try:
                user_input = input("you> ")
            except (EOFError, KeyboardInterrupt):
                break

            trimmed = user_input.strip()
            if trimmed in ("exit", "quit"):
                break
            if not trimmed:
                continue

            try:
                await agent.run(trimmed)
                print()
            except Exception as ex:
                logger.error(f"Unhandled error: {ex}")
    finally:
        runtime.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
