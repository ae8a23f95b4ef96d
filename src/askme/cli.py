"""Terminal chat over the same orchestrator the HTTP endpoint uses."""

from .agent import ChatOrchestrator, SessionContext
from .config import ConfigurationError, Settings, settings_from_env
from .facts import FactStore
from .llm import CompletionClient
from .logging import configure_logger

BANNER = """
Ask Me Anything ({subject})

Commands:
  /exit, /quit  - Exit
  /reset        - Forget the conversation so far
  /help         - Show this help
"""


class CLI:
    """Interactive command-line chat.

    History and the credential hint live in memory for the life of the
    process, the same way the browser front-end keeps them.
    """

    def __init__(self, orchestrator: ChatOrchestrator, subject_name: str) -> None:
        self.orchestrator = orchestrator
        self.subject_name = subject_name
        self.history: list[dict[str, str]] = []
        self.session = SessionContext()

    def _reset(self) -> None:
        self.history = []
        print("\nConversation cleared.")

    async def ask(self, message: str) -> str:
        """Send one message and record the exchange in history."""
        reply = await self.orchestrator.respond(self.history, message, session=self.session)
        self.session = reply.session
        self.history.append({"role": "user", "content": message})
        self.history.append({"role": "assistant", "content": reply.response_text})
        return reply.response_text

    def _handle_command(self, command: str) -> bool:
        """Handle a special command. Returns True if should continue, False to exit."""
        cmd = command.lower().strip()

        if cmd in ("/exit", "/quit", "exit", "quit"):
            print("\nGoodbye!")
            return False

        if cmd == "/reset":
            self._reset()
            return True

        if cmd == "/help":
            print(BANNER.format(subject=self.subject_name))
            return True

        return True

    async def run(self) -> None:
        """Run the interactive loop until exit or EOF."""
        print(BANNER.format(subject=self.subject_name))

        while True:
            try:
                user_input = input("you> ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nGoodbye!")
                break

            if not user_input:
                continue

            if user_input.startswith("/") or user_input.lower() in ("exit", "quit"):
                if not self._handle_command(user_input):
                    break
                continue

            response = await self.ask(user_input)
            print(f"\n{response}\n")


async def run_cli(settings: Settings | None = None) -> int:
    """Run the CLI with configuration from the environment."""
    settings = settings or settings_from_env()

    try:
        facts = FactStore.from_file(settings.profile_path)
    except FileNotFoundError:
        print(f"Error: profile document not found at {settings.profile_path}")
        return 1

    client = CompletionClient()
    try:
        orchestrator = ChatOrchestrator.from_settings(
            settings, facts, client, trace_logger=configure_logger(settings.log_dir)
        )
    except ConfigurationError as e:
        print(f"Error: {e}")
        print("Please set it in your .env file or environment")
        return 1

    try:
        await CLI(orchestrator, settings.subject_name).run()
    finally:
        await client.close()
    return 0
